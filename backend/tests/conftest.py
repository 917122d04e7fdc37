import os
import sys
import json
import tempfile
import pytest
from unittest.mock import MagicMock

# backend/ holds main.py and the travel_crm package
_backend = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _backend not in sys.path:
    sys.path.insert(0, _backend)

# Settings are read once at import time, so point every module-level store and
# the log file at a scratch directory before anything from travel_crm loads.
_scratch = tempfile.mkdtemp(prefix="travel_crm_tests_")
os.environ["DB_PATH"] = os.path.join(_scratch, "import.sqlite3")
os.environ["LOG_DIR"] = os.path.join(_scratch, "logs")
os.environ["GENERATION_RETRY_DELAY"] = "0"
os.environ["OPENAI_API_KEY"] = ""
os.environ["SMTP_HOST"] = ""
os.environ["ADMIN_EMAIL"] = ""
os.environ["CONTACT_WHATSAPP"] = "+94 77 123 4567"

from travel_crm.core.llm import LLMResult
from travel_crm.core.security import create_access_token, get_password_hash
from travel_crm.db.request_store import RequestStore
from travel_crm.services.email_service import EmailService
from travel_crm.services.photo_catalog import PhotoCatalog


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

SAMPLE_REQUEST = {
    "client_name": "Amelia Hart",
    "email": "amelia@example.com",
    "whatsapp": "+44 7700 900123",
    "start_date": "2026-03-01",
    "end_date": "2026-03-05",
    "origin_country": "United Kingdom",
    "number_of_adults": 2,
    "number_of_children": 1,
    "children_ages": [8],
    "additional_preferences": "Wildlife and tea country",
}

LOCATIONS = ["Colombo", "Sigiriya", "Kandy", "Ella", "Yala", "Galle", "Nuwara Eliya"]


def make_option(days, title="Tea Trails & Leopards", with_images=True):
    return {
        "title": title,
        "summary": "A slow journey through the hill country and the south.",
        "days": [
            {
                "day": n,
                "title": f"Day in {LOCATIONS[(n - 1) % len(LOCATIONS)]}",
                "location": LOCATIONS[(n - 1) % len(LOCATIONS)],
                **({"image": f"/images/day{n}.jpg"} if with_images else {}),
                "activities": ["09:00 - Breakfast", "11:00 - Guided walk"],
                "what_to_expect": "A relaxed day.",
                "optional_activities": ["Spa treatment"],
            }
            for n in range(1, days + 1)
        ],
    }


def option_json(days, title="Tea Trails & Leopards", **kwargs):
    return json.dumps(make_option(days, title, **kwargs))


class FakeLLM:
    """Plays back chat results (or raises queued exceptions) and records every call."""

    def __init__(self, results=None, image_urls=None):
        self.results = list(results or [])
        self.image_urls = list(image_urls or [])
        self.calls = []
        self.image_prompts = []

    def chat_json(self, system, user, temperature, max_tokens):
        self.calls.append({
            "system": system,
            "user": user,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        item = self.results.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def generate_image(self, prompt):
        self.image_prompts.append(prompt)
        return self.image_urls.pop(0) if self.image_urls else None


def ok(days, title="Tea Trails & Leopards"):
    return LLMResult(content=option_json(days, title), finish_reason="stop")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def store(tmp_path):
    return RequestStore(str(tmp_path / "crm.sqlite3"))


@pytest.fixture
def photos():
    return PhotoCatalog()


@pytest.fixture
def saved_request(store):
    return store.create_request(dict(SAMPLE_REQUEST))


@pytest.fixture
def request_with_options(store, saved_request):
    for index in range(3):
        store.set_option(saved_request["id"], index, make_option(5, title=f"Option {index + 1}"))
    return store.get_request(saved_request["id"])


@pytest.fixture
def sendable_request(store, request_with_options):
    return store.select_option(request_with_options["id"], 1)


@pytest.fixture
def staff_id(store):
    return store.create_staff("agent@lankalux.com", "Nadeesha Perera", get_password_hash("correct-horse"))


@pytest.fixture
def auth_headers(staff_id):
    return {"Authorization": f"Bearer {create_access_token(str(staff_id))}"}


@pytest.fixture
def email_service():
    service = MagicMock(spec=EmailService)
    service.send.return_value = "<message-id@lankalux.com>"
    return service


@pytest.fixture
def client(store, email_service, monkeypatch):
    """TestClient with every router bound to the per-test store."""
    from fastapi.testclient import TestClient

    import main
    from travel_crm.api import (
        routes_auth,
        routes_email,
        routes_itinerary,
        routes_public,
        routes_requests,
        routes_vehicles,
    )

    for module in (routes_auth, routes_email, routes_itinerary, routes_public, routes_requests, routes_vehicles):
        monkeypatch.setattr(module, "db", store)
    monkeypatch.setattr(routes_email, "email_service", email_service)

    with TestClient(main.app) as test_client:
        yield test_client
