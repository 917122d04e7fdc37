# backend/travel_crm/agents/itinerary_agent.py

import time
from typing import Any, Callable, Dict, List, Optional

from openai import OpenAIError

from travel_crm.agents.prompts import SYSTEM_PROMPT, build_option_prompt, strictness_block
from travel_crm.core.config_loader import settings
from travel_crm.core.errors import DayCountMismatchError, GenerationError
from travel_crm.core.llm import LLMClient
from travel_crm.core.logger import logger
from travel_crm.models.itinerary_models import ItineraryOption, OPTION_SLOTS
from travel_crm.services.photo_catalog import PhotoCatalog
from travel_crm.utils.json_repair import parse_model_json
from travel_crm.utils.time_utils import trip_duration


BASE_TEMPERATURE = 0.9
TEMPERATURE_STEP = 0.2
MIN_TEMPERATURE = 0.3


def _as_text_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(v).strip() for v in value if v is not None and str(v).strip()]
    return [str(value)]


class ItineraryAgent:
    """
    Drafts itinerary options with the chat model.

    Each option is requested on its own. The answer is cleaned, validated and
    checked against the trip length; a wrong day count is retried with a
    stricter prompt, and the closest answer is repaired once attempts run out.
    """

    def __init__(
        self,
        llm: Optional[LLMClient] = None,
        photos: Optional[PhotoCatalog] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.llm = llm or LLMClient()
        self.photos = photos or PhotoCatalog()
        self._sleep = sleep

    # -----------------------------
    # Public API
    # -----------------------------
    def generate_option(
        self,
        request: Dict[str, Any],
        option_index: int,
        other_titles: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        expected = trip_duration(
            request.get("duration"), request.get("start_date"), request.get("end_date")
        )
        if other_titles is None:
            other_titles = self._other_titles(request, option_index)

        base_prompt = build_option_prompt(
            request,
            expected,
            other_titles,
            photo_section=self.photos.prompt_section(),
            locations=self.photos.location_names or None,
        )

        max_attempts = settings.GENERATION_MAX_ATTEMPTS
        max_tokens = settings.GENERATION_MAX_TOKENS
        level = 0
        previous_days: Optional[int] = None
        closest: Optional[Dict[str, Any]] = None
        last_error = "Failed to generate option"

        for attempt in range(1, max_attempts + 1):
            prompt = base_prompt + strictness_block(level, expected, previous_days)
            temperature = max(MIN_TEMPERATURE, BASE_TEMPERATURE - TEMPERATURE_STEP * level)
            logger.info(
                f"Generating option {option_index} for request {request.get('id')}: "
                f"attempt {attempt}/{max_attempts}, strictness={level}, max_tokens={max_tokens}"
            )

            try:
                result = self.llm.chat_json(SYSTEM_PROMPT, prompt, temperature, max_tokens)
            except OpenAIError as e:
                logger.error(f"OpenAI API error on attempt {attempt}: {e}")
                last_error = "Failed to generate option after multiple attempts"
                self._backoff(attempt, max_attempts)
                continue

            if result.finish_reason == "length" and attempt < max_attempts:
                # truncated: same prompt, more room
                max_tokens = min(int(max_tokens * 1.5), settings.GENERATION_MAX_TOKENS_CAP)
                logger.warning(f"Response hit the token limit, retrying with max_tokens={max_tokens}")
                self._backoff(attempt, max_attempts)
                continue

            if not result.content:
                logger.warning(f"Empty model response on attempt {attempt}")
                last_error = "Failed to generate option"
                level += 1
                continue

            try:
                option = self.parse_option(result.content)
            except ValueError as e:
                logger.warning(f"Unusable model output on attempt {attempt}: {e}")
                logger.debug(f"Model output: {result.content[:500]}")
                last_error = str(e)
                previous_days = None
                level += 1
                continue

            actual = len(option["days"])
            if expected is None or actual == expected:
                logger.info(f"Option {option_index} generated: '{option['title']}' ({actual} days)")
                return option

            logger.warning(f"Day count mismatch on attempt {attempt}: expected {expected}, got {actual}")
            if closest is None or abs(actual - expected) < abs(len(closest["days"]) - expected):
                closest = option
            previous_days = actual
            level += 1

        if closest is None:
            raise GenerationError(last_error)
        return self.repair_day_count(closest, expected)

    def generate_all(
        self,
        request: Dict[str, Any],
        on_option: Optional[Callable[[int, Dict[str, Any]], None]] = None,
    ) -> List[Dict[str, Any]]:
        """Fill every slot in order; each new option sees the titles before it."""
        options: List[Dict[str, Any]] = []
        for index in range(OPTION_SLOTS):
            titles = [o["title"] for o in options]
            option = self.generate_option(request, index, other_titles=titles)
            options.append(option)
            if on_option is not None:
                on_option(index, option)
        return options

    # -----------------------------
    # Parsing + normalisation
    # -----------------------------
    def parse_option(self, content: str) -> Dict[str, Any]:
        data = parse_model_json(content)

        # some answers come back wrapped as {"option": {...}} or {"options": [{...}]}
        if "days" not in data:
            if isinstance(data.get("option"), dict):
                data = data["option"]
            elif isinstance(data.get("options"), list) and data["options"] and isinstance(data["options"][0], dict):
                data = data["options"][0]

        title = data.get("title")
        summary = data.get("summary")
        days = data.get("days")
        if not isinstance(title, str) or not title.strip() \
                or not isinstance(summary, str) or not summary.strip() \
                or not isinstance(days, list) or not days:
            raise ValueError("Invalid option format: missing required fields")

        normalised_days = []
        for raw in days:
            if not isinstance(raw, dict):
                continue
            normalised_days.append(self._normalise_day(raw, len(normalised_days) + 1))

        if not normalised_days:
            raise ValueError("Invalid option format: no usable days")

        option = ItineraryOption.model_validate({
            "title": title.strip(),
            "summary": summary.strip(),
            "days": normalised_days,
        })
        return option.model_dump()

    def _normalise_day(self, raw: Dict[str, Any], number: int) -> Dict[str, Any]:
        location = str(raw.get("location") or "").strip()
        image = raw.get("image")
        if not isinstance(image, str) or not image.strip():
            image = self.photos.image_for_location(location)

        what_to_expect = raw.get("what_to_expect")
        return {
            "day": number,
            "title": str(raw.get("title") or f"Day {number}").strip(),
            "location": location,
            "image": image.strip(),
            "activities": _as_text_list(raw.get("activities")),
            "what_to_expect": str(what_to_expect).strip() if what_to_expect else None,
            "optional_activities": _as_text_list(raw.get("optional_activities")),
        }

    def repair_day_count(self, option: Dict[str, Any], expected: int) -> Dict[str, Any]:
        actual = len(option["days"])

        if actual > expected:
            logger.warning(f"Trimming option '{option['title']}' from {actual} to {expected} days")
            return {**option, "days": option["days"][:expected]}

        if expected - actual <= settings.DAY_COUNT_TOLERANCE:
            logger.warning(
                f"Accepting option '{option['title']}' with {actual} of {expected} days (within tolerance)"
            )
            return option

        raise DayCountMismatchError(expected, actual)

    # -----------------------------
    # Helpers
    # -----------------------------
    @staticmethod
    def _other_titles(request: Dict[str, Any], option_index: int) -> List[str]:
        slots = (request.get("itinerary_options") or {}).get("options") or []
        return [
            slot["title"] for i, slot in enumerate(slots)
            if i != option_index and isinstance(slot, dict) and slot.get("title")
        ]

    def _backoff(self, attempt: int, max_attempts: int):
        if attempt < max_attempts and settings.GENERATION_RETRY_DELAY > 0:
            self._sleep(settings.GENERATION_RETRY_DELAY * attempt)
