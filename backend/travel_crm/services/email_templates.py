# backend/travel_crm/services/email_templates.py

"""
Client-facing emails: the itinerary link email and the follow-up templates.

HTML and plain-text bodies are rendered from the Jinja2 templates under
``templates/emails``. Follow-up copy lives here so staff can pick a template by
id from the dashboard.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup, escape

from travel_crm.core.config_loader import settings
from travel_crm.utils.time_utils import current_year, format_long_date


TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates"

env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str
    text: str


@dataclass(frozen=True)
class FollowUpTemplate:
    id: str
    name: str
    subject: str
    paragraphs: Tuple[str, ...]
    button_with_link: str
    button_without_link: str
    link_label: str


FOLLOW_UP_TEMPLATES: Tuple[FollowUpTemplate, ...] = (
    FollowUpTemplate(
        id="friendly_checkin",
        name="Friendly check-in",
        subject="Quick check-in – your Sri Lanka itinerary",
        paragraphs=(
            "I wanted to drop a quick note to see how you're doing. I hope the itinerary we put "
            "together is sitting well with you. We had a great time crafting it.",
            "If anything's on your mind, whether questions, tweaks, or you just want to chat through "
            "the details, reply to this email anytime. No rush at all.",
        ),
        button_with_link="View my itinerary",
        button_without_link="Get in touch",
        link_label="View your itinerary",
    ),
    FollowUpTemplate(
        id="gentle_reminder",
        name="Gentle reminder",
        subject="Your Sri Lanka trip – we're here when you're ready",
        paragraphs=(
            "I know life gets busy, so I didn't want to add to the noise. Just a gentle reminder "
            "that your Sri Lanka itinerary is ready whenever you are.",
            "Take your time. When you're ready to take the next step or have any questions, "
            "we're only an email away. No pressure at all.",
        ),
        button_with_link="See my itinerary",
        button_without_link="Visit {brand}",
        link_label="See your itinerary",
    ),
    FollowUpTemplate(
        id="here_when_ready",
        name="We're here when you're ready",
        subject="Whenever you're ready – your {brand} itinerary",
        paragraphs=(
            "Just a short note to say we're here whenever you'd like to chat, tweak your plans, or "
            "simply look through your itinerary again. There's no deadline; we're happy to help "
            "whenever it suits you.",
            "If anything catches your eye or you have questions, hit reply. We'd love to hear from you.",
        ),
        button_with_link="Open my itinerary",
        button_without_link="Get in touch",
        link_label="Open your itinerary",
    ),
)


def get_template(template_id: str) -> Optional[FollowUpTemplate]:
    return next((t for t in FOLLOW_UP_TEMPLATES if t.id == template_id), None)


def template_subject(template: FollowUpTemplate) -> str:
    return template.subject.format(brand=settings.BRAND_NAME)


def first_name(client_name: Optional[str]) -> str:
    parts = (client_name or "").split()
    return parts[0] if parts else "there"


def body_text_to_html(text: str) -> Markup:
    """Blank lines split paragraphs, single newlines become <br>."""
    paragraphs = [p.strip() for p in text.replace("\r\n", "\n").split("\n\n") if p.strip()]
    rendered = [
        Markup('<p class="body-text">{}</p>').format(Markup("<br>").join(escape(line) for line in p.split("\n")))
        for p in paragraphs
    ]
    return Markup("\n").join(rendered)


def _brand_context() -> Dict[str, Any]:
    base_url = settings.PUBLIC_BASE_URL.rstrip("/")
    return {
        "brand": settings.BRAND_NAME,
        "brand_site_url": settings.BRAND_SITE_URL,
        "base_url": base_url,
        "logo_url": f"{base_url}/favicon.png",
        "year": current_year(),
    }


# -------------------------------------------------------
# ITINERARY EMAIL
# -------------------------------------------------------
def render_itinerary_email(request: Dict[str, Any], option: Dict[str, Any], itinerary_url: str) -> RenderedEmail:
    context = {
        **_brand_context(),
        "client_name": request.get("client_name") or "Valued Client",
        "start_date": format_long_date(request.get("start_date")),
        "end_date": format_long_date(request.get("end_date")),
        "duration": request.get("duration"),
        "option_title": option.get("title") or "",
        "itinerary_url": itinerary_url,
    }

    return RenderedEmail(
        subject=f"Your {settings.BRAND_NAME} Sri Lanka Journey - {context['option_title']}",
        html=env.get_template("emails/itinerary.html").render(**context),
        text=env.get_template("emails/itinerary.txt").render(**context),
    )


# -------------------------------------------------------
# FOLLOW-UP EMAIL
# -------------------------------------------------------
def render_follow_up_email(
    template: FollowUpTemplate,
    client_name: Optional[str],
    itinerary_url: Optional[str],
    subject: Optional[str] = None,
    body: Optional[str] = None,
) -> RenderedEmail:
    """A non-blank custom body replaces the template copy (and its greeting)."""
    brand = settings.BRAND_NAME
    custom_body = (body or "").strip()
    button_text = template.button_with_link if itinerary_url else template.button_without_link

    context = {
        **_brand_context(),
        "itinerary_url": itinerary_url,
        "button_url": itinerary_url or settings.PUBLIC_BASE_URL,
        "button_text": button_text.format(brand=brand),
        "link_label": template.link_label,
    }

    if custom_body:
        context.update(greeting=None, body_html=body_text_to_html(custom_body), paragraphs=[], body_text=custom_body)
    else:
        greeting = f"Hi {first_name(client_name)},"
        context.update(
            greeting=greeting,
            body_html=None,
            paragraphs=list(template.paragraphs),
            body_text="\n\n".join([greeting, *template.paragraphs]),
        )

    return RenderedEmail(
        subject=" ".join((subject or "").split()) or template_subject(template),
        html=env.get_template("emails/follow_up.html").render(**context),
        text=env.get_template("emails/follow_up.txt").render(**context),
    )
