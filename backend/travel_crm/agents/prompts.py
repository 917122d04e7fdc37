# backend/travel_crm/agents/prompts.py

import json
from typing import Any, Dict, List, Optional

from travel_crm.utils.time_utils import format_long_date, NOT_SPECIFIED


SYSTEM_PROMPT = (
    "You are a luxury travel consultant specializing in bespoke Sri Lanka experiences. "
    "Create premium, curated itineraries. CRITICAL: Every day MUST include an \"image\" field. "
    "Always respond with valid JSON only. Never use markdown. Return only the JSON object."
)

DEFAULT_LOCATIONS = ["Colombo", "Sigiriya", "Ella", "Yala", "Galle", "Kandy", "Nuwara Eliya"]


def _plural_children(count: int) -> str:
    return "child" if count == 1 else "children"


# -----------------------------
# Passenger line
# -----------------------------
def passenger_info(request: Dict[str, Any]) -> str:
    """
    Adults: 2 (2 children aged 4, 7 years)
    Adults: 2 (1 child)
    """
    adults = request.get("number_of_adults") or 0
    children = request.get("number_of_children") or 0
    if not adults and not children:
        return NOT_SPECIFIED

    children_info = ""
    if children > 0:
        ages = request.get("children_ages") or []
        if isinstance(ages, str):
            try:
                ages = json.loads(ages)
            except json.JSONDecodeError:
                ages = []
        if isinstance(ages, list) and ages:
            years = "year" if len(ages) == 1 else "years"
            children_info = (
                f" ({children} {_plural_children(children)} aged "
                f"{', '.join(str(a) for a in ages)} {years})"
            )
        else:
            children_info = f" ({children} {_plural_children(children)})"

    return f"Adults: {adults}{children_info}"


# -----------------------------
# Single option prompt
# -----------------------------
def build_option_prompt(
    request: Dict[str, Any],
    expected_days: Optional[int],
    other_titles: List[str],
    photo_section: str = "",
    locations: Optional[List[str]] = None,
) -> str:
    start = format_long_date(request.get("start_date"))
    end = format_long_date(request.get("end_date"))
    days_text = str(expected_days) if expected_days else "the specified number of"
    location_names = ", ".join(locations or DEFAULT_LOCATIONS)

    uniqueness = ""
    if other_titles:
        uniqueness = (
            f"IMPORTANT: Already generated options: {', '.join(other_titles)}. "
            "Make this option COMPLETELY DIFFERENT in theme, focus, and experiences."
        )

    children = request.get("number_of_children") or 0
    child_note = ""
    if children > 0:
        child_note = f"- IMPORTANT: Consider child-friendly activities for {children} {_plural_children(children)}"

    photos = f"\n{photo_section}\n" if photo_section else ""

    return f"""You are an experienced and passionate luxury travel consultant who creates personalized, memorable journeys through Sri Lanka. Generate ONE distinct, premium itinerary option for the following client:

CLIENT INFORMATION:
- Client Name: {request.get("client_name") or NOT_SPECIFIED}
- Origin Country: {request.get("origin_country") or NOT_SPECIFIED}
- Travel Start Date: {start}
- Travel End Date: {end}
- Total Duration: {expected_days or NOT_SPECIFIED} days
- Travellers: {passenger_info(request)}
- Additional Preferences: {request.get("additional_preferences") or "None provided"}
- Request Notes: {request.get("details") or "None provided"}
{photos}
{uniqueness}

CRITICAL REQUIREMENTS:
- Generate ONE premium, bespoke, professionally curated itinerary option
- The option MUST have EXACTLY {days_text} days
- The itinerary must span from {start} to {end}
- Use ALL the information provided: travel dates, duration, passenger info, and additional preferences
- Use consistent location names: {location_names}
- Activities must be an array of strings (include 4-6 main activities per day)
- CRITICAL: Each activity MUST include a timestamp in the format "HH:MM - Activity description"
- Each day MUST include:
  * "image": MANDATORY - Select the most appropriate image path from available photos based on location and activities
  * "what_to_expect": Write a warm, engaging paragraph (3-4 sentences)
  * "optional_activities": An array of 2-4 optional activities
- Keep tone warm, elegant, premium, and human
- Make activities detailed, specific, and realistic
{child_note}

Return ONLY valid JSON in this format:
{{
  "title": "Option title",
  "summary": "Short elegant overview paragraph (3-4 lines)",
  "days": [
    {{
      "day": 1,
      "title": "Day title",
      "location": "Location name",
      "image": "/images/location.jpg",
      "activities": ["09:00 - Activity with timestamp"],
      "what_to_expect": "Description paragraph",
      "optional_activities": ["Optional activity"]
    }}
  ]
}}"""


# -----------------------------
# Retry escalation
# -----------------------------
def strictness_block(level: int, expected_days: Optional[int], previous_days: Optional[int]) -> str:
    """
    Level 0 adds nothing. Level 1 points at the previous mistake, level 2 spells
    out every day number the answer has to contain.
    """
    if level <= 0:
        return ""

    if expected_days is None:
        return (
            "\n\nCORRECTION: Your previous answer was not usable. Return ONLY one JSON object "
            "with \"title\", \"summary\" and a non-empty \"days\" array."
        )

    if previous_days is None:
        mistake = "Your previous answer could not be parsed as the required JSON object."
    else:
        mistake = f"Your previous answer contained {previous_days} days."

    if level == 1:
        return (
            f"\n\nCORRECTION: {mistake} The \"days\" array MUST contain EXACTLY {expected_days} "
            f"entries, one per calendar day of the trip, numbered 1 to {expected_days}. "
            "Do not merge days and do not add extra days."
        )

    numbers = ", ".join(str(n) for n in range(1, expected_days + 1))
    return (
        f"\n\nFINAL WARNING: {mistake} This is the last attempt. Return EXACTLY {expected_days} "
        f"day objects with \"day\" values {numbers}. Any other count will be rejected. "
        "Keep each description concise so the whole JSON fits in the response."
    )


# -----------------------------
# Day image prompt
# -----------------------------
def build_image_prompt(day: Dict[str, Any]) -> str:
    activities = ", ".join((day.get("activities") or [])[:2])
    return (
        f"A beautiful, professional travel photograph of {day.get('location') or 'Sri Lanka'}, Sri Lanka. "
        f"{day.get('title') or ''}. {day.get('what_to_expect') or ''} {activities}. "
        "Stunning landscape, high quality, travel photography style, vibrant colors, luxury travel aesthetic."
    )
