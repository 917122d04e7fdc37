# backend/travel_crm/services/photo_catalog.py

import json
from pathlib import Path
from typing import Dict, Any, Optional

from travel_crm.core.config_loader import settings
from travel_crm.core.logger import logger


DEFAULT_MAPPING_PATH = Path(__file__).resolve().parents[1] / "data" / "photo-mapping.json"
PLACEHOLDER_IMAGE = "/images/placeholder.jpg"


class PhotoCatalog:
    """
    Curated photo library the model picks day images from.
    A missing mapping file only means the prompt carries no photo list.
    """

    def __init__(self, mapping_path: Optional[str] = None):
        self.path = Path(mapping_path or settings.PHOTO_MAPPING_PATH or DEFAULT_MAPPING_PATH)
        self.locations: Dict[str, Dict[str, Any]] = {}
        self.activities: Dict[str, Dict[str, Any]] = {}
        self._load()

    def _load(self):
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                mapping = json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read photo mapping file {self.path}: {e}")
            return

        self.locations = mapping.get("locations") or {}
        self.activities = mapping.get("activities") or {}

    @property
    def location_names(self):
        return list(self.locations.keys())

    # -------------------------------------------------------
    # PROMPT SECTION
    # -------------------------------------------------------
    def prompt_section(self) -> str:
        if not self.locations and not self.activities:
            return ""

        lines = ["AVAILABLE PHOTOS:"]
        for location, data in self.locations.items():
            alternatives = ", ".join(data.get("alternative_images") or [])
            lines.append(f"- {location}: Primary: {data.get('primary_image')}, Alternatives: {alternatives}")
        for activity, data in self.activities.items():
            lines.append(f"- {activity}: {', '.join(data.get('images') or [])}")
        return "\n".join(lines)

    def _match(self, location: Optional[str]) -> Optional[Dict[str, Any]]:
        if not location:
            return None
        data = self.locations.get(location.strip())
        if data is None:
            # "Kandy & Peradeniya" style locations
            for name, candidate in self.locations.items():
                if name.lower() in location.lower():
                    return candidate
        return data

    # -------------------------------------------------------
    # FALLBACK IMAGE
    # -------------------------------------------------------
    def image_for_location(self, location: Optional[str]) -> str:
        data = self._match(location)
        if data and data.get("primary_image"):
            return data["primary_image"]
        return PLACEHOLDER_IMAGE

    # -------------------------------------------------------
    # "About your destinations"
    # -------------------------------------------------------
    def description_for(self, location: str) -> str:
        data = self._match(location)
        if data and data.get("description"):
            return data["description"]
        return (
            f"{location} offers unique experiences and cultural insights "
            "as part of your luxury Sri Lanka journey."
        )

    def destinations(self, option: Dict[str, Any]):
        """Unique day locations of an option, in travel order, with their blurb."""
        seen = []
        for day in option.get("days") or []:
            location = (day.get("location") or "").strip()
            if location and location not in seen:
                seen.append(location)
        return [{"name": name, "description": self.description_for(name)} for name in seen]
