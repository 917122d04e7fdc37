# backend/travel_crm/agents/image_agent.py

from typing import Any, Dict, Optional

from travel_crm.agents.prompts import build_image_prompt
from travel_crm.core.llm import LLMClient
from travel_crm.core.logger import logger
from travel_crm.services.photo_catalog import PLACEHOLDER_IMAGE


class ImageAgent:
    def __init__(self, llm: Optional[LLMClient] = None):
        self.llm = llm or LLMClient()

    def illustrate(self, option: Dict[str, Any]) -> Dict[str, Any]:
        """Return a copy of the option with a generated image on every day."""
        days = []
        for day in option.get("days") or []:
            url = self.llm.generate_image(build_image_prompt(day))
            if url is None:
                logger.warning(f"Keeping existing image for day {day.get('day')} ({day.get('title')})")
                url = day.get("image") or PLACEHOLDER_IMAGE
            days.append({**day, "image": url})

        return {**option, "days": days}
