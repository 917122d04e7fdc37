# backend/travel_crm/core/llm.py

from dataclasses import dataclass
from typing import Optional

from openai import OpenAI, OpenAIError

from travel_crm.core.config_loader import settings
from travel_crm.core.errors import ConfigurationError
from travel_crm.core.logger import logger


@dataclass
class LLMResult:
    content: str
    finish_reason: Optional[str] = None


class LLMClient:
    """
    Small wrapper over the OpenAI SDK so the agents can be driven by a fake
    in tests. The SDK client is built on first use.
    """

    def __init__(self, api_key: Optional[str] = None):
        self._api_key = api_key
        self._client: Optional[OpenAI] = None

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            api_key = self._api_key or settings.OPENAI_API_KEY
            if not api_key:
                logger.error("Missing OPENAI_API_KEY")
                raise ConfigurationError("Missing OpenAI key")
            self._client = OpenAI(api_key=api_key)
        return self._client

    # ---------------------------------------------------------------------------
    # CHAT: JSON MODE
    # ---------------------------------------------------------------------------
    def chat_json(self, system: str, user: str, temperature: float, max_tokens: int) -> LLMResult:
        completion = self.client.chat.completions.create(
            model=settings.CHAT_MODEL,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
            response_format={"type": "json_object"},
        )

        choice = completion.choices[0] if completion.choices else None
        if choice is None:
            return LLMResult(content="", finish_reason=None)

        content = (choice.message.content or "").strip()
        return LLMResult(content=content, finish_reason=choice.finish_reason)

    # ---------------------------------------------------------------------------
    # IMAGES
    # ---------------------------------------------------------------------------
    def generate_image(self, prompt: str) -> Optional[str]:
        try:
            response = self.client.images.generate(
                model=settings.IMAGE_MODEL,
                prompt=prompt,
                size=settings.IMAGE_SIZE,
                quality="standard",
                n=1,
            )
        except OpenAIError as e:
            logger.error(f"Image generation failed: {e}")
            return None

        if response.data and response.data[0].url:
            return response.data[0].url
        return None
