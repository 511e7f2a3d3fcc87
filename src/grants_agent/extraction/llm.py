"""Generative model clients used by the extraction engine."""

import logging
from typing import Optional, Protocol

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o"
DEFAULT_TEMPERATURE = 0.2

# Model families that accept response_format={"type": "json_object"}
_JSON_MODE_PREFIXES = ("gpt-4o", "gpt-4.1", "gpt-4-turbo", "gpt-3.5-turbo", "gpt-5", "o1", "o3", "o4")


class GenerativeModel(Protocol):
    """Anything that turns a system + user prompt into raw response text."""

    async def complete_json(self, system_prompt: str, user_prompt: str) -> Optional[str]:
        ...


def supports_json_mode(model: str) -> bool:
    """True if the model is known to support strict JSON output."""
    name = (model or "").lower()
    return any(name.startswith(p) for p in _JSON_MODE_PREFIXES)


class OpenAIChatModel:
    """OpenAI chat completions, requesting JSON-object mode when supported."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        *,
        temperature: float = DEFAULT_TEMPERATURE,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model
        self.temperature = temperature
        self._client = client or AsyncOpenAI(api_key=api_key)

    async def complete_json(self, system_prompt: str, user_prompt: str) -> Optional[str]:
        """Return the first choice's message content, or None when empty."""
        kwargs = {}
        if supports_json_mode(self.model):
            kwargs["response_format"] = {"type": "json_object"}
        response = await self._client.chat.completions.create(
            model=self.model,
            temperature=self.temperature,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            **kwargs,
        )
        if not response.choices:
            return None
        return response.choices[0].message.content

    async def aclose(self) -> None:
        await self._client.close()
