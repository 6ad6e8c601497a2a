"""Async OpenAI-backed Oracle with retry."""
from __future__ import annotations

import asyncio
import random
from typing import Any, Optional

import openai  # type: ignore

from ..core.config import config
from ..core.errors import OracleError
from ..core.logger import log

__all__ = ["OpenAIOracle", "VISION_MODELS"]

# Constant settings
_MAX_RETRIES = 4
_BASE_BACKOFF = 1.0  # seconds

# Vision-capable models
VISION_MODELS = [
    "gpt-4-vision-preview",
    "gpt-4o",
    "gpt-4o-mini",
    "gpt-4.1",
    "gpt-4.1-mini",
]

# Fallback when the configured model cannot read images
DEFAULT_VISION_MODEL = "gpt-4o"


class OpenAIOracle:
    """Answer coordinate questions about a screenshot via chat completions."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Any = None,
    ) -> None:
        """Create the oracle.

        Args:
            api_key: OpenAI API key; defaults to ``config.openai_api_key``.
            model: Chat model; defaults to ``config.openai_model``.
            client: Pre-built ``openai.AsyncOpenAI`` compatible client.
        """
        if client is None:
            api_key = api_key or config.openai_api_key
            if not api_key:
                raise ValueError("OPENAI_API_KEY not configured")
            client = openai.AsyncOpenAI(api_key=api_key)
        self._client = client

        self.model = self._vision_model(model or config.openai_model)
        self.temperature = float(config.openai_temperature)
        self.max_tokens = int(config.openai_max_tokens)

    @staticmethod
    def _vision_model(model: str) -> str:
        if model in VISION_MODELS:
            return model
        log.info(f"Switching to vision-capable model: {DEFAULT_VISION_MODEL}")
        return DEFAULT_VISION_MODEL

    @staticmethod
    def build_messages(image: str, prompt: str) -> list[dict[str, Any]]:
        """Return the chat payload: the prompt plus the screenshot as a data URL."""
        url = image if image.startswith("data:") else f"data:image/png;base64,{image}"
        return [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": url}},
                ],
            }
        ]

    @staticmethod
    def _message_text(content: Any) -> str:
        """Flatten string or list-of-parts message content into stripped text."""
        if isinstance(content, list):
            parts = []
            for part in content:
                if isinstance(part, str):
                    parts.append(part)
                elif isinstance(part, dict):
                    parts.append(part.get("text") or "")
                else:
                    parts.append(getattr(part, "text", None) or "")
            content = "".join(parts)
        return (content or "").strip()

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    async def ask_about_screenshot(self, image: str, prompt: str) -> str:
        """Send *prompt* with *image* attached and return the raw reply text."""
        messages = self.build_messages(image, prompt)

        backoff = _BASE_BACKOFF
        for attempt in range(_MAX_RETRIES):
            try:
                response = await self._client.chat.completions.create(
                    model=self.model,
                    messages=messages,  # type: ignore[arg-type]
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                )
                choices = getattr(response, "choices", None) or []
                message = getattr(choices[0], "message", None) if choices else None
                if message is None:
                    raise OracleError("OpenAI returned no message")
                # Empty replies are passed on; the parser degrades them.
                return self._message_text(message.content)
            except (openai.APIError, openai.RateLimitError) as exc:
                if attempt == _MAX_RETRIES - 1:
                    log.error(f"OpenAI request failed after {attempt+1} attempts: {exc}")
                    raise
                sleep_time = backoff * (2 ** attempt) + random.uniform(0, 0.5)  # noqa: S311
                log.warning(f"OpenAI error {exc}. Retrying in {sleep_time:.1f}s…")
                await asyncio.sleep(sleep_time)

        # Should not reach here
        raise OracleError("OpenAI chat completion failed after retries")
