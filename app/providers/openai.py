# app/providers/openai.py
"""
OpenAI chat-completions analyst.

Posts the prompt with the fixed system message and returns the first
choice's message content.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

import httpx

from app.providers.base import SYSTEM_PROMPT, AnalystProvider, AnalystProviderError

logger = logging.getLogger(__name__)

# =============================================================================
# Configuration
# =============================================================================

OPENAI_CHAT_ENDPOINT = "https://api.openai.com/v1/chat/completions"
DEFAULT_TIMEOUT_SECONDS = 45.0


def get_openai_api_key() -> Optional[str]:
    """Get OpenAI API key from environment."""
    return os.environ.get("OPENAI_API_KEY")


class OpenAIAnalystProvider(AnalystProvider):
    """Analyst backed by the OpenAI chat completions API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        endpoint: str = OPENAI_CHAT_ENDPOINT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key or get_openai_api_key()
        self._timeout = timeout
        self._endpoint = endpoint
        self._transport = transport

    @property
    def source_name(self) -> str:
        return "openai"

    async def annotate(
        self,
        prompt: str,
        *,
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        if not self._api_key:
            raise AnalystProviderError("OPENAI_API_KEY environment variable is not set.")

        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self._endpoint, headers=headers, json=payload)
        except httpx.HTTPError as e:
            raise AnalystProviderError(f"OpenAI request failed: {type(e).__name__}") from e

        if response.status_code != 200:
            error_detail = response.text
            try:
                error_detail = response.json().get("error", {}).get("message", response.text)
            except ValueError:
                pass
            raise AnalystProviderError(
                f"OpenAI API error: {error_detail}", status_code=response.status_code
            )

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise AnalystProviderError("OpenAI response has no message content") from e

        logger.info(f"OpenAI analyst responded: model={model} chars={len(content or '')}")
        return content or ""
