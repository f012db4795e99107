# app/providers/base.py
"""
Analyst provider interface.

A provider turns the analyst prompt into raw annotation text. It knows
nothing about findings or alerts: parsing and validation happen in the
core after the call returns.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


SYSTEM_PROMPT = (
    "You are a sports betting analyst. Output only valid JSON. "
    "No markdown, no explanation."
)


class AnalystProviderError(Exception):
    """Raised when the provider cannot produce a response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AnalystProvider(ABC):
    """
    Abstract base class for analyst providers.

    All analyst providers must implement this interface.
    """

    @abstractmethod
    async def annotate(
        self,
        prompt: str,
        *,
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """
        Send the prompt and return the raw response text.

        Args:
            prompt: Full analyst prompt
            model: Model identifier
            temperature: Sampling temperature
            max_tokens: Output token ceiling

        Returns:
            Raw response text (expected to be a JSON object)

        Raises:
            AnalystProviderError: On transport or upstream failure
        """
        pass

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Provider identifier (e.g., 'mock', 'openai')."""
        pass
