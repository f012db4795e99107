"""
Analyst providers.

The analyst is abstracted behind a common interface so the mock used in
development and tests can be swapped for a live model without changing
the scan pipeline.

Example:
    from app.providers import ProviderFactory

    analyst = ProviderFactory.get_analyst_provider("mock")
    raw = await analyst.annotate(prompt, model="gpt-4o-mini", temperature=0.2, max_tokens=2000)
"""

from app.providers.base import (
    SYSTEM_PROMPT,
    AnalystProvider,
    AnalystProviderError,
)

from app.providers.mock import MockAnalystProvider
from app.providers.openai import OpenAIAnalystProvider

from app.providers.factory import ProviderFactory

__all__ = [
    "SYSTEM_PROMPT",
    # Base classes
    "AnalystProvider",
    "AnalystProviderError",
    # Implementations
    "MockAnalystProvider",
    "OpenAIAnalystProvider",
    # Factory
    "ProviderFactory",
]
