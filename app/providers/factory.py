# app/providers/factory.py
"""
Provider factory for instantiating analysts.
"""

from app.providers.base import AnalystProvider
from app.providers.mock import MockAnalystProvider
from app.providers.openai import OpenAIAnalystProvider


class ProviderFactory:
    """
    Factory for creating analyst provider instances.

    Usage:
        analyst = ProviderFactory.get_analyst_provider("mock")
    """

    _analyst_providers = {
        "mock": MockAnalystProvider,
        "openai": OpenAIAnalystProvider,
    }

    @classmethod
    def get_analyst_provider(cls, source: str = "mock", **kwargs) -> AnalystProvider:
        """
        Get an analyst provider by source name.

        Args:
            source: Provider identifier ("mock", "openai")
            **kwargs: Provider-specific config (api_key, timeout, etc.)

        Returns:
            AnalystProvider instance

        Raises:
            ValueError: If source is unknown
        """
        if source not in cls._analyst_providers:
            raise ValueError(
                f"Unknown analyst provider: {source}. "
                f"Available: {list(cls._analyst_providers.keys())}"
            )

        provider_class = cls._analyst_providers[source]
        return provider_class(**kwargs)

    @classmethod
    def register_analyst_provider(cls, name: str, provider_class: type):
        """Register a new analyst provider type."""
        cls._analyst_providers[name] = provider_class

    @classmethod
    def available_analyst_providers(cls) -> list:
        """List available analyst provider names."""
        return list(cls._analyst_providers.keys())
