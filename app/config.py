# app/config.py
"""
Centralized configuration management with startup validation.

Every setting is optional. Invalid values fall back to their defaults and
are collected as warnings, which are logged with the [CONFIG] prefix.
"""
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

SERVICE_NAME = "swantail-terminal"
SERVICE_VERSION = "0.1.0"

DEFAULT_MAX_REQUEST_SIZE_BYTES = 1_048_576  # 1MB
MIN_REQUEST_SIZE_BYTES = 1024

ANALYST_PROVIDERS = ("mock", "openai")
DEFAULT_ANALYST_PROVIDER = "mock"
DEFAULT_ANALYST_MODEL = "gpt-4o-mini"
DEFAULT_ANALYST_TEMPERATURE = 0.2
DEFAULT_ANALYST_TIMEOUT_MS = 45000
MIN_ANALYST_TIMEOUT_MS = 1000
DEFAULT_ANALYST_CACHE_TTL_SECONDS = 300  # 0 disables the response cache

# Sensitive substrings that should never appear in logs
SENSITIVE_SUBSTRINGS = ("key", "token", "secret", "password", "credential", "auth")


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""

    pass


# =============================================================================
# Configuration Dataclass
# =============================================================================


@dataclass
class AppConfig:
    """Application configuration loaded from environment."""

    # Service info
    service_name: str = SERVICE_NAME
    service_version: str = SERVICE_VERSION
    environment: str = "development"

    # Security settings
    max_request_size_bytes: int = DEFAULT_MAX_REQUEST_SIZE_BYTES

    # Feature flags
    terminal_enabled: bool = True

    # Analyst settings
    analyst_provider: str = DEFAULT_ANALYST_PROVIDER
    analyst_model: str = DEFAULT_ANALYST_MODEL
    analyst_temperature: float = DEFAULT_ANALYST_TEMPERATURE
    analyst_timeout_ms: int = DEFAULT_ANALYST_TIMEOUT_MS
    analyst_cache_ttl_seconds: int = DEFAULT_ANALYST_CACHE_TTL_SECONDS

    # Season used for threshold lookup when a request does not name one
    season_year: Optional[int] = None

    # API keys (presence only, never the value)
    openai_api_key_present: bool = False

    # Warnings collected during config load
    warnings: list = field(default_factory=list)


# =============================================================================
# Configuration Loading
# =============================================================================


def _parse_int_env(
    name: str, default: Optional[int], min_value: Optional[int] = None
) -> tuple[Optional[int], Optional[str]]:
    """
    Parse an integer environment variable with validation.

    Returns (value, warning_message).
    On invalid input, returns default with a warning.
    """
    raw = os.environ.get(name)
    if raw is None:
        return default, None

    try:
        value = int(raw)
    except ValueError:
        warning = f"{name}='{raw}' is not a valid integer; using default {default}"
        return default, warning

    if min_value is not None and value < min_value:
        warning = f"{name}={value} is below minimum {min_value}; using default {default}"
        return default, warning

    return value, None


def _parse_float_env(
    name: str, default: float, min_value: float, max_value: float
) -> tuple[float, Optional[str]]:
    """Parse a float environment variable bounded to [min_value, max_value]."""
    raw = os.environ.get(name)
    if raw is None:
        return default, None

    try:
        value = float(raw)
    except ValueError:
        return default, f"{name}='{raw}' is not a valid number; using default {default}"

    if not min_value <= value <= max_value:
        return default, (
            f"{name}={value} is outside [{min_value}, {max_value}]; using default {default}"
        )

    return value, None


def _parse_bool_env(name: str, default: bool = False) -> bool:
    """Parse a boolean environment variable."""
    raw = os.environ.get(name, "").lower()
    if raw in ("true", "1", "yes", "on"):
        return True
    if raw in ("false", "0", "no", "off"):
        return False
    return default


def load_config(fail_fast: bool = True) -> AppConfig:
    """
    Load and validate application configuration from environment.

    Args:
        fail_fast: If True, raise ConfigurationError on critical issues.
                   If False, collect warnings and continue.

    Returns:
        AppConfig instance with validated configuration.

    Raises:
        ConfigurationError: If the openai analyst is selected without an
                           API key and fail_fast is True.
    """
    warnings = []

    environment = os.environ.get("RAILWAY_ENVIRONMENT", "development")
    max_request_size, size_warning = _parse_int_env(
        "MAX_REQUEST_SIZE_BYTES",
        DEFAULT_MAX_REQUEST_SIZE_BYTES,
        min_value=MIN_REQUEST_SIZE_BYTES,
    )
    if size_warning:
        warnings.append(size_warning)

    terminal_enabled = _parse_bool_env("TERMINAL_ENABLED", True)

    analyst_provider = os.environ.get("ANALYST_PROVIDER", DEFAULT_ANALYST_PROVIDER).lower()
    if analyst_provider not in ANALYST_PROVIDERS:
        warnings.append(
            f"ANALYST_PROVIDER='{analyst_provider}' is not one of {list(ANALYST_PROVIDERS)}; "
            f"using default {DEFAULT_ANALYST_PROVIDER}"
        )
        analyst_provider = DEFAULT_ANALYST_PROVIDER

    analyst_model = os.environ.get("ANALYST_MODEL", DEFAULT_ANALYST_MODEL)

    analyst_temperature, temperature_warning = _parse_float_env(
        "ANALYST_TEMPERATURE", DEFAULT_ANALYST_TEMPERATURE, 0.0, 2.0
    )
    if temperature_warning:
        warnings.append(temperature_warning)

    analyst_timeout_ms, timeout_warning = _parse_int_env(
        "ANALYST_TIMEOUT_MS", DEFAULT_ANALYST_TIMEOUT_MS, min_value=MIN_ANALYST_TIMEOUT_MS
    )
    if timeout_warning:
        warnings.append(timeout_warning)

    analyst_cache_ttl_seconds, cache_warning = _parse_int_env(
        "ANALYST_CACHE_TTL_SECONDS", DEFAULT_ANALYST_CACHE_TTL_SECONDS, min_value=0
    )
    if cache_warning:
        warnings.append(cache_warning)

    season_year, season_warning = _parse_int_env("SEASON_YEAR", None, min_value=2000)
    if season_warning:
        warnings.append(season_warning)

    # API key presence (check presence, don't store value)
    openai_key = os.environ.get("OPENAI_API_KEY")
    openai_api_key_present = bool(openai_key and len(openai_key) > 0)

    if analyst_provider == "openai" and not openai_api_key_present:
        message = "ANALYST_PROVIDER is openai but OPENAI_API_KEY is not set"
        if fail_fast:
            raise ConfigurationError(message)
        warnings.append(f"{message}; scans will use fallback alerts")

    # Log warnings
    for warning in warnings:
        logger.warning(f"[CONFIG] {warning}")

    return AppConfig(
        environment=environment,
        max_request_size_bytes=max_request_size,
        terminal_enabled=terminal_enabled,
        analyst_provider=analyst_provider,
        analyst_model=analyst_model,
        analyst_temperature=analyst_temperature,
        analyst_timeout_ms=analyst_timeout_ms,
        analyst_cache_ttl_seconds=analyst_cache_ttl_seconds,
        season_year=season_year,
        openai_api_key_present=openai_api_key_present,
        warnings=warnings,
    )


def log_config_snapshot(config: AppConfig) -> str:
    """
    Generate and log a safe configuration snapshot.

    Returns the snapshot string for testing purposes.
    Never logs actual secret values - only boolean presence flags.
    """
    snapshot = (
        f"[STARTUP] service={config.service_name} "
        f"version={config.service_version} "
        f"environment={config.environment} "
        f"max_request_size_bytes={config.max_request_size_bytes} "
        f"terminal_enabled={config.terminal_enabled} "
        f"analyst_provider={config.analyst_provider} "
        f"analyst_model={config.analyst_model} "
        f"analyst_temperature={config.analyst_temperature} "
        f"analyst_timeout_ms={config.analyst_timeout_ms} "
        f"analyst_cache_ttl_seconds={config.analyst_cache_ttl_seconds} "
        f"season_year={config.season_year} "
        f"openai_api_key_present={config.openai_api_key_present}"
    )
    logger.info(snapshot)
    return snapshot


def validate_config_snapshot_safety(snapshot: str) -> bool:
    """
    Validate that a config snapshot doesn't contain sensitive values.

    Returns True if safe, False if potentially unsafe.
    """
    snapshot_lower = snapshot.lower()

    # "key_present=true" is fine, "key=sk-..." is not
    for sensitive in SENSITIVE_SUBSTRINGS:
        pattern = rf"{sensitive}=(?!true|false)"
        if re.search(pattern, snapshot_lower):
            return False

    return True
