"""Configure pytest for the Swantail Terminal project."""
import os

# =============================================================================
# Test Environment Configuration
# =============================================================================
# Set environment for tests BEFORE any imports
# app.main loads config at import time, so the analyst must not need a key
os.environ.setdefault("TERMINAL_ENABLED", "true")
os.environ.setdefault("ANALYST_PROVIDER", "mock")


def pytest_configure(config):
    """Ensure environment is set before test collection."""
    os.environ.setdefault("TERMINAL_ENABLED", "true")
    os.environ.setdefault("ANALYST_PROVIDER", "mock")
