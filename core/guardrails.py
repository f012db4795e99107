# core/guardrails.py
"""
Operational guardrails for analyst requests.

- request token and cost limits, checked before the provider is called
- rough token and cost estimates
"""
from __future__ import annotations

import math
from typing import Any, Dict, Optional


REQUEST_LIMITS = {
    "max_input_tokens": 8000,
    "max_output_tokens": 2000,
    "max_cost_per_request": 0.15,  # USD
    "timeout_ms": 45000,
}

# USD per token
MODEL_RATES = {
    "gpt-4o": {"input": 0.005 / 1000, "output": 0.015 / 1000},
    "gpt-4o-mini": {"input": 0.00015 / 1000, "output": 0.0006 / 1000},
    "gpt-4-turbo": {"input": 0.01 / 1000, "output": 0.03 / 1000},
}
DEFAULT_RATE_MODEL = "gpt-4o"

TOKEN_LIMIT_EXCEEDED = "TOKEN_LIMIT_EXCEEDED"
COST_LIMIT_EXCEEDED = "COST_LIMIT_EXCEEDED"


class GuardrailError(Exception):
    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}


def check_request_limits(input_tokens: int, estimated_cost: Optional[float] = None) -> None:
    """Raise GuardrailError when a request would exceed token or cost limits."""
    limit = REQUEST_LIMITS["max_input_tokens"]
    if input_tokens > limit:
        raise GuardrailError(
            TOKEN_LIMIT_EXCEEDED,
            f"Input tokens ({input_tokens}) exceeds limit ({limit})",
            {"input_tokens": input_tokens, "limit": limit},
        )

    max_cost = REQUEST_LIMITS["max_cost_per_request"]
    if estimated_cost and estimated_cost > max_cost:
        raise GuardrailError(
            COST_LIMIT_EXCEEDED,
            f"Estimated cost (${estimated_cost:.4f}) exceeds limit (${max_cost})",
            {"estimated_cost": estimated_cost, "limit": max_cost},
        )


def estimate_tokens(text: str) -> int:
    """About four characters per token for English text."""
    return math.ceil(len(text) / 4)


def estimate_cost(input_tokens: int, output_tokens: int, model: str) -> float:
    rate = MODEL_RATES.get(model, MODEL_RATES[DEFAULT_RATE_MODEL])
    return input_tokens * rate["input"] + output_tokens * rate["output"]

