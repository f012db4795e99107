# core/models/llm_output.py
"""
Analyst (LLM) output contract.

The analyst returns a JSON object keyed by finding_id. Each entry may only
carry severity, claim_parts, implications and suppressions; confidence is
code-derived and is rejected if present. Parse failures and schema
mismatches are reported through LLMOutputError subclasses, separate from
alert ValidationErrors.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator

from core.models.claim import ClaimParts
from core.models.finding import Finding
from core.models.implications import ALL_IMPLICATIONS


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"


MAX_IMPLICATIONS = 5

# A fenced block wrapping the whole response: ```json ... ```
_CODE_FENCE = re.compile(r"\A```[a-zA-Z]*[ \t]*\n?(.*?)\n?[ \t]*```\Z", re.DOTALL)


# =============================================================================
# Errors
# =============================================================================


class LLMOutputError(Exception):
    """Base class for analyst output failures."""
    pass


class LLMOutputParseError(LLMOutputError):
    """Raised when the raw analyst text is not valid JSON."""
    pass


class LLMOutputSchemaError(LLMOutputError):
    """Raised when parsed analyst JSON does not match the output schema."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = list(errors or [])


# =============================================================================
# Schema
# =============================================================================


class LLMFindingOutput(BaseModel):
    """Annotation for a single finding."""
    model_config = ConfigDict(extra="forbid", frozen=True, use_enum_values=True)

    severity: Severity
    claim_parts: ClaimParts
    implications: List[str] = Field(min_length=1, max_length=MAX_IMPLICATIONS)
    suppressions: List[str] = Field(default_factory=list)

    @field_validator("implications")
    @classmethod
    def implications_known(cls, value: List[str]) -> List[str]:
        unknown = [imp for imp in value if imp not in ALL_IMPLICATIONS]
        if unknown:
            raise ValueError(f"unknown implications: {', '.join(unknown)}")
        return value


@dataclass(frozen=True)
class KeyCheck:
    """Result of comparing analyst keys with the finding id set."""
    valid: bool
    missing: List[str]
    extra: List[str]


def validate_llm_output_keys(output: Mapping[str, Any], findings: Iterable[Finding]) -> KeyCheck:
    """Check that the output keys equal the finding ids exactly."""
    finding_ids = [f.id for f in findings]
    id_set = set(finding_ids)
    missing = [fid for fid in finding_ids if fid not in output]
    extra = [key for key in output if key not in id_set]
    return KeyCheck(valid=not missing and not extra, missing=missing, extra=extra)


def strip_code_fences(raw: str) -> str:
    """Remove a fence around the whole response; fences inside values are kept."""
    text = raw.strip()
    match = _CODE_FENCE.match(text)
    return match.group(1).strip() if match else text


def parse_llm_output(raw: str, findings: List[Finding]) -> Dict[str, LLMFindingOutput]:
    """
    Parse and strictly validate raw analyst text.

    Raises:
        LLMOutputParseError: text is not JSON
        LLMOutputSchemaError: JSON is not a non-empty object of valid
            entries keyed exactly by the finding ids
    """
    try:
        parsed = json.loads(strip_code_fences(raw))
    except json.JSONDecodeError as e:
        raise LLMOutputParseError(f"Failed to parse LLM output as JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise LLMOutputSchemaError(
            f"LLM output must be a JSON object, got {type(parsed).__name__}"
        )
    if not parsed:
        raise LLMOutputSchemaError("LLM output is empty")

    key_check = validate_llm_output_keys(parsed, findings)
    if not key_check.valid:
        key_errors = [f"missing finding_id: {fid}" for fid in key_check.missing]
        key_errors += [f"unknown finding_id: {fid}" for fid in key_check.extra]
        raise LLMOutputSchemaError("LLM output keys do not match findings", key_errors)

    output: Dict[str, LLMFindingOutput] = {}
    errors: List[str] = []
    for finding_id, entry in parsed.items():
        try:
            output[finding_id] = LLMFindingOutput.model_validate(entry)
        except PydanticValidationError as e:
            for err in e.errors():
                loc = ".".join(str(part) for part in err["loc"])
                errors.append(f"{finding_id}.{loc}: {err['msg']}")

    if errors:
        raise LLMOutputSchemaError("LLM output failed schema validation", errors)

    return output
