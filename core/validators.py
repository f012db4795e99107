# core/validators.py
"""
Validator Chain - contract enforcement for assembled alerts.

The chain runs in a fixed order and stops at the first failure:
1. strict schema (no extra fields, enum and range checks)
2. id / agent immutability
3. confidence immutability
4. source integrity (no orphan or missing sources)
5. line freshness within TTL
6. implication allowlist per agent
7. no edge language without line evidence
8. freshness label consistent with source age

A rejected alert is reported with a coded ValidationError and never
silently dropped.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from core.confidence import DAY_MS, MINUTE_MS, now_ms
from core.models.alert import Alert, Freshness
from core.models.evidence import LINE_TTL_MS, is_line_evidence
from core.models.finding import Finding
from core.models.implications import validate_implications_for_agent


_logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

CONFIDENCE_TOLERANCE = 0.001
DEFAULT_EXPECTED_CONFIDENCE = 0.5
WEEK_MS = 7 * DAY_MS

# Error codes
SCHEMA_INVALID = "SCHEMA_INVALID"
ID_MISMATCH = "ID_MISMATCH"
AGENT_MISMATCH = "AGENT_MISMATCH"
CONFIDENCE_MODIFIED = "CONFIDENCE_MODIFIED"
ORPHAN_SOURCE = "ORPHAN_SOURCE"
MISSING_SOURCE = "MISSING_SOURCE"
STALE_LINE = "STALE_LINE"
INVALID_IMPLICATIONS = "INVALID_IMPLICATIONS"
EDGE_LANGUAGE_WITHOUT_LINE = "EDGE_LANGUAGE_WITHOUT_LINE"
FRESHNESS_MISMATCH = "FRESHNESS_MISMATCH"
MISSING_FINDING = "MISSING_FINDING"
UNKNOWN_ERROR = "UNKNOWN_ERROR"

ERROR_CODES = frozenset({
    SCHEMA_INVALID,
    ID_MISMATCH,
    AGENT_MISMATCH,
    CONFIDENCE_MODIFIED,
    ORPHAN_SOURCE,
    MISSING_SOURCE,
    STALE_LINE,
    INVALID_IMPLICATIONS,
    EDGE_LANGUAGE_WITHOUT_LINE,
    FRESHNESS_MISMATCH,
    MISSING_FINDING,
    UNKNOWN_ERROR,
})

# Whole word, case-insensitive
EDGE_LANGUAGE_PATTERNS = [
    re.compile(rf"\b{word}\b", re.IGNORECASE)
    for word in ("edge", "value", "mispriced", "exploit", "sharp", "lock")
]


class ValidationError(Exception):
    """A single contract violation, identified by a closed error code."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


# =============================================================================
# Individual validators
# =============================================================================


def validate_schema(alert: Union[Alert, Mapping[str, Any]]) -> Alert:
    """Strictly re-parse an alert (or raw alert dict) and return the model."""
    payload = alert if isinstance(alert, Mapping) else alert.model_dump()
    try:
        return Alert.model_validate(dict(payload))
    except PydanticValidationError as e:
        problems = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        raise ValidationError(
            SCHEMA_INVALID,
            f"Alert failed schema validation: {'; '.join(problems)}",
            {"errors": problems},
        )


def validate_id_agent_match(alert: Alert, finding: Finding) -> None:
    if alert.id != finding.id:
        raise ValidationError(
            ID_MISMATCH,
            f"Alert ID mismatch: expected {finding.id}, got {alert.id}",
            {"expected": finding.id, "actual": alert.id},
        )
    if alert.agent != finding.agent.value:
        raise ValidationError(
            AGENT_MISMATCH,
            f"Alert agent mismatch: expected {finding.agent.value}, got {alert.agent}",
            {"expected": finding.agent.value, "actual": alert.agent},
        )


def validate_confidence_immutability(alert: Alert, expected_confidence: float) -> None:
    if abs(alert.confidence - expected_confidence) > CONFIDENCE_TOLERANCE:
        raise ValidationError(
            CONFIDENCE_MODIFIED,
            f"Confidence was modified: expected {expected_confidence}, got {alert.confidence}",
            {"expected": expected_confidence, "actual": alert.confidence},
        )


def validate_source_integrity(alert: Alert) -> None:
    """Every source is cited by evidence and every evidence ref has a source."""
    evidence_refs = [e.source_ref for e in alert.evidence]
    source_refs = [s.ref for s in alert.sources]

    for ref in source_refs:
        if ref not in evidence_refs:
            raise ValidationError(
                ORPHAN_SOURCE,
                f"Orphan source: {ref} not referenced in evidence",
                {"orphan_ref": ref},
            )
    for ref in evidence_refs:
        if ref not in source_refs:
            raise ValidationError(
                MISSING_SOURCE,
                f"Missing source for evidence ref: {ref}",
                {"missing_ref": ref},
            )


def validate_line_freshness(alert: Alert, now: Optional[int] = None) -> None:
    current = now if now is not None else now_ms()
    for evidence in alert.evidence:
        if not is_line_evidence(evidence):
            continue
        ttl = LINE_TTL_MS[evidence.line_type]
        age = current - evidence.line_timestamp
        if age > ttl:
            raise ValidationError(
                STALE_LINE,
                f"Stale line evidence: {evidence.line_type} is "
                f"{round(age / MINUTE_MS)}min old (TTL: {ttl // MINUTE_MS}min)",
                {
                    "line_type": evidence.line_type,
                    "age": age,
                    "ttl": ttl,
                    "timestamp": evidence.line_timestamp,
                },
            )


def validate_implications(alert: Alert) -> None:
    valid, invalid = validate_implications_for_agent(alert.agent, alert.implications)
    if not valid:
        raise ValidationError(
            INVALID_IMPLICATIONS,
            f"Agent {alert.agent} cannot imply markets: {', '.join(invalid)}",
            {"agent": alert.agent, "invalid_implications": invalid},
        )


def validate_no_edge_without_line(alert: Alert) -> None:
    if alert.has_line_evidence:
        return
    for pattern in EDGE_LANGUAGE_PATTERNS:
        if pattern.search(alert.claim):
            raise ValidationError(
                EDGE_LANGUAGE_WITHOUT_LINE,
                f'Claim uses edge language "{pattern.pattern}" but no LineEvidence provided',
                {"claim": alert.claim, "pattern": pattern.pattern},
            )


def validate_freshness_consistency(alert: Alert, now: Optional[int] = None) -> None:
    """The freshness label may not claim more recency than the oldest source."""
    current = now if now is not None else now_ms()
    oldest = min(s.data_timestamp for s in alert.sources)
    age = current - oldest
    days = round(age / DAY_MS)

    if alert.freshness == Freshness.LIVE.value and age > DAY_MS:
        raise ValidationError(
            FRESHNESS_MISMATCH,
            f'Freshness claimed "live" but oldest source is {days} days old',
            {"freshness": alert.freshness, "age": age, "oldest_timestamp": oldest},
        )
    if alert.freshness == Freshness.WEEKLY.value and age > WEEK_MS:
        raise ValidationError(
            FRESHNESS_MISMATCH,
            f'Freshness claimed "weekly" but oldest source is {days} days old',
            {"freshness": alert.freshness, "age": age, "oldest_timestamp": oldest},
        )


# =============================================================================
# Chain
# =============================================================================


def validate_alert(
    alert: Union[Alert, Mapping[str, Any]],
    finding: Finding,
    expected_confidence: float,
    now: Optional[int] = None,
) -> Alert:
    """
    Run the full chain against one alert.

    Returns:
        The strictly re-parsed alert

    Raises:
        ValidationError: on the first violated rule
    """
    current = now if now is not None else now_ms()

    checked = validate_schema(alert)
    validate_id_agent_match(checked, finding)
    validate_confidence_immutability(checked, expected_confidence)
    validate_source_integrity(checked)
    validate_line_freshness(checked, current)
    validate_implications(checked)
    validate_no_edge_without_line(checked)
    validate_freshness_consistency(checked, current)
    return checked


@dataclass
class RejectedAlert:
    alert_id: str
    error: ValidationError

    def to_dict(self) -> Dict[str, Any]:
        return {"alert_id": self.alert_id, "error": self.error.to_dict()}


@dataclass
class BatchValidationResult:
    valid: List[Alert] = field(default_factory=list)
    errors: List[RejectedAlert] = field(default_factory=list)


def _alert_id(alert: Union[Alert, Mapping[str, Any]]) -> str:
    if isinstance(alert, Mapping):
        return str(alert.get("id", ""))
    return alert.id


def validate_alerts(
    alerts: List[Union[Alert, Mapping[str, Any]]],
    findings: List[Finding],
    confidences: Mapping[str, float],
    now: Optional[int] = None,
) -> BatchValidationResult:
    """Validate every alert independently; one failure never blocks the rest."""
    current = now if now is not None else now_ms()
    findings_by_id = {f.id: f for f in findings}
    result = BatchValidationResult()

    for alert in alerts:
        alert_id = _alert_id(alert)
        finding = findings_by_id.get(alert_id)
        if finding is None:
            result.errors.append(RejectedAlert(
                alert_id,
                ValidationError(
                    MISSING_FINDING,
                    f"No finding found for alert: {alert_id}",
                    {"alert_id": alert_id},
                ),
            ))
            continue

        expected = confidences.get(alert_id, DEFAULT_EXPECTED_CONFIDENCE)
        try:
            result.valid.append(validate_alert(alert, finding, expected, current))
        except ValidationError as e:
            result.errors.append(RejectedAlert(alert_id, e))
        except Exception as e:
            _logger.exception(f"Unexpected failure validating alert {alert_id}")
            result.errors.append(RejectedAlert(
                alert_id,
                ValidationError(UNKNOWN_ERROR, str(e), {"exception": type(e).__name__}),
            ))

    if result.errors:
        _logger.info(
            f"Validation rejected {len(result.errors)} of {len(alerts)} alerts: "
            f"{', '.join(sorted({r.error.code for r in result.errors}))}"
        )
    return result
