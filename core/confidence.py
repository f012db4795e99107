# core/confidence.py
"""
Confidence Calculator - code-derived confidence for findings and alerts.

Confidence is never taken from the analyst. It is a pure function of:
- evidence count
- source quality (local vs fresh web)
- sample size, when the rule had a sample gate
- line freshness, when line evidence is present
- local data age

Baseline 0.5, additive adjustments, clamped to [0, 1]. Identical inputs
always produce the identical score.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence

from core.models.evidence import is_line_evidence
from core.models.finding import Finding, FindingSourceType


# =============================================================================
# Constants
# =============================================================================

BASELINE = 0.5

BONUS_EVIDENCE_3_PLUS = 0.15
BONUS_EVIDENCE_2 = 0.08
BONUS_LOCAL_SOURCE = 0.10
BONUS_FRESH_WEB_SOURCE = 0.08
BONUS_SAMPLE_100 = 0.12
BONUS_SAMPLE_50 = 0.06
PENALTY_SMALL_SAMPLE = 0.10
BONUS_LINE_30_MIN = 0.10
BONUS_LINE_2_HOURS = 0.05
PENALTY_STALE_LINE = 0.15
PENALTY_OLD_LOCAL_DATA = 0.20

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS

WEB_FRESH_MS = 4 * HOUR_MS
LINE_FRESH_MS = 30 * MINUTE_MS
LINE_RECENT_MS = 2 * HOUR_MS
LOCAL_DATA_MAX_AGE_MS = 7 * DAY_MS


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ConfidenceInputs:
    """Evidence characteristics the score is computed from. Ages are in ms."""
    evidence_count: int = 1
    has_local_source: bool = False
    has_web_source: bool = False
    web_source_age: Optional[int] = None
    local_data_age: int = 0
    sample_size: Optional[int] = None
    has_line_evidence: bool = False
    line_age: Optional[int] = None


def calculate_confidence(inputs: ConfidenceInputs) -> float:
    """Score evidence characteristics into [0, 1]."""
    score = BASELINE

    if inputs.evidence_count >= 3:
        score += BONUS_EVIDENCE_3_PLUS
    elif inputs.evidence_count >= 2:
        score += BONUS_EVIDENCE_2

    if inputs.has_local_source:
        score += BONUS_LOCAL_SOURCE
    if (
        inputs.has_web_source
        and inputs.web_source_age is not None
        and inputs.web_source_age < WEB_FRESH_MS
    ):
        score += BONUS_FRESH_WEB_SOURCE

    if inputs.sample_size is not None:
        if inputs.sample_size >= 100:
            score += BONUS_SAMPLE_100
        elif inputs.sample_size >= 50:
            score += BONUS_SAMPLE_50
        else:
            score -= PENALTY_SMALL_SAMPLE

    if inputs.has_line_evidence and inputs.line_age is not None:
        if inputs.line_age < LINE_FRESH_MS:
            score += BONUS_LINE_30_MIN
        elif inputs.line_age < LINE_RECENT_MS:
            score += BONUS_LINE_2_HOURS
        else:
            score -= PENALTY_STALE_LINE

    if inputs.local_data_age > LOCAL_DATA_MAX_AGE_MS:
        score -= PENALTY_OLD_LOCAL_DATA

    return max(0.0, min(1.0, score))


# =============================================================================
# Input builders
# =============================================================================


def confidence_inputs_from_finding(
    finding: Finding,
    sample_size: Optional[int] = None,
    line_timestamp: Optional[int] = None,
    now: Optional[int] = None,
) -> ConfidenceInputs:
    """
    Build inputs for a single finding.

    A finding is one piece of evidence. Curated notes and matchup context
    count as local sources. sample_size falls back to the finding's own
    gate statistic.
    """
    current = now if now is not None else now_ms()
    is_web = finding.source_type == FindingSourceType.WEB
    is_local = finding.is_local
    age = current - finding.source_timestamp

    return ConfidenceInputs(
        evidence_count=1,
        has_local_source=is_local,
        has_web_source=is_web,
        web_source_age=age if is_web else None,
        local_data_age=age if is_local else 0,
        sample_size=sample_size if sample_size is not None else finding.sample_size,
        has_line_evidence=False,
        line_age=current - line_timestamp if line_timestamp is not None else None,
    )


def confidence_inputs_from_evidence(
    evidence: Sequence,
    data_timestamp: int,
    now: Optional[int] = None,
) -> ConfidenceInputs:
    """Build inputs from several evidence entries sharing one data timestamp."""
    current = now if now is not None else now_ms()
    has_web = any(e.source_type == "web" for e in evidence)
    line_timestamps = [e.line_timestamp for e in evidence if is_line_evidence(e)]

    return ConfidenceInputs(
        evidence_count=len(evidence),
        has_local_source=any(e.source_type == "local" for e in evidence),
        has_web_source=has_web,
        web_source_age=current - data_timestamp if has_web else None,
        local_data_age=current - data_timestamp,
        sample_size=None,
        has_line_evidence=bool(line_timestamps),
        line_age=current - min(line_timestamps) if line_timestamps else None,
    )


def calculate_finding_confidence(
    finding: Finding,
    sample_size: Optional[int] = None,
    now: Optional[int] = None,
) -> float:
    return calculate_confidence(confidence_inputs_from_finding(finding, sample_size, now=now))


def calculate_confidences(findings: Iterable[Finding], now: Optional[int] = None) -> Dict[str, float]:
    """Confidence map keyed by finding id."""
    current = now if now is not None else now_ms()
    return {f.id: calculate_finding_confidence(f, now=current) for f in findings}
