# core/alert_assembler.py
"""
Alert Assembler - merges code-derived fields with the analyst annotation.

Alert = merge(CodeDerivedAlertFields, LLMDerivedAlertFields)

Assembly is strict and total:
- every finding needs an annotation keyed by its id
- every annotation key must belong to a finding
- partial alert sets are never returned

Assembly does not validate alerts; the validator chain runs afterwards.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional

from core.confidence import DAY_MS, calculate_finding_confidence, now_ms
from core.models.alert import (
    CODE_DERIVED_FIELDS,
    Alert,
    CodeDerivedAlertFields,
    Freshness,
)
from core.models.claim import MAX_CLAIM_LENGTH, format_number, render_claim
from core.models.evidence import LocalEvidence, Source, WebEvidence
from core.models.finding import AgentType, Finding, FindingSourceType
from core.models.llm_output import LLMFindingOutput, Severity


_logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_CONFIDENCE = 0.5
WEEK_MS = 7 * DAY_MS
FALLBACK_HIGH_SEVERITY_CONFIDENCE = 0.7

# Default implication per agent for fallback alerts
DEFAULT_IMPLICATIONS: Dict[AgentType, List[str]] = {
    AgentType.EPA: ["team_total_over"],
    AgentType.PRESSURE: ["qb_sacks_over"],
    AgentType.WEATHER: ["game_total_under"],
    AgentType.QB: ["qb_pass_yards_over"],
    AgentType.HB: ["rb_rush_yards_over"],
    AgentType.WR: ["wr_yards_over"],
    AgentType.TE: ["te_receptions_over"],
    AgentType.NOTES: ["team_total_over"],
    AgentType.INJURY: ["team_total_under"],
    AgentType.USAGE: ["wr_receptions_over"],
    AgentType.PACE: ["game_total_over"],
}


class AssemblyError(Exception):
    """Raised when findings and annotations cannot be merged one-to-one."""
    pass


# =============================================================================
# Code-derived fields
# =============================================================================


def compute_freshness(source_timestamp: int, now: Optional[int] = None) -> Freshness:
    """Bucket source age: live (< 1 day), weekly (< 7 days), stale."""
    current = now if now is not None else now_ms()
    age = current - source_timestamp
    if age < DAY_MS:
        return Freshness.LIVE
    if age < WEEK_MS:
        return Freshness.WEEKLY
    return Freshness.STALE


def build_code_derived_fields(
    finding: Finding,
    confidence: float,
    data_version: str,
    now: Optional[int] = None,
) -> CodeDerivedAlertFields:
    """Build one evidence entry and one source entry mirroring the finding."""
    is_web = finding.source_type == FindingSourceType.WEB
    evidence_fields = dict(
        stat=finding.stat,
        value_num=finding.value_num,
        value_str=finding.value_str,
        value_type=finding.value_type.value,
        comparison=finding.comparison_context,
        source_ref=finding.source_ref,
        quote_snippet=finding.quote_snippet,
    )
    if is_web:
        evidence = WebEvidence(**evidence_fields)
    else:
        evidence = LocalEvidence(**evidence_fields)

    source = Source(
        type="web" if is_web else "local",
        ref=finding.source_ref,
        data_version=data_version,
        data_timestamp=finding.source_timestamp,
        search_timestamp=finding.source_timestamp if is_web else None,
        quote_snippet=finding.quote_snippet,
    )

    return CodeDerivedAlertFields(
        id=finding.id,
        agent=finding.agent,
        evidence=[evidence],
        sources=[source],
        confidence=confidence,
        freshness=compute_freshness(finding.source_timestamp, now),
    )


# =============================================================================
# Merge
# =============================================================================


def _merge_disjoint(code_fields: Dict, llm_fields: Dict) -> Dict:
    overlap = set(code_fields) & set(llm_fields)
    if overlap:
        raise AssemblyError(
            f"annotation may not override code-derived fields: {', '.join(sorted(overlap))}"
        )
    return {**code_fields, **llm_fields}


def assemble_alert(code_derived: CodeDerivedAlertFields, llm_output: LLMFindingOutput) -> Alert:
    """Merge code-derived fields with one annotation. No validation."""
    llm_fields = {
        "severity": llm_output.severity,
        "claim": render_claim(llm_output.claim_parts),
        "implications": list(llm_output.implications),
        "suppressions": list(llm_output.suppressions),
    }
    code_fields = {name: getattr(code_derived, name) for name in CODE_DERIVED_FIELDS}
    merged = _merge_disjoint(code_fields, llm_fields)
    # Fields were validated on their own models
    return Alert.model_construct(**merged)


def assemble_alerts(
    findings: List[Finding],
    llm_output: Mapping[str, LLMFindingOutput],
    confidences: Mapping[str, float],
    data_version: str,
    now: Optional[int] = None,
) -> List[Alert]:
    """
    Assemble one alert per finding, preserving finding order.

    Raises:
        AssemblyError: a finding has no annotation, or an annotation key
            matches no finding
    """
    alerts: List[Alert] = []

    for finding in findings:
        annotation = llm_output.get(finding.id)
        if annotation is None:
            raise AssemblyError(f"LLM output missing for finding: {finding.id}")

        confidence = confidences.get(finding.id, DEFAULT_CONFIDENCE)
        code_derived = build_code_derived_fields(finding, confidence, data_version, now)
        alerts.append(assemble_alert(code_derived, annotation))

    finding_ids = {f.id for f in findings}
    for key in llm_output:
        if key not in finding_ids:
            raise AssemblyError(f"LLM output contains unknown finding_id: {key}")

    return alerts


# =============================================================================
# Fallback
# =============================================================================


def _display_value(finding: Finding) -> str:
    if finding.value_num is not None and finding.value_type.value == "numeric":
        return format_number(finding.value_num)
    return str(finding.value)


def fallback_claim(finding: Finding) -> str:
    """
    "stat: value (comparison)", without the comparison when it only repeats
    the value, cut to the alert claim limit.
    """
    value = _display_value(finding)
    claim = f"{finding.stat}: {value}"
    if finding.comparison_context and finding.comparison_context != value:
        claim = f"{claim} ({finding.comparison_context})"
    if len(claim) > MAX_CLAIM_LENGTH:
        claim = claim[: MAX_CLAIM_LENGTH - 3].rstrip() + "..."
    return claim


def generate_fallback_alerts(
    findings: List[Finding],
    data_version: str,
    now: Optional[int] = None,
) -> List[Alert]:
    """
    Build minimal alerts straight from findings when the analyst fails.

    Claims quote the finding's own stat and comparison so no generated text
    reaches the client.
    """
    current = now if now is not None else now_ms()
    alerts: List[Alert] = []

    for finding in findings:
        confidence = calculate_finding_confidence(finding, now=current)
        code_derived = build_code_derived_fields(finding, confidence, data_version, current)
        severity = (
            Severity.HIGH if confidence >= FALLBACK_HIGH_SEVERITY_CONFIDENCE else Severity.MEDIUM
        )
        llm_fields = {
            "severity": severity.value,
            "claim": fallback_claim(finding),
            "implications": list(DEFAULT_IMPLICATIONS.get(finding.agent, [])),
            "suppressions": [],
        }
        code_fields = {name: getattr(code_derived, name) for name in CODE_DERIVED_FIELDS}
        alerts.append(Alert.model_construct(**_merge_disjoint(code_fields, llm_fields)))

    _logger.info(f"Generated {len(alerts)} fallback alerts")
    return alerts
