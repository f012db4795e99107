# app/providers/mock.py
"""
Mock analyst for development and testing.

Reads the findings embedded in the prompt and answers with one valid,
deterministic annotation per finding id.
"""
from __future__ import annotations

import json
import re
from typing import Any, Dict, List

from app.providers.base import AnalystProvider, AnalystProviderError
from core.alert_assembler import DEFAULT_IMPLICATIONS
from core.models.finding import AgentType
from core.models.implications import allowed_implications


_FINDINGS_BLOCK = re.compile(r"## Findings\s*```json\s*(.*?)```", re.DOTALL)

STAT_METRICS = {
    "receiving_epa_rank": "receiving_epa",
    "rushing_epa_rank": "rushing_epa",
    "pressure_rate_rank": "pressure_rate",
    "qb_passer_rating_under_pressure": "passer_rating",
    "qb_rating_rank": "passer_rating",
    "yards_per_attempt_rank": "yards_per_attempt",
    "target_share_rank": "target_share",
    "separation_rank": "separation",
    "red_zone_target_rank": "red_zone_targets",
    "usage_metrics": "snap_count",
}

AGENT_METRICS = {
    "qb": "passer_rating",
    "hb": "rushing_epa",
    "wr": "target_share",
    "te": "target_share",
    "weather": "completion_rate",
    "usage": "snap_count",
}

DEFAULT_METRIC = "epa_allowed"


def extract_findings(prompt: str) -> List[Dict[str, Any]]:
    """Pull the findings JSON array out of an analyst prompt."""
    match = _FINDINGS_BLOCK.search(prompt)
    if match is None:
        raise AnalystProviderError("Prompt has no findings block")
    try:
        findings = json.loads(match.group(1))
    except json.JSONDecodeError as e:
        raise AnalystProviderError(f"Findings block is not valid JSON: {e}") from e
    if not isinstance(findings, list):
        raise AnalystProviderError("Findings block must be a JSON array")
    return findings


def mock_annotation(finding: Dict[str, Any]) -> Dict[str, Any]:
    """Deterministic annotation for one finding dict."""
    agent = finding.get("agent", "")
    metric = STAT_METRICS.get(finding.get("stat"), AGENT_METRICS.get(agent, DEFAULT_METRIC))

    claim_parts: Dict[str, Any] = {
        "metrics": [metric],
        "direction": "positive",
        "comparator": "matches",
    }
    value = finding.get("value_num")
    if str(finding.get("stat", "")).endswith("_rank") and value is not None:
        claim_parts["comparator"] = "ranks"
        claim_parts["rank_or_percentile"] = {
            "type": "rank",
            "value": value,
            "scope": "league",
            "direction": "top",
        }

    implication = finding.get("implication")
    if implication and implication in allowed_implications(agent):
        implications = [implication]
    else:
        implications = list(DEFAULT_IMPLICATIONS.get(AgentType(agent), []))

    return {
        "severity": "high" if finding.get("value_type") == "numeric" else "medium",
        "claim_parts": claim_parts,
        "implications": implications,
        "suppressions": [],
    }


class MockAnalystProvider(AnalystProvider):
    """Answers every prompt with valid annotations, no network."""

    def __init__(self, fail: bool = False):
        self._fail = fail
        self.calls = 0

    @property
    def source_name(self) -> str:
        return "mock"

    async def annotate(
        self,
        prompt: str,
        *,
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        self.calls += 1
        if self._fail:
            raise AnalystProviderError("Mock provider configured to fail", status_code=503)
        findings = extract_findings(prompt)
        return json.dumps({f["id"]: mock_annotation(f) for f in findings})
