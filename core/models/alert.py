# core/models/alert.py
"""
Alert models.

An Alert is the merge of two disjoint field sets:

- code-derived (immutable, computed from the Finding):
  id, agent, evidence, sources, confidence, freshness
- analyst-derived (constrained annotation):
  severity, claim, implications, suppressions

Alerts are built only by core.alert_assembler and are frozen afterwards.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from core.models.claim import MAX_CLAIM_LENGTH
from core.models.evidence import Evidence, Source
from core.models.finding import AgentType
from core.models.llm_output import MAX_IMPLICATIONS, Severity


class Freshness(str, Enum):
    LIVE = "live"
    WEEKLY = "weekly"
    STALE = "stale"


class _AlertModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, use_enum_values=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class CodeDerivedAlertFields(_AlertModel):
    """Fields computed by code from a Finding."""
    id: str
    agent: AgentType
    evidence: List[Evidence] = Field(min_length=1)
    sources: List[Source] = Field(min_length=1)
    confidence: float = Field(ge=0.0, le=1.0)
    freshness: Freshness


class LLMDerivedAlertFields(_AlertModel):
    """Fields contributed by the analyst annotation."""
    severity: Severity
    claim: str = Field(max_length=MAX_CLAIM_LENGTH)
    implications: List[str] = Field(min_length=1, max_length=MAX_IMPLICATIONS)
    suppressions: List[str] = Field(default_factory=list)


CODE_DERIVED_FIELDS = frozenset(CodeDerivedAlertFields.model_fields)
LLM_DERIVED_FIELDS = frozenset(LLMDerivedAlertFields.model_fields)


class Alert(CodeDerivedAlertFields, LLMDerivedAlertFields):
    """Immutable alert: code-derived fields merged with the analyst annotation."""

    @property
    def has_line_evidence(self) -> bool:
        return any(e.source_type == "line" for e in self.evidence)
