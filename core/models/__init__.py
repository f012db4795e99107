"""Core data models for the terminal pipeline."""

from core.models.alert import (
    Alert,
    CodeDerivedAlertFields,
    Freshness,
    LLMDerivedAlertFields,
)
from core.models.bundles import (
    CorrelationGroup,
    CorrelationType,
    Ladder,
    LadderRung,
    LadderTier,
    RiskLevel,
    Script,
    ScriptLeg,
)
from core.models.claim import ClaimParts, Metric, render_claim
from core.models.evidence import (
    LINE_TTL_MS,
    LineEvidence,
    LineType,
    LocalEvidence,
    Source,
    WebEvidence,
    is_line_evidence,
)
from core.models.finding import (
    AgentType,
    Finding,
    FindingScope,
    FindingSourceType,
    ValueType,
    finding_id,
    ordinal,
    slugify,
)
from core.models.implications import (
    AGENT_IMPLICATIONS,
    ALL_IMPLICATIONS,
    validate_implications_for_agent,
)
from core.models.llm_output import (
    LLMFindingOutput,
    LLMOutputError,
    LLMOutputParseError,
    LLMOutputSchemaError,
    Severity,
    parse_llm_output,
    validate_llm_output_keys,
)
from core.models.provenance import Provenance

__all__ = [
    # Findings
    "AgentType",
    "Finding",
    "FindingScope",
    "FindingSourceType",
    "ValueType",
    "finding_id",
    "ordinal",
    "slugify",
    # Evidence
    "LINE_TTL_MS",
    "LineEvidence",
    "LineType",
    "LocalEvidence",
    "Source",
    "WebEvidence",
    "is_line_evidence",
    # Implications
    "AGENT_IMPLICATIONS",
    "ALL_IMPLICATIONS",
    "validate_implications_for_agent",
    # Claims and analyst output
    "ClaimParts",
    "Metric",
    "render_claim",
    "LLMFindingOutput",
    "LLMOutputError",
    "LLMOutputParseError",
    "LLMOutputSchemaError",
    "Severity",
    "parse_llm_output",
    "validate_llm_output_keys",
    # Alerts
    "Alert",
    "CodeDerivedAlertFields",
    "Freshness",
    "LLMDerivedAlertFields",
    # Bundles
    "CorrelationGroup",
    "CorrelationType",
    "Ladder",
    "LadderRung",
    "LadderTier",
    "RiskLevel",
    "Script",
    "ScriptLeg",
    # Provenance
    "Provenance",
]
