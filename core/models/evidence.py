# core/models/evidence.py
"""
Evidence and Source schemas.

Evidence is one quantifiable comparison embedded in an Alert, discriminated
by source_type (local / web / line). A Source is the provenance record for
the evidence that cites it through source_ref.
"""
from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class LineType(str, Enum):
    SPREAD = "spread"
    TOTAL = "total"
    PROP = "prop"
    MONEYLINE = "moneyline"


# Maximum line age per market, in milliseconds
LINE_TTL_MS = {
    LineType.SPREAD.value: 30 * 60 * 1000,
    LineType.TOTAL.value: 30 * 60 * 1000,
    LineType.PROP.value: 15 * 60 * 1000,
    LineType.MONEYLINE.value: 60 * 60 * 1000,
}


class _StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, use_enum_values=True)


class _EvidenceBase(_StrictModel):
    stat: str
    value_num: Optional[float] = None
    value_str: Optional[str] = None
    value_type: Literal["numeric", "string"]
    comparison: str
    source_ref: str
    quote_snippet: Optional[str] = None


class LocalEvidence(_EvidenceBase):
    """Evidence drawn from local data files, curated notes or matchup context."""
    source_type: Literal["local"] = "local"


class WebEvidence(_EvidenceBase):
    """Evidence drawn from a web search; the quoted snippet is mandatory."""
    source_type: Literal["web"] = "web"
    quote_snippet: str


class LineEvidence(_EvidenceBase):
    """Evidence drawn from a sportsbook line."""
    source_type: Literal["line"] = "line"
    line_type: LineType
    line_value: float
    line_odds: float
    book: str
    line_timestamp: int
    line_ttl: int


Evidence = Annotated[
    Union[LocalEvidence, WebEvidence, LineEvidence],
    Field(discriminator="source_type"),
]


def is_line_evidence(evidence: BaseModel) -> bool:
    return getattr(evidence, "source_type", None) == "line"


class Source(_StrictModel):
    """Provenance record for a group of evidence."""
    type: Literal["local", "web", "line"]
    ref: str
    data_version: str
    data_timestamp: int
    search_timestamp: Optional[int] = None
    quote_snippet: Optional[str] = None
