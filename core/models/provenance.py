# core/models/provenance.py
"""Per-request provenance record."""
from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from core.models.finding import AgentType


class Provenance(BaseModel):
    """Reproducibility hash-tree for one terminal response."""
    model_config = ConfigDict(extra="forbid", frozen=True, use_enum_values=True)

    request_id: str
    prompt_hash: str
    skill_md_hashes: Dict[str, str] = Field(default_factory=dict)
    findings_hash: str
    data_version: str
    data_timestamp: int
    search_timestamps: List[int] = Field(default_factory=list)
    agents_invoked: List[AgentType] = Field(default_factory=list)
    agents_silent: List[AgentType] = Field(default_factory=list)
    cache_hits: int = Field(default=0, ge=0)
    cache_misses: int = Field(default=0, ge=0)
    llm_model: str
    llm_temperature: float

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
