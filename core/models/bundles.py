# core/models/bundles.py
"""
Multi-leg output bundles: correlation groups, scripts and ladders.

All bundles are recomputed per request and never persisted.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class CorrelationType(str, Enum):
    WEATHER_CASCADE = "weather_cascade"
    DEFENSIVE_FUNNEL = "defensive_funnel"
    PLAYER_STACK = "player_stack"
    GAME_SCRIPT = "game_script"
    VOLUME_SHARE = "volume_share"


class RiskLevel(str, Enum):
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


class LadderTier(str, Enum):
    SAFE = "safe"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


MIN_SCRIPT_LEGS = 2
MAX_SCRIPT_LEGS = 6
MIN_LADDER_RUNGS = 1
MAX_LADDER_RUNGS = 5


@dataclass(frozen=True)
class CorrelationGroup:
    """A compatible grouping of alert ids found by one correlation rule."""
    type: CorrelationType
    ids: Tuple[str, ...]
    explanation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "ids": list(self.ids),
            "explanation": self.explanation,
        }


class _BundleModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, use_enum_values=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class ScriptLeg(_BundleModel):
    alert_id: str
    agent: str
    claim: str
    implication: Optional[str] = None
    implied_probability: float = Field(ge=0.0, le=1.0)


class Script(_BundleModel):
    id: str
    name: str
    correlation_type: CorrelationType
    legs: List[ScriptLeg] = Field(min_length=MIN_SCRIPT_LEGS, max_length=MAX_SCRIPT_LEGS)
    combined_confidence: float = Field(ge=0.0, le=1.0)
    risk_level: RiskLevel
    explanation: str
    provenance_hash: str


class LadderRung(_BundleModel):
    alert_id: str
    agent: str
    claim: str
    confidence: float = Field(ge=0.0, le=1.0)
    severity: str
    implications: List[str]


class Ladder(_BundleModel):
    id: str
    tier: LadderTier
    name: str
    rungs: List[LadderRung] = Field(min_length=MIN_LADDER_RUNGS, max_length=MAX_LADDER_RUNGS)
    total_implied_probability: float = Field(ge=0.0, le=1.0)
    suggested_stake_pct: float = Field(ge=0.5, le=10.0)
    provenance_hash: str
