# core/models/finding.py
"""
Finding model.

A Finding is a structured, falsifiable observation emitted by exactly one
agent during a single run. Findings are frozen once built and are the only
input the confidence calculator and alert assembler accept.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union


class AgentType(str, Enum):
    """Detector agents known to the terminal."""
    EPA = "epa"
    PRESSURE = "pressure"
    WEATHER = "weather"
    QB = "qb"
    HB = "hb"
    WR = "wr"
    TE = "te"
    NOTES = "notes"
    INJURY = "injury"
    USAGE = "usage"
    PACE = "pace"


class FindingSourceType(str, Enum):
    """Where the data behind a finding came from."""
    LOCAL = "local"
    WEB = "web"
    NOTES = "notes"
    MATCHUP_CONTEXT = "matchup_context"


class ValueType(str, Enum):
    NUMERIC = "numeric"
    STRING = "string"


class FindingScope(str, Enum):
    PLAYER = "player"
    TEAM = "team"
    GAME = "game"


# Curated inputs that are carried as local evidence downstream
LOCAL_SOURCE_TYPES = frozenset({
    FindingSourceType.LOCAL,
    FindingSourceType.NOTES,
    FindingSourceType.MATCHUP_CONTEXT,
})


# =============================================================================
# Canonical id builder
# =============================================================================

_WHITESPACE = re.compile(r"\s+")


def slugify(part: Union[str, int, float]) -> str:
    """Lowercase a key part and collapse whitespace runs to single hyphens."""
    return _WHITESPACE.sub("-", str(part).strip().lower())


def finding_id(agent: Union[AgentType, str], *parts: Union[str, int, float], timestamp: int) -> str:
    """
    Build a deterministic finding id.

    finding_id("epa", "Jaxon Smith-Njigba", "recv", timestamp=1700000000000)
    -> "epa-jaxon-smith-njigba-recv-1700000000000"
    """
    agent_value = agent.value if isinstance(agent, AgentType) else agent
    keys = [slugify(agent_value)] + [slugify(p) for p in parts] + [str(int(timestamp))]
    return "-".join(keys)


def ordinal(n: int) -> str:
    """English ordinal for a rank: 1st, 2nd, 3rd, 4th, 11th, 22nd."""
    suffixes = ("th", "st", "nd", "rd")
    v = n % 100
    if 11 <= v <= 13:
        return f"{n}th"
    last = n % 10
    return f"{n}{suffixes[last] if last < 4 else 'th'}"


# =============================================================================
# Finding
# =============================================================================


@dataclass(frozen=True)
class Finding:
    """
    Agent-attributed observation.

    value_num / value_str hold the observed value; value_type says which
    one is meaningful. sample_size is the gate statistic a rank rule
    checked (targets, rushes, attempts, carries) and feeds the confidence
    calculator.
    """
    id: str
    agent: AgentType
    type: str
    stat: str
    value_type: ValueType
    threshold_met: str
    comparison_context: str
    source_ref: str
    source_type: FindingSourceType
    source_timestamp: int
    value_num: Optional[float] = None
    value_str: Optional[str] = None
    quote_snippet: Optional[str] = None
    scope: Optional[FindingScope] = None
    implication: Optional[str] = None
    confidence: Optional[float] = None
    sample_size: Optional[int] = None
    raw_text: Optional[str] = None
    players_mentioned: Tuple[str, ...] = ()
    payload: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self) -> None:
        if isinstance(self.agent, str):
            object.__setattr__(self, "agent", AgentType(self.agent))
        if isinstance(self.source_type, str):
            object.__setattr__(self, "source_type", FindingSourceType(self.source_type))
        if isinstance(self.value_type, str):
            object.__setattr__(self, "value_type", ValueType(self.value_type))
        if isinstance(self.scope, str):
            object.__setattr__(self, "scope", FindingScope(self.scope))
        if not self.id:
            raise ValueError("finding id must be non-empty")
        if self.value_type == ValueType.NUMERIC and self.value_num is None:
            raise ValueError(f"finding {self.id}: numeric finding requires value_num")
        if self.value_type == ValueType.STRING and self.value_str is None:
            raise ValueError(f"finding {self.id}: string finding requires value_str")
        if self.confidence is not None and not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"finding {self.id}: confidence must be in [0, 1]")
        if not isinstance(self.players_mentioned, tuple):
            object.__setattr__(self, "players_mentioned", tuple(self.players_mentioned))

    @property
    def value(self) -> Union[float, str, None]:
        return self.value_num if self.value_type == ValueType.NUMERIC else self.value_str

    @property
    def is_local(self) -> bool:
        return self.source_type in LOCAL_SOURCE_TYPES

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-safe dict, omitting unset optional fields."""
        data: Dict[str, Any] = {
            "id": self.id,
            "agent": self.agent.value,
            "type": self.type,
            "stat": self.stat,
            "value_num": self.value_num,
            "value_str": self.value_str,
            "value_type": self.value_type.value,
            "threshold_met": self.threshold_met,
            "comparison_context": self.comparison_context,
            "source_ref": self.source_ref,
            "source_type": self.source_type.value,
            "source_timestamp": self.source_timestamp,
            "quote_snippet": self.quote_snippet,
            "scope": self.scope.value if self.scope else None,
            "implication": self.implication,
            "confidence": self.confidence,
            "sample_size": self.sample_size,
            "raw_text": self.raw_text,
            "players_mentioned": list(self.players_mentioned) or None,
            "payload": dict(self.payload) or None,
        }
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Finding":
        return cls(
            id=data["id"],
            agent=AgentType(data["agent"]),
            type=data["type"],
            stat=data["stat"],
            value_type=ValueType(data["value_type"]),
            threshold_met=data["threshold_met"],
            comparison_context=data["comparison_context"],
            source_ref=data["source_ref"],
            source_type=FindingSourceType(data["source_type"]),
            source_timestamp=int(data["source_timestamp"]),
            value_num=data.get("value_num"),
            value_str=data.get("value_str"),
            quote_snippet=data.get("quote_snippet"),
            scope=FindingScope(data["scope"]) if data.get("scope") else None,
            implication=data.get("implication"),
            confidence=data.get("confidence"),
            sample_size=data.get("sample_size"),
            raw_text=data.get("raw_text"),
            players_mentioned=tuple(data.get("players_mentioned") or ()),
            payload=dict(data.get("payload") or {}),
        )
