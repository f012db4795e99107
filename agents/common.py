# agents/common.py
"""Shared builders for rank-based findings."""
from __future__ import annotations

from typing import Optional

from agents.context import MatchupContext
from core.models.finding import (
    AgentType,
    Finding,
    FindingScope,
    FindingSourceType,
    ValueType,
    finding_id,
)


def is_at_most(value: Optional[float], limit: float) -> bool:
    return value is not None and value <= limit


def is_at_least(value: Optional[float], limit: float) -> bool:
    return value is not None and value >= limit


def local_source_ref(agent: AgentType, data_version: str) -> str:
    return f"local://data/{agent.value}/{data_version}.json"


def rank_finding(
    agent: AgentType,
    context: MatchupContext,
    id_parts: tuple,
    type: str,
    stat: str,
    value: float,
    threshold_met: str,
    comparison: str,
    scope: FindingScope = FindingScope.PLAYER,
    sample_size: Optional[int] = None,
    player: Optional[str] = None,
) -> Finding:
    """A numeric finding backed by the agent's local data file."""
    return Finding(
        id=finding_id(agent, *id_parts, timestamp=context.data_timestamp),
        agent=agent,
        type=type,
        stat=stat,
        value_num=value,
        value_type=ValueType.NUMERIC,
        threshold_met=threshold_met,
        comparison_context=comparison,
        source_ref=local_source_ref(agent, context.data_version),
        source_type=FindingSourceType.LOCAL,
        source_timestamp=context.data_timestamp,
        scope=scope,
        sample_size=sample_size,
        players_mentioned=(player,) if player else (),
    )
