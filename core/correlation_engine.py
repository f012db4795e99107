# core/correlation_engine.py
"""
Correlation Engine - groups compatible alerts for multi-leg bundles.

Rules are evaluated in a fixed order. Each rule looks only at which agents
are present among the candidate alerts and which implications they carry,
so the same alert set always yields the same groups.

With exclusive=True (default) an alert consumed by an earlier rule is not
offered to later rules. With exclusive=False every rule sees every alert.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional, Sequence

from core.models.bundles import CorrelationGroup, CorrelationType
from core.models.finding import AgentType


_logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

MIN_GROUP_SIZE = 2

PASSING_GAME_AGENTS = frozenset({AgentType.QB.value, AgentType.WR.value, AgentType.TE.value})
RECEIVER_AGENTS = frozenset({AgentType.WR.value, AgentType.TE.value})

# Markets decided by the passing game
PASSING_IMPLICATION_PREFIXES = (
    "qb_pass_",
    "qb_completions_",
    "qb_ints_",
    "pass_yards_",
    "wr_",
    "te_",
)
QB_PASSING_PREFIXES = ("qb_pass_", "qb_completions_")
RECEIVING_PREFIXES = ("wr_", "te_")


def is_passing_implication(implication: str) -> bool:
    return implication.startswith(PASSING_IMPLICATION_PREFIXES)


def _is_over(implication: str, prefixes: Sequence[str]) -> bool:
    return implication.startswith(tuple(prefixes)) and implication.endswith("_over")


# =============================================================================
# Rule table
# =============================================================================


class _Candidates:
    """Lookup helpers over the alerts a rule may use."""

    def __init__(
        self,
        ids: List[str],
        agent_of: Mapping[str, str],
        implications_of: Mapping[str, Sequence[str]],
    ):
        self.ids = ids
        self._agent_of = agent_of
        self._implications_of = implications_of

    def agent(self, alert_id: str) -> Optional[str]:
        agent = self._agent_of.get(alert_id)
        return agent.value if isinstance(agent, AgentType) else agent

    def implications(self, alert_id: str) -> Sequence[str]:
        return self._implications_of.get(alert_id) or ()

    def by_agent(self, *agents: str) -> List[str]:
        return [i for i in self.ids if self.agent(i) in agents]


def _weather_cascade(c: _Candidates) -> List[str]:
    weather = c.by_agent(AgentType.WEATHER.value)
    passing = [
        i for i in c.by_agent(*PASSING_GAME_AGENTS)
        if any(is_passing_implication(imp) for imp in c.implications(i))
    ]
    if not weather or not passing:
        return []
    return weather + passing[:2]


def _defensive_funnel(c: _Candidates) -> List[str]:
    pressure = c.by_agent(AgentType.PRESSURE.value)
    qbs = c.by_agent(AgentType.QB.value)
    if not pressure or not qbs:
        return []
    return pressure + qbs


def _player_stack(c: _Candidates) -> List[str]:
    qbs = [
        i for i in c.by_agent(AgentType.QB.value)
        if any(_is_over(imp, QB_PASSING_PREFIXES) for imp in c.implications(i))
    ]
    receivers = [
        i for i in c.by_agent(*RECEIVER_AGENTS)
        if any(_is_over(imp, RECEIVING_PREFIXES) for imp in c.implications(i))
    ]
    if not qbs or not receivers:
        return []
    return qbs[:1] + receivers[:2]


def _game_script(c: _Candidates) -> List[str]:
    epa = c.by_agent(AgentType.EPA.value)
    hb = c.by_agent(AgentType.HB.value)
    if not epa or not hb:
        return []
    return epa[:2] + hb[:2]


def _volume_share(c: _Candidates) -> List[str]:
    wr = c.by_agent(AgentType.WR.value)
    if len(wr) < 2:
        return []
    return wr[:3]


@dataclass(frozen=True)
class CorrelationRule:
    type: CorrelationType
    explanation: str
    select: Callable[[_Candidates], List[str]]


CORRELATION_RULES: List[CorrelationRule] = [
    CorrelationRule(
        CorrelationType.WEATHER_CASCADE,
        "Weather conditions affect passing game metrics across multiple positions",
        _weather_cascade,
    ),
    CorrelationRule(
        CorrelationType.DEFENSIVE_FUNNEL,
        "Pass rush pressure correlates with QB performance metrics",
        _defensive_funnel,
    ),
    CorrelationRule(
        CorrelationType.PLAYER_STACK,
        "Quarterback passing volume feeds receiver production",
        _player_stack,
    ),
    CorrelationRule(
        CorrelationType.GAME_SCRIPT,
        "EPA efficiency patterns predict game script and usage",
        _game_script,
    ),
    CorrelationRule(
        CorrelationType.VOLUME_SHARE,
        "Target share concentration among receiving options",
        _volume_share,
    ),
]


# =============================================================================
# Engine
# =============================================================================


def identify_correlations(
    alert_ids: Sequence[str],
    agent_of: Mapping[str, str],
    implications_of: Mapping[str, Sequence[str]],
    exclusive: bool = True,
) -> List[CorrelationGroup]:
    """
    Evaluate every rule in table order and return the resulting groups.

    Groups with fewer than two members are dropped.
    """
    groups: List[CorrelationGroup] = []
    consumed = set()

    for rule in CORRELATION_RULES:
        available = [i for i in alert_ids if not (exclusive and i in consumed)]
        members = rule.select(_Candidates(available, agent_of, implications_of))
        if len(members) < MIN_GROUP_SIZE:
            continue
        groups.append(CorrelationGroup(rule.type, tuple(members), rule.explanation))
        consumed.update(members)

    _logger.debug(f"Identified {len(groups)} correlation groups from {len(alert_ids)} alerts")
    return groups
