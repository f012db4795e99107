# agents/runner.py
"""
Agent Runner - runs the selected detectors over one MatchupContext.

Agents are pure functions of (context, thresholds) and never see each
other's output, so they may run sequentially or on a thread pool with
identical results. Findings are always collected in roster order.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Union

from agents import epa, hb, injury, notes, pace, pressure, qb, te, usage, weather, wr
from agents.context import MatchupContext
from agents.thresholds import ThresholdSet, get_thresholds
from core.models.finding import AgentType, Finding


_logger = logging.getLogger(__name__)


Detector = Callable[[MatchupContext, ThresholdSet], List[Finding]]

DETECTORS: Dict[AgentType, Detector] = {
    AgentType.EPA: epa.detect,
    AgentType.PRESSURE: pressure.detect,
    AgentType.WEATHER: weather.detect,
    AgentType.QB: qb.detect,
    AgentType.HB: hb.detect,
    AgentType.WR: wr.detect,
    AgentType.TE: te.detect,
    AgentType.INJURY: injury.detect,
    AgentType.USAGE: usage.detect,
    AgentType.PACE: pace.detect,
    AgentType.NOTES: notes.detect,
}

# Default roster; notes joins when the context carries game notes
ALL_AGENTS = (
    AgentType.EPA,
    AgentType.PRESSURE,
    AgentType.WEATHER,
    AgentType.QB,
    AgentType.HB,
    AgentType.WR,
    AgentType.TE,
    AgentType.INJURY,
    AgentType.USAGE,
    AgentType.PACE,
)


@dataclass
class AgentRunResult:
    """Findings plus which selected agents spoke and which stayed silent."""

    findings: List[Finding] = field(default_factory=list)
    agents_invoked: List[str] = field(default_factory=list)
    agents_silent: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "findings": [f.to_dict() for f in self.findings],
            "agents_invoked": list(self.agents_invoked),
            "agents_silent": list(self.agents_silent),
        }


def resolve_roster(
    context: MatchupContext,
    agent_ids: Optional[Iterable[Union[AgentType, str]]] = None,
) -> List[AgentType]:
    """
    Selected agents in order, without duplicates.

    Raises:
        ValueError: an agent id is not a known agent
    """
    if agent_ids is None:
        roster = list(ALL_AGENTS)
        if context.has_notes:
            roster.append(AgentType.NOTES)
        return roster

    roster: List[AgentType] = []
    for agent_id in agent_ids:
        try:
            agent = AgentType(agent_id)
        except ValueError:
            raise ValueError(f"Unknown agent: {agent_id}")
        if agent not in roster:
            roster.append(agent)
    return roster


def run_agents(
    context: MatchupContext,
    agent_ids: Optional[Iterable[Union[AgentType, str]]] = None,
    thresholds: Optional[ThresholdSet] = None,
    parallel: bool = False,
) -> AgentRunResult:
    """
    Run the selected agents and partition them into invoked / silent.

    Args:
        context: Matchup inputs
        agent_ids: Agents to run (default: full roster)
        thresholds: Threshold override (default: the context's season)
        parallel: Run agents on a thread pool

    Returns:
        AgentRunResult with findings in roster order
    """
    roster = resolve_roster(context, agent_ids)
    limits = thresholds or get_thresholds(context.year)

    if parallel and len(roster) > 1:
        with ThreadPoolExecutor(max_workers=len(roster)) as pool:
            futures = [pool.submit(DETECTORS[agent], context, limits) for agent in roster]
            per_agent = [future.result() for future in futures]
    else:
        per_agent = [DETECTORS[agent](context, limits) for agent in roster]

    result = AgentRunResult()
    for agent, findings in zip(roster, per_agent):
        result.findings.extend(findings)
        if findings:
            result.agents_invoked.append(agent.value)
        else:
            result.agents_silent.append(agent.value)

    _logger.info(
        f"Agents complete for {context.matchup}: {len(result.findings)} findings, "
        f"invoked={result.agents_invoked}, silent={result.agents_silent}"
    )
    return result
