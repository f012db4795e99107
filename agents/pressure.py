# agents/pressure.py
"""
Pressure agent - elite pass rush against a weak offensive line.

The QB vulnerability finding only fires on top of a pressure advantage.
"""
from __future__ import annotations

from typing import List

from agents.common import is_at_least, is_at_most, rank_finding
from agents.context import MatchupContext, TeamStats
from agents.thresholds import PressureThresholds, ThresholdSet
from core.models.claim import format_number
from core.models.finding import AgentType, Finding, FindingScope, ordinal


AGENT = AgentType.PRESSURE

UNKNOWN_QB = "Unknown QB"


def check_pressure(
    defense: TeamStats,
    offense: TeamStats,
    context: MatchupContext,
    thresholds: PressureThresholds,
) -> List[Finding]:
    findings: List[Finding] = []

    if not (
        is_at_most(defense.pressure_rate_rank, thresholds.pressure_rate_rank)
        and is_at_least(offense.pass_block_win_rate_rank, thresholds.pass_block_win_rate_rank)
    ):
        return findings

    findings.append(rank_finding(
        AGENT, context, (defense.team, "vs", offense.team),
        type="pressure_rate_advantage",
        stat="pressure_rate_rank",
        value=defense.pressure_rate_rank,
        threshold_met=(
            f"defense rank <= {thresholds.pressure_rate_rank} AND OL rank >= "
            f"{thresholds.pass_block_win_rate_rank}"
        ),
        comparison=(
            f"{ordinal(defense.pressure_rate_rank)} pass rush vs "
            f"{ordinal(offense.pass_block_win_rate_rank)} OL"
        ),
        scope=FindingScope.TEAM,
    ))

    rating = offense.qb_passer_rating_under_pressure
    if rating is not None and rating < thresholds.qb_pressured_rating:
        qb_name = offense.qb_name or UNKNOWN_QB
        findings.append(rank_finding(
            AGENT, context, (qb_name, "vuln"),
            type="qb_pressure_vulnerability",
            stat="qb_passer_rating_under_pressure",
            value=rating,
            threshold_met=f"passer rating under pressure < {format_number(thresholds.qb_pressured_rating)}",
            comparison=f"{qb_name}: {format_number(rating)} rating when pressured",
            player=qb_name,
        ))

    return findings


def detect(context: MatchupContext, thresholds: ThresholdSet) -> List[Finding]:
    findings: List[Finding] = []
    for team, opponent in context.team_pairs():
        defense = context.team_stats.get(opponent)
        if defense is None or defense.pressure_rate_rank is None:
            continue
        offense = context.team_stats.get(team) or TeamStats(team=team)
        findings.extend(check_pressure(defense, offense, context, thresholds.pressure))
    return findings
