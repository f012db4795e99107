# agents/epa.py
"""
EPA agent - efficient players facing defenses that leak EPA.

Receiving: top receiving EPA vs a defense in the top of EPA allowed to WRs.
Rushing: same shape against EPA allowed to RBs.
"""
from __future__ import annotations

from typing import List

from agents.common import is_at_most, rank_finding
from agents.context import MatchupContext, PlayerData, TeamStats
from agents.thresholds import EpaThresholds, ThresholdSet
from core.models.finding import AgentType, Finding, ordinal


AGENT = AgentType.EPA


def check_epa(
    player: PlayerData,
    opponent: TeamStats,
    context: MatchupContext,
    thresholds: EpaThresholds,
) -> List[Finding]:
    findings: List[Finding] = []

    if (
        is_at_most(player.receiving_epa_rank, thresholds.receiving_epa_rank)
        and is_at_most(opponent.epa_allowed_to_wr_rank, thresholds.epa_allowed_rank)
        and (player.targets or 0) >= thresholds.min_targets
    ):
        findings.append(rank_finding(
            AGENT, context, (player.name, "recv"),
            type="receiving_epa_mismatch",
            stat="receiving_epa_rank",
            value=player.receiving_epa_rank,
            threshold_met=(
                f"rank <= {thresholds.receiving_epa_rank} AND opponent allows top "
                f"{thresholds.epa_allowed_rank}"
            ),
            comparison=(
                f"{ordinal(player.receiving_epa_rank)} in league vs "
                f"{ordinal(opponent.epa_allowed_to_wr_rank)} worst defense"
            ),
            sample_size=player.targets,
            player=player.name,
        ))

    if (
        is_at_most(player.rushing_epa_rank, thresholds.rushing_epa_rank)
        and is_at_most(opponent.epa_allowed_to_rb_rank, thresholds.epa_allowed_rank)
        and (player.rushes or 0) >= thresholds.min_rushes
    ):
        findings.append(rank_finding(
            AGENT, context, (player.name, "rush"),
            type="rushing_epa_mismatch",
            stat="rushing_epa_rank",
            value=player.rushing_epa_rank,
            threshold_met=(
                f"rank <= {thresholds.rushing_epa_rank} AND opponent allows top "
                f"{thresholds.epa_allowed_rank}"
            ),
            comparison=(
                f"{ordinal(player.rushing_epa_rank)} in league vs "
                f"{ordinal(opponent.epa_allowed_to_rb_rank)} worst defense"
            ),
            sample_size=player.rushes,
            player=player.name,
        ))

    return findings


def detect(context: MatchupContext, thresholds: ThresholdSet) -> List[Finding]:
    findings: List[Finding] = []
    for player, opponent in context.player_matchups():
        findings.extend(check_epa(player, opponent, context, thresholds.epa))
    return findings
