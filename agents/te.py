# agents/te.py
"""TE agent - tight end volume, yardage and red zone usage."""
from __future__ import annotations

from typing import List

from agents.common import is_at_least, is_at_most, rank_finding
from agents.context import MatchupContext, PlayerData, TeamStats
from agents.thresholds import TeThresholds, ThresholdSet
from core.models.finding import AgentType, Finding, ordinal


AGENT = AgentType.TE

POSITIONS = ("TE",)


def check_te(
    te: PlayerData,
    defense: TeamStats,
    context: MatchupContext,
    thresholds: TeThresholds,
) -> List[Finding]:
    findings: List[Finding] = []
    has_sample = (te.targets or 0) >= thresholds.min_targets

    if (
        is_at_most(te.target_share_rank, thresholds.target_share_rank)
        and is_at_least(defense.te_defense_rank, thresholds.defense_te_rank)
        and has_sample
    ):
        findings.append(rank_finding(
            AGENT, context, (te.name, "volume"),
            type="te_target_volume",
            stat="target_share_rank",
            value=te.target_share_rank,
            threshold_met=(
                f"target share rank <= {thresholds.target_share_rank} AND defense rank >= "
                f"{thresholds.defense_te_rank}"
            ),
            comparison=(
                f"{te.name}: {ordinal(te.target_share_rank)} target share vs "
                f"{ordinal(defense.te_defense_rank)} TE defense"
            ),
            sample_size=te.targets,
            player=te.name,
        ))

    if (
        is_at_most(te.receiving_yards_rank, thresholds.receiving_yards_rank)
        and is_at_least(defense.yards_allowed_to_te_rank, thresholds.defense_te_rank)
        and has_sample
    ):
        findings.append(rank_finding(
            AGENT, context, (te.name, "yards"),
            type="te_yardage_advantage",
            stat="receiving_yards_rank",
            value=te.receiving_yards_rank,
            threshold_met=(
                f"receiving yards rank <= {thresholds.receiving_yards_rank} AND defense yards rank >= "
                f"{thresholds.defense_te_rank}"
            ),
            comparison=(
                f"{te.name}: {ordinal(te.receiving_yards_rank)} TE receiving yards vs "
                f"{ordinal(defense.yards_allowed_to_te_rank)} yards allowed"
            ),
            sample_size=te.targets,
            player=te.name,
        ))

    if (
        is_at_most(te.receiving_td_rank, thresholds.receiving_td_rank)
        and is_at_least(defense.td_allowed_to_te_rank, thresholds.defense_te_rank)
    ):
        findings.append(rank_finding(
            AGENT, context, (te.name, "td"),
            type="te_td_opportunity",
            stat="receiving_td_rank",
            value=te.receiving_td_rank,
            threshold_met=(
                f"TD rank <= {thresholds.receiving_td_rank} AND defense TD allowed rank >= "
                f"{thresholds.defense_te_rank}"
            ),
            comparison=(
                f"{te.name}: {ordinal(te.receiving_td_rank)} TE TDs vs "
                f"{ordinal(defense.td_allowed_to_te_rank)} TD allowed to TE"
            ),
            player=te.name,
        ))

    if is_at_most(te.red_zone_target_rank, thresholds.red_zone_target_rank):
        findings.append(rank_finding(
            AGENT, context, (te.name, "rz"),
            type="te_red_zone_factor",
            stat="red_zone_target_rank",
            value=te.red_zone_target_rank,
            threshold_met=f"red zone target rank <= {thresholds.red_zone_target_rank}",
            comparison=f"{te.name}: {ordinal(te.red_zone_target_rank)} red zone TE targets - high TD upside",
            player=te.name,
        ))

    return findings


def detect(context: MatchupContext, thresholds: ThresholdSet) -> List[Finding]:
    findings: List[Finding] = []
    for player, opponent in context.player_matchups():
        if player.position in POSITIONS:
            findings.extend(check_te(player, opponent, context, thresholds.te))
    return findings
