# agents/wr.py
"""WR agent - target volume, yardage and touchdowns against weak pass defenses."""
from __future__ import annotations

from typing import List

from agents.common import is_at_least, is_at_most, rank_finding
from agents.context import MatchupContext, PlayerData, TeamStats
from agents.thresholds import ThresholdSet, WrThresholds
from core.models.finding import AgentType, Finding, ordinal


AGENT = AgentType.WR

POSITIONS = ("WR",)


def check_wr(
    wr: PlayerData,
    defense: TeamStats,
    context: MatchupContext,
    thresholds: WrThresholds,
) -> List[Finding]:
    findings: List[Finding] = []
    has_sample = (wr.targets or 0) >= thresholds.min_targets

    if (
        is_at_most(wr.target_share_rank, thresholds.target_share_rank)
        and is_at_least(defense.pass_defense_rank, thresholds.defense_pass_rank)
        and has_sample
    ):
        findings.append(rank_finding(
            AGENT, context, (wr.name, "volume"),
            type="wr_target_volume",
            stat="target_share_rank",
            value=wr.target_share_rank,
            threshold_met=(
                f"target share rank <= {thresholds.target_share_rank} AND defense rank >= "
                f"{thresholds.defense_pass_rank}"
            ),
            comparison=(
                f"{wr.name}: {ordinal(wr.target_share_rank)} target share vs "
                f"{ordinal(defense.pass_defense_rank)} pass defense"
            ),
            sample_size=wr.targets,
            player=wr.name,
        ))

    if (
        is_at_most(wr.receiving_yards_rank, thresholds.receiving_yards_rank)
        and is_at_least(defense.yards_allowed_to_wr_rank, thresholds.defense_pass_rank)
        and has_sample
    ):
        findings.append(rank_finding(
            AGENT, context, (wr.name, "yards"),
            type="wr_yardage_advantage",
            stat="receiving_yards_rank",
            value=wr.receiving_yards_rank,
            threshold_met=(
                f"receiving yards rank <= {thresholds.receiving_yards_rank} AND defense yards rank >= "
                f"{thresholds.defense_pass_rank}"
            ),
            comparison=(
                f"{wr.name}: {ordinal(wr.receiving_yards_rank)} receiving yards vs "
                f"{ordinal(defense.yards_allowed_to_wr_rank)} yards allowed"
            ),
            sample_size=wr.targets,
            player=wr.name,
        ))

    if (
        is_at_most(wr.receiving_td_rank, thresholds.receiving_td_rank)
        and is_at_least(defense.td_allowed_to_wr_rank, thresholds.defense_pass_rank)
    ):
        findings.append(rank_finding(
            AGENT, context, (wr.name, "td"),
            type="wr_td_opportunity",
            stat="receiving_td_rank",
            value=wr.receiving_td_rank,
            threshold_met=(
                f"TD rank <= {thresholds.receiving_td_rank} AND defense TD allowed rank >= "
                f"{thresholds.defense_pass_rank}"
            ),
            comparison=(
                f"{wr.name}: {ordinal(wr.receiving_td_rank)} receiving TDs vs "
                f"{ordinal(defense.td_allowed_to_wr_rank)} TD allowed to WR"
            ),
            player=wr.name,
        ))

    if is_at_most(wr.separation_rank, thresholds.separation_rank):
        findings.append(rank_finding(
            AGENT, context, (wr.name, "sep"),
            type="wr_separation_advantage",
            stat="separation_rank",
            value=wr.separation_rank,
            threshold_met=f"separation rank <= {thresholds.separation_rank}",
            comparison=f"{wr.name}: {ordinal(wr.separation_rank)} separation - elite route runner",
            player=wr.name,
        ))

    return findings


def detect(context: MatchupContext, thresholds: ThresholdSet) -> List[Finding]:
    findings: List[Finding] = []
    for player, opponent in context.player_matchups():
        if player.position in POSITIONS:
            findings.extend(check_wr(player, opponent, context, thresholds.wr))
    return findings
