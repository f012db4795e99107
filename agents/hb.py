# agents/hb.py
"""HB agent - rushing volume, efficiency and touchdowns against soft run defenses."""
from __future__ import annotations

from typing import List

from agents.common import is_at_least, is_at_most, rank_finding
from agents.context import MatchupContext, PlayerData, TeamStats
from agents.thresholds import HbThresholds, ThresholdSet
from core.models.finding import AgentType, Finding, ordinal


AGENT = AgentType.HB

POSITIONS = ("HB", "RB")


def check_hb(
    hb: PlayerData,
    defense: TeamStats,
    context: MatchupContext,
    thresholds: HbThresholds,
) -> List[Finding]:
    findings: List[Finding] = []
    has_sample = (hb.carries or 0) >= thresholds.min_carries

    if (
        is_at_most(hb.rush_yards_rank, thresholds.rush_yards_rank)
        and is_at_least(defense.rush_defense_rank, thresholds.defense_rush_rank)
        and has_sample
    ):
        findings.append(rank_finding(
            AGENT, context, (hb.name, "volume"),
            type="hb_volume_advantage",
            stat="rush_yards_rank",
            value=hb.rush_yards_rank,
            threshold_met=(
                f"rush yards rank <= {thresholds.rush_yards_rank} AND defense rank >= "
                f"{thresholds.defense_rush_rank}"
            ),
            comparison=(
                f"{hb.name}: {ordinal(hb.rush_yards_rank)} rush yards vs "
                f"{ordinal(defense.rush_defense_rank)} rush defense"
            ),
            sample_size=hb.carries,
            player=hb.name,
        ))

    if (
        is_at_most(hb.yards_per_carry_rank, thresholds.yards_per_carry_rank)
        and is_at_least(defense.rush_yards_allowed_rank, thresholds.defense_rush_rank)
        and has_sample
    ):
        findings.append(rank_finding(
            AGENT, context, (hb.name, "efficiency"),
            type="hb_efficiency_advantage",
            stat="yards_per_carry_rank",
            value=hb.yards_per_carry_rank,
            threshold_met=(
                f"YPC rank <= {thresholds.yards_per_carry_rank} AND defense yards rank >= "
                f"{thresholds.defense_rush_rank}"
            ),
            comparison=(
                f"{hb.name}: {ordinal(hb.yards_per_carry_rank)} YPC vs "
                f"{ordinal(defense.rush_yards_allowed_rank)} yards allowed"
            ),
            sample_size=hb.carries,
            player=hb.name,
        ))

    if (
        is_at_most(hb.rush_td_rank, thresholds.rush_td_rank)
        and is_at_least(defense.rush_td_allowed_rank, thresholds.defense_rush_rank)
    ):
        findings.append(rank_finding(
            AGENT, context, (hb.name, "td"),
            type="hb_td_opportunity",
            stat="rush_td_rank",
            value=hb.rush_td_rank,
            threshold_met=(
                f"TD rank <= {thresholds.rush_td_rank} AND defense TD allowed rank >= "
                f"{thresholds.defense_rush_rank}"
            ),
            comparison=(
                f"{hb.name}: {ordinal(hb.rush_td_rank)} rush TDs vs "
                f"{ordinal(defense.rush_td_allowed_rank)} TD allowed"
            ),
            player=hb.name,
        ))

    if is_at_most(hb.reception_rank, thresholds.reception_rank):
        findings.append(rank_finding(
            AGENT, context, (hb.name, "receiving"),
            type="hb_receiving_factor",
            stat="reception_rank",
            value=hb.reception_rank,
            threshold_met=f"reception rank <= {thresholds.reception_rank}",
            comparison=f"{hb.name}: {ordinal(hb.reception_rank)} in RB receptions - dual threat",
            player=hb.name,
        ))

    return findings


def detect(context: MatchupContext, thresholds: ThresholdSet) -> List[Finding]:
    findings: List[Finding] = []
    for player, opponent in context.player_matchups():
        if player.position in POSITIONS:
            findings.extend(check_hb(player, opponent, context, thresholds.hb))
    return findings
