# agents/qb.py
"""QB agent - passer efficiency against weak pass defenses, and turnover risk."""
from __future__ import annotations

from typing import List

from agents.common import is_at_least, is_at_most, rank_finding
from agents.context import MatchupContext, PlayerData, TeamStats
from agents.thresholds import QbThresholds, ThresholdSet
from core.models.finding import AgentType, Finding, ordinal


AGENT = AgentType.QB

POSITIONS = ("QB",)


def check_qb(
    qb: PlayerData,
    defense: TeamStats,
    context: MatchupContext,
    thresholds: QbThresholds,
) -> List[Finding]:
    findings: List[Finding] = []
    has_sample = (qb.attempts or 0) >= thresholds.min_attempts

    if (
        is_at_most(qb.qb_rating_rank, thresholds.qb_rating_rank)
        and is_at_least(defense.pass_defense_rank, thresholds.defense_pass_rank)
        and has_sample
    ):
        findings.append(rank_finding(
            AGENT, context, (qb.name, "rating"),
            type="qb_rating_advantage",
            stat="qb_rating_rank",
            value=qb.qb_rating_rank,
            threshold_met=(
                f"QB rating rank <= {thresholds.qb_rating_rank} AND defense rank >= "
                f"{thresholds.defense_pass_rank}"
            ),
            comparison=(
                f"{qb.name}: {ordinal(qb.qb_rating_rank)} QB rating vs "
                f"{ordinal(defense.pass_defense_rank)} pass defense"
            ),
            sample_size=qb.attempts,
            player=qb.name,
        ))

    if (
        is_at_most(qb.yards_per_attempt_rank, thresholds.yards_per_attempt_rank)
        and is_at_least(defense.pass_yards_allowed_rank, thresholds.defense_pass_rank)
        and has_sample
    ):
        findings.append(rank_finding(
            AGENT, context, (qb.name, "ypa"),
            type="qb_ypa_advantage",
            stat="yards_per_attempt_rank",
            value=qb.yards_per_attempt_rank,
            threshold_met=(
                f"YPA rank <= {thresholds.yards_per_attempt_rank} AND defense yards rank >= "
                f"{thresholds.defense_pass_rank}"
            ),
            comparison=(
                f"{qb.name}: {ordinal(qb.yards_per_attempt_rank)} YPA vs "
                f"{ordinal(defense.pass_yards_allowed_rank)} yards allowed"
            ),
            sample_size=qb.attempts,
            player=qb.name,
        ))

    # Turnover risk has no sample gate
    if (
        is_at_least(qb.turnover_pct_rank, thresholds.turnover_pct_rank)
        and is_at_most(defense.interception_rate_rank, thresholds.interception_rate_rank)
    ):
        findings.append(rank_finding(
            AGENT, context, (qb.name, "turnover"),
            type="qb_turnover_risk",
            stat="turnover_pct_rank",
            value=qb.turnover_pct_rank,
            threshold_met=(
                f"QB turnover rank >= {thresholds.turnover_pct_rank} AND defense INT rank <= "
                f"{thresholds.interception_rate_rank}"
            ),
            comparison=(
                f"{qb.name}: {ordinal(qb.turnover_pct_rank)} turnover rate vs "
                f"{ordinal(defense.interception_rate_rank)} INT rate"
            ),
            player=qb.name,
        ))

    return findings


def detect(context: MatchupContext, thresholds: ThresholdSet) -> List[Finding]:
    findings: List[Finding] = []
    for player, opponent in context.player_matchups():
        if player.position in POSITIONS:
            findings.extend(check_qb(player, opponent, context, thresholds.qb))
    return findings
