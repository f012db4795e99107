# agents/usage.py
"""
Usage agent - volume leaders and usage trajectory.

Compares each skill player's last-four-game window with the season:
target share alphas, workhorse backs, committees, and rising or falling
roles. Players with thin samples or an injury-limited window are
suppressed rather than reported.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from agents.context import MatchupContext, PlayerData
from agents.thresholds import ThresholdSet, UsageThresholds
from core.models.finding import (
    AgentType,
    Finding,
    FindingScope,
    FindingSourceType,
    ValueType,
    finding_id,
)
from core.models.implications import USAGE_IMPLICATIONS


_logger = logging.getLogger(__name__)

AGENT = AgentType.USAGE

SKILL_POSITIONS = ("RB", "HB", "WR", "TE")
BACKFIELD_POSITIONS = ("RB", "HB")

BASE_CONFIDENCE = 0.7
MAX_CONFIDENCE = 0.95

RISING = "rising"
STABLE = "stable"
FALLING = "falling"


def suppression_reason(player: PlayerData, thresholds: UsageThresholds) -> Optional[str]:
    """Why a player's usage should not be reported, or None."""
    if player.injury_limited:
        return "injury_limited"
    if player.games_in_window is not None and player.games_in_window < thresholds.min_games_in_window:
        return f"games_in_window < {thresholds.min_games_in_window}"
    if player.routes_sample is not None and player.routes_sample < thresholds.min_routes_sample:
        return f"routes_sample < {thresholds.min_routes_sample}"
    if player.targets_sample is not None and player.targets_sample < thresholds.min_targets_sample:
        return f"targets_sample < {thresholds.min_targets_sample}"
    return None


def calculate_trend(
    season: Optional[float],
    last_four: Optional[float],
    thresholds: UsageThresholds,
) -> Optional[str]:
    if season is None or last_four is None:
        return None
    delta = last_four - season
    if delta >= thresholds.trend_rising:
        return RISING
    if delta <= thresholds.trend_falling:
        return FALLING
    return STABLE


def determine_finding_type(player: PlayerData, thresholds: UsageThresholds) -> Optional[str]:
    """First matching usage pattern, strongest first."""
    share = player.target_share_l4
    snaps = player.snap_pct_l4
    is_back = player.position in BACKFIELD_POSITIONS

    if share is not None and share >= thresholds.target_share_elite:
        return "target_share_elite"
    if share is not None and share >= thresholds.target_share_high:
        return "target_share_alpha"
    if is_back and snaps is not None and snaps >= thresholds.snap_pct_high:
        return "volume_workhorse"

    snap_trend = calculate_trend(player.snap_pct_season, snaps, thresholds)
    share_trend = calculate_trend(player.target_share_season, share, thresholds)
    if RISING in (snap_trend, share_trend):
        return "usage_trending_up"
    if FALLING in (snap_trend, share_trend):
        return "usage_trending_down"

    if is_back and snaps is not None and snaps <= thresholds.snap_pct_low:
        return "snap_share_committee"
    return None


def calculate_usage_confidence(
    player: PlayerData,
    finding_type: str,
    thresholds: UsageThresholds,
) -> float:
    confidence = BASE_CONFIDENCE
    if (player.games_in_window or 0) >= thresholds.min_games_in_window:
        confidence += 0.1
    if (player.routes_sample or 0) >= thresholds.min_routes_sample:
        confidence += 0.05
    if (player.targets_sample or 0) >= thresholds.min_targets_sample:
        confidence += 0.05
    if (
        finding_type == "target_share_elite"
        and (player.target_share_l4 or 0) >= thresholds.target_share_extreme
    ):
        confidence += 0.1
    return round(min(confidence, MAX_CONFIDENCE), 4)


def _pct(value: Optional[float]) -> str:
    return f"{value * 100:.1f}%" if value is not None else "N/A"


def _comparison(finding_type: str, player: PlayerData) -> str:
    name = player.name
    if finding_type == "target_share_elite":
        return f"{name}: {_pct(player.target_share_l4)} target share (elite)"
    if finding_type == "target_share_alpha":
        return f"{name}: {_pct(player.target_share_l4)} target share (alpha)"
    if finding_type == "volume_workhorse":
        return f"{name}: {_pct(player.snap_pct_l4)} snap share (workhorse)"
    if finding_type == "usage_trending_up":
        return f"{name}: usage trending up ({_pct(player.snap_pct_season)} → {_pct(player.snap_pct_l4)})"
    if finding_type == "usage_trending_down":
        return f"{name}: usage trending down ({_pct(player.snap_pct_season)} → {_pct(player.snap_pct_l4)})"
    return f"{name}: {_pct(player.snap_pct_l4)} snap share (committee)"


def _threshold_met(finding_type: str, thresholds: UsageThresholds) -> str:
    return {
        "target_share_elite": f"target_share_l4 >= {thresholds.target_share_elite}",
        "target_share_alpha": f"target_share_l4 >= {thresholds.target_share_high}",
        "volume_workhorse": f"snap_pct_l4 >= {thresholds.snap_pct_high}",
        "usage_trending_up": f"delta >= {thresholds.trend_rising}",
        "usage_trending_down": f"delta <= {thresholds.trend_falling}",
        "snap_share_committee": f"snap_pct_l4 <= {thresholds.snap_pct_low}",
    }[finding_type]


def check_usage(
    player: PlayerData,
    team: str,
    context: MatchupContext,
    thresholds: UsageThresholds,
) -> Optional[Finding]:
    if player.position not in SKILL_POSITIONS:
        return None

    reason = suppression_reason(player, thresholds)
    if reason:
        _logger.debug(f"Suppressing {player.name}: {reason}")
        return None

    finding_type = determine_finding_type(player, thresholds)
    if finding_type is None:
        return None

    trend = (
        calculate_trend(player.target_share_season, player.target_share_l4, thresholds)
        or calculate_trend(player.snap_pct_season, player.snap_pct_l4, thresholds)
    )
    primary = player.target_share_l4
    if primary is None:
        primary = player.snap_pct_l4 if player.snap_pct_l4 is not None else 0.0

    _logger.debug(f"Found usage pattern: {player.name} ({finding_type})")
    return Finding(
        id=finding_id(AGENT, team, player.name, timestamp=context.data_timestamp),
        agent=AGENT,
        type=finding_type,
        stat="usage_metrics",
        value_num=primary,
        value_type=ValueType.NUMERIC,
        threshold_met=_threshold_met(finding_type, thresholds),
        comparison_context=_comparison(finding_type, player),
        source_ref=f"matchupContext://players/{team}/{player.name}",
        source_type=FindingSourceType.MATCHUP_CONTEXT,
        source_timestamp=context.data_timestamp,
        scope=FindingScope.PLAYER,
        implication=USAGE_IMPLICATIONS[finding_type][0],
        confidence=calculate_usage_confidence(player, finding_type, thresholds),
        players_mentioned=(player.name,),
        payload={
            "snap_pct_season": player.snap_pct_season,
            "snap_pct_l4": player.snap_pct_l4,
            "route_participation_season": player.route_participation_season,
            "route_participation_l4": player.route_participation_l4,
            "target_share_season": player.target_share_season,
            "target_share_l4": player.target_share_l4,
            "trend": trend,
            "window": "l4",
            "games_in_window": player.games_in_window,
            "routes_sample": player.routes_sample,
            "targets_sample": player.targets_sample,
        },
    )


def detect(context: MatchupContext, thresholds: ThresholdSet) -> List[Finding]:
    findings: List[Finding] = []
    for team, _ in context.team_pairs():
        for player in context.players.get(team, ()):
            finding = check_usage(player, team, context, thresholds.usage)
            if finding is not None:
                findings.append(finding)
    return findings
