# agents/pace.py
"""
Pace agent - projected play volume for the matchup.

Projected plays blend both teams' plays per game. When a team has no
plays-per-game figure its seconds per play is converted (1800 s of
possession), and failing that the league average is used. Strong wind
lowers confidence and removes totals implications.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from agents.context import MatchupContext, TeamStats, WeatherData
from agents.thresholds import LeagueAverages, PaceThresholds, ThresholdSet
from core.models.finding import (
    AgentType,
    Finding,
    FindingScope,
    FindingSourceType,
    ValueType,
    finding_id,
    ordinal,
)
from core.models.implications import PACE_IMPLICATIONS


_logger = logging.getLogger(__name__)

AGENT = AgentType.PACE

POSSESSION_SECONDS = 1800

FULL = "full"
PARTIAL = "partial"
FALLBACK = "fallback"

MISMATCH_CONFIDENCE = 0.65
TEAM_CONFIDENCE = 0.7


@dataclass(frozen=True)
class ProjectedPlays:
    plays: float
    data_quality: str
    home_contrib: float
    away_contrib: float


def _team_contribution(team: Optional[TeamStats], league: LeagueAverages) -> Tuple[float, str]:
    if team is not None and team.plays_per_game:
        return team.plays_per_game, FULL
    if team is not None and team.seconds_per_play:
        return POSSESSION_SECONDS / team.seconds_per_play, PARTIAL
    return league.avg_plays_per_game, FALLBACK


def compute_projected_plays(
    home: Optional[TeamStats],
    away: Optional[TeamStats],
    league: LeagueAverages,
) -> ProjectedPlays:
    """Mean of both teams' contributions; quality is the weaker of the two."""
    home_plays, home_quality = _team_contribution(home, league)
    away_plays, away_quality = _team_contribution(away, league)
    qualities = (home_quality, away_quality)
    if FALLBACK in qualities:
        quality = FALLBACK
    elif PARTIAL in qualities:
        quality = PARTIAL
    else:
        quality = FULL
    return ProjectedPlays(
        plays=(home_plays + away_plays) / 2,
        data_quality=quality,
        home_contrib=home_plays,
        away_contrib=away_plays,
    )


def matchup_finding_type(projected: float, league_avg: float, thresholds: PaceThresholds) -> Optional[str]:
    if projected >= thresholds.projected_plays_high:
        return "pace_over_signal"
    if projected <= thresholds.projected_plays_low:
        return "pace_under_signal"
    delta = projected - league_avg
    if abs(delta) >= thresholds.projected_plays_delta:
        return "pace_over_signal" if delta > 0 else "pace_under_signal"
    return None


def team_finding_type(team: TeamStats, league_avg: float, thresholds: PaceThresholds) -> Optional[str]:
    if team.pace_rank is not None:
        if team.pace_rank <= thresholds.fast_pace_rank:
            return "team_plays_above_avg"
        if team.pace_rank >= thresholds.slow_pace_rank:
            return "team_plays_below_avg"
    if team.plays_per_game is not None:
        delta = team.plays_per_game - league_avg
        if delta >= thresholds.projected_plays_delta:
            return "team_plays_above_avg"
        if delta <= -thresholds.projected_plays_delta:
            return "team_plays_below_avg"
    return None


def is_pace_mismatch(
    home: Optional[TeamStats],
    away: Optional[TeamStats],
    thresholds: PaceThresholds,
) -> bool:
    """One team in the fast tier, the other in the slow tier."""
    if home is None or away is None or not home.pace_rank or not away.pace_rank:
        return False
    home_fast = home.pace_rank <= thresholds.fast_pace_rank
    home_slow = home.pace_rank >= thresholds.slow_pace_rank
    away_fast = away.pace_rank <= thresholds.fast_pace_rank
    away_slow = away.pace_rank >= thresholds.slow_pace_rank
    return (home_fast and away_slow) or (home_slow and away_fast)


def matchup_confidence(data_quality: str, finding_type: str) -> float:
    confidence = 0.75
    if data_quality == FULL:
        confidence += 0.1
    elif data_quality == FALLBACK:
        confidence -= 0.15
    if finding_type in ("pace_over_signal", "pace_under_signal"):
        confidence += 0.05
    return round(min(max(confidence, 0.5), 0.9), 4)


def apply_weather_modifier(
    confidence: float,
    weather: Optional[WeatherData],
    implications: Tuple[str, ...],
    thresholds: PaceThresholds,
) -> Tuple[float, Tuple[str, ...]]:
    """High outdoor wind: cut confidence and drop totals implications."""
    if weather is None or weather.indoor or weather.wind_mph <= thresholds.wind_mph_penalty:
        return confidence, implications
    kept = tuple(imp for imp in implications if "total" not in imp)
    return round(confidence * (1 - thresholds.wind_confidence_penalty), 4), kept


def _signed(value: float) -> str:
    return f"+{value:.1f}" if value > 0 else f"{value:.1f}"


def _pace_finding(context: MatchupContext, id_parts: tuple, **fields) -> Finding:
    return Finding(
        id=finding_id(AGENT, *id_parts, timestamp=context.data_timestamp),
        agent=AGENT,
        source_type=FindingSourceType.MATCHUP_CONTEXT,
        source_timestamp=context.data_timestamp,
        **fields,
    )


def detect(context: MatchupContext, thresholds: ThresholdSet) -> List[Finding]:
    findings: List[Finding] = []
    limits = thresholds.pace
    league = thresholds.league

    if not context.team_stats:
        _logger.debug("No team stats provided")
        return findings

    home = context.team_stats.get(context.home_team)
    away = context.team_stats.get(context.away_team)
    game_ref = f"matchupContext://teamStats/{context.home_team}+{context.away_team}"

    projected = compute_projected_plays(home, away, league)
    delta = projected.plays - league.avg_plays_per_game
    payload = {
        "projected_plays": projected.plays,
        "home_plays_per_game": projected.home_contrib,
        "away_plays_per_game": projected.away_contrib,
        "delta_vs_league": delta,
        "data_quality": projected.data_quality,
    }

    matchup_type = matchup_finding_type(projected.plays, league.avg_plays_per_game, limits)
    if matchup_type:
        confidence, implications = apply_weather_modifier(
            matchup_confidence(projected.data_quality, matchup_type),
            context.weather,
            PACE_IMPLICATIONS[matchup_type],
            limits,
        )
        if projected.plays >= limits.projected_plays_high:
            threshold_met = f"projected_plays >= {limits.projected_plays_high}"
        elif projected.plays <= limits.projected_plays_low:
            threshold_met = f"projected_plays <= {limits.projected_plays_low}"
        else:
            threshold_met = f"|projected_plays - league avg| >= {limits.projected_plays_delta}"

        seconds = (home and home.seconds_per_play) or (away and away.seconds_per_play)
        findings.append(_pace_finding(
            context, ("matchup", context.home_team, context.away_team),
            type=matchup_type,
            stat="projected_plays",
            value_num=round(projected.plays, 2),
            value_type=ValueType.NUMERIC,
            threshold_met=threshold_met,
            comparison_context=f"Projected {projected.plays:.1f} plays ({_signed(delta)} vs league avg)",
            source_ref=game_ref,
            scope=FindingScope.GAME,
            implication=implications[0] if implications else None,
            confidence=confidence,
            payload={**payload, "seconds_per_play": seconds, "implications": list(implications)},
        ))
        _logger.debug(f"Found pace signal: {matchup_type} ({projected.plays:.1f} plays)")

    if is_pace_mismatch(home, away, limits):
        findings.append(_pace_finding(
            context, ("mismatch", context.home_team, context.away_team),
            type="pace_mismatch",
            stat="pace_rank",
            value_str="mismatch",
            value_type=ValueType.STRING,
            threshold_met="pace_mismatch detected",
            comparison_context=(
                f"Pace mismatch: {context.home_team} ({home.pace_rank}) vs "
                f"{context.away_team} ({away.pace_rank})"
            ),
            source_ref=game_ref,
            scope=FindingScope.GAME,
            confidence=MISMATCH_CONFIDENCE,
            payload=payload,
        ))
        _logger.debug("Found pace mismatch")

    # Team findings only when the matchup-level signal is silent
    if matchup_type:
        return findings

    for team, _ in context.team_pairs():
        stats = context.team_stats.get(team)
        if stats is None:
            continue
        team_type = team_finding_type(stats, league.avg_plays_per_game, limits)
        if team_type is None:
            continue

        confidence, implications = apply_weather_modifier(
            TEAM_CONFIDENCE, context.weather, PACE_IMPLICATIONS[team_type], limits
        )
        above = team_type == "team_plays_above_avg"
        if stats.pace_rank is not None:
            threshold_met = (
                f"pace_rank <= {limits.fast_pace_rank}" if above
                else f"pace_rank >= {limits.slow_pace_rank}"
            )
            comparison = f"{team}: {ordinal(stats.pace_rank)} in pace"
        else:
            threshold_met = f"plays_per_game delta >= {limits.projected_plays_delta}"
            comparison = f"{team}: {stats.plays_per_game:.1f} plays/game"

        team_plays = stats.plays_per_game or league.avg_plays_per_game
        findings.append(_pace_finding(
            context, ("team", team),
            type=team_type,
            stat="pace",
            value_num=stats.plays_per_game or stats.pace_rank or 0,
            value_type=ValueType.NUMERIC,
            threshold_met=threshold_met,
            comparison_context=comparison,
            source_ref=f"matchupContext://teamStats/{team}",
            scope=FindingScope.TEAM,
            implication=implications[0] if implications else None,
            confidence=confidence,
            payload={
                "projected_plays": team_plays,
                "delta_vs_league": team_plays - league.avg_plays_per_game,
                "data_quality": FULL if stats.plays_per_game else FALLBACK,
                "implications": list(implications),
            },
        ))
        _logger.debug(f"Found team pace: {team} ({team_type})")

    return findings
