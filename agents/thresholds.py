# agents/thresholds.py
"""
Detector thresholds, keyed by season.

Every number an agent compares against lives here. A rank threshold of
10 means "top 10"; 22 means "bottom 11 of 32". Sample minimums gate the
rank rules and are carried on the finding as its sample size.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass(frozen=True)
class EpaThresholds:
    receiving_epa_rank: int = 10
    rushing_epa_rank: int = 10
    epa_allowed_rank: int = 10
    min_targets: int = 50
    min_rushes: int = 50


@dataclass(frozen=True)
class PressureThresholds:
    pressure_rate_rank: int = 10
    pass_block_win_rate_rank: int = 22
    qb_pressured_rating: float = 60


@dataclass(frozen=True)
class WeatherThresholds:
    wind_mph: float = 15
    cold_temp: float = 32
    precipitation_chance: float = 50


@dataclass(frozen=True)
class QbThresholds:
    qb_rating_rank: int = 10
    yards_per_attempt_rank: int = 10
    turnover_pct_rank: int = 22
    defense_pass_rank: int = 22
    interception_rate_rank: int = 10
    min_attempts: int = 150


@dataclass(frozen=True)
class HbThresholds:
    rush_yards_rank: int = 10
    yards_per_carry_rank: int = 10
    rush_td_rank: int = 10
    reception_rank: int = 15
    defense_rush_rank: int = 22
    min_carries: int = 80


@dataclass(frozen=True)
class WrThresholds:
    target_share_rank: int = 10
    receiving_yards_rank: int = 10
    receiving_td_rank: int = 10
    separation_rank: int = 10
    defense_pass_rank: int = 22
    min_targets: int = 50


@dataclass(frozen=True)
class TeThresholds:
    target_share_rank: int = 8
    receiving_yards_rank: int = 8
    receiving_td_rank: int = 8
    red_zone_target_rank: int = 8
    defense_te_rank: int = 22
    min_targets: int = 40


@dataclass(frozen=True)
class UsageThresholds:
    snap_pct_high: float = 0.80
    snap_pct_low: float = 0.50
    route_participation_high: float = 0.85
    target_share_high: float = 0.25
    target_share_elite: float = 0.30
    target_share_extreme: float = 0.35
    trend_rising: float = 0.05
    trend_falling: float = -0.05
    min_games_in_window: int = 4
    min_routes_sample: int = 50
    min_targets_sample: int = 15


@dataclass(frozen=True)
class PaceThresholds:
    fast_pace_rank: int = 10
    slow_pace_rank: int = 23
    projected_plays_high: float = 68
    projected_plays_low: float = 58
    projected_plays_delta: float = 5
    wind_mph_penalty: float = 20
    wind_confidence_penalty: float = 0.3


@dataclass(frozen=True)
class LeagueAverages:
    avg_plays_per_game: float
    avg_seconds_per_play: float


@dataclass(frozen=True)
class ThresholdSet:
    """All agent thresholds for one season."""

    season: int
    league: LeagueAverages
    epa: EpaThresholds = field(default_factory=EpaThresholds)
    pressure: PressureThresholds = field(default_factory=PressureThresholds)
    weather: WeatherThresholds = field(default_factory=WeatherThresholds)
    qb: QbThresholds = field(default_factory=QbThresholds)
    hb: HbThresholds = field(default_factory=HbThresholds)
    wr: WrThresholds = field(default_factory=WrThresholds)
    te: TeThresholds = field(default_factory=TeThresholds)
    usage: UsageThresholds = field(default_factory=UsageThresholds)
    pace: PaceThresholds = field(default_factory=PaceThresholds)


SEASON_THRESHOLDS: Dict[int, ThresholdSet] = {
    2024: ThresholdSet(season=2024, league=LeagueAverages(62.5, 30.2)),
    2025: ThresholdSet(season=2025, league=LeagueAverages(63.0, 30.0)),
}

LATEST_SEASON = max(SEASON_THRESHOLDS)


def get_thresholds(season: Optional[int] = None) -> ThresholdSet:
    """Thresholds for a season; unknown or missing seasons get the latest set."""
    if season is not None and season in SEASON_THRESHOLDS:
        return SEASON_THRESHOLDS[season]
    return SEASON_THRESHOLDS[LATEST_SEASON]
