# core/models/claim.py
"""
Structured claim parts.

The analyst never writes free-text claims. It returns ClaimParts, built only
from closed enums, and code renders the human-readable claim.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


MAX_CLAIM_LENGTH = 200


class Metric(str, Enum):
    RECEIVING_EPA = "receiving_epa"
    RUSHING_EPA = "rushing_epa"
    PASS_BLOCK_WIN_RATE = "pass_block_win_rate"
    PRESSURE_RATE = "pressure_rate"
    TARGET_SHARE = "target_share"
    SNAP_COUNT = "snap_count"
    RED_ZONE_EPA = "red_zone_epa"
    EPA_ALLOWED = "epa_allowed"
    COMPLETION_RATE = "completion_rate"
    YARDS_PER_ATTEMPT = "yards_per_attempt"
    SACK_RATE = "sack_rate"
    PASSER_RATING = "passer_rating"
    YARDS_AFTER_CONTACT = "yards_after_contact"
    SEPARATION = "separation"
    CONTESTED_CATCH_RATE = "contested_catch_rate"
    ROUTE_PARTICIPATION = "route_participation"
    RED_ZONE_TARGETS = "red_zone_targets"


class Direction(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class Comparator(str, Enum):
    RANKS = "ranks"
    EXCEEDS = "exceeds"
    TRAILS = "trails"
    MATCHES = "matches"
    DIVERGES_FROM = "diverges_from"


class RankType(str, Enum):
    RANK = "rank"
    PERCENTILE = "percentile"


class RankScope(str, Enum):
    LEAGUE = "league"
    POSITION = "position"
    CONFERENCE = "conference"
    DIVISION = "division"


class RankDirection(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"


class ComparisonTarget(str, Enum):
    LEAGUE_AVERAGE = "league_average"
    OPPONENT_AVERAGE = "opponent_average"
    POSITION_AVERAGE = "position_average"
    SEASON_BASELINE = "season_baseline"
    HISTORICAL_SELF = "historical_self"


class ContextQualifier(str, Enum):
    IN_DIVISION = "in_division"
    AT_HOME = "at_home"
    AS_UNDERDOG = "as_underdog"
    IN_PRIMETIME = "in_primetime"
    VS_TOP_10_DEFENSE = "vs_top_10_defense"
    WITH_CURRENT_QB = "with_current_qb"


METRIC_DISPLAY = {
    "receiving_epa": "Receiving EPA",
    "rushing_epa": "Rushing EPA",
    "pass_block_win_rate": "Pass Block Win Rate",
    "pressure_rate": "Pressure Rate",
    "target_share": "Target Share",
    "snap_count": "Snap Count",
    "red_zone_epa": "Red Zone EPA",
    "epa_allowed": "EPA Allowed",
    "completion_rate": "Completion Rate",
    "yards_per_attempt": "Yards Per Attempt",
    "sack_rate": "Sack Rate",
    "passer_rating": "Passer Rating",
    "yards_after_contact": "Yards After Contact",
    "separation": "Separation",
    "contested_catch_rate": "Contested Catch Rate",
    "route_participation": "Route Participation",
    "red_zone_targets": "Red Zone Targets",
}

COMPARISON_DISPLAY = {
    "league_average": "league average",
    "opponent_average": "opponent average",
    "position_average": "position average",
    "season_baseline": "season baseline",
    "historical_self": "historical self",
}

QUALIFIER_DISPLAY = {
    "in_division": "in division games",
    "at_home": "at home",
    "as_underdog": "as underdog",
    "in_primetime": "in primetime",
    "vs_top_10_defense": "vs top 10 defense",
    "with_current_qb": "with current QB",
}


class RankOrPercentile(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, use_enum_values=True)

    type: RankType
    value: float
    scope: RankScope
    direction: RankDirection


class ClaimParts(BaseModel):
    """Closed-vocabulary building blocks of a claim."""
    model_config = ConfigDict(extra="forbid", frozen=True, use_enum_values=True)

    metrics: List[Metric] = Field(min_length=1)
    direction: Direction
    comparator: Comparator
    rank_or_percentile: Optional[RankOrPercentile] = None
    comparison_target: Optional[ComparisonTarget] = None
    context_qualifier: Optional[ContextQualifier] = None


def format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def render_claim(parts: ClaimParts) -> str:
    """
    Render claim parts as text.

    "Receiving EPA + Target Share ranks top 5 in league vs league average (at home)"
    """
    claim = " + ".join(METRIC_DISPLAY.get(m, m) for m in parts.metrics)

    r = parts.rank_or_percentile
    if r is not None:
        claim += f" {parts.comparator} {r.direction} {format_number(r.value)}"
        claim += f" in {r.scope}" if r.type == RankType.RANK.value else "th percentile"

    if parts.comparison_target:
        claim += f" vs {COMPARISON_DISPLAY[parts.comparison_target]}"

    if parts.context_qualifier:
        claim += f" ({QUALIFIER_DISPLAY[parts.context_qualifier]})"

    return claim
