# core/models/implications.py
"""
Implication allowlists.

An implication is a closed-enum market claim an alert may make. Every agent
has its own allowed set; all sets live in a single lookup table and are
checked by one generic routine.
"""
from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, List, Mapping, Tuple, Union

from core.models.finding import AgentType


# =============================================================================
# Per-agent implication sets
# =============================================================================

EPA_IMPLICATIONS = frozenset({
    "wr_receptions_over",
    "wr_receptions_under",
    "wr_yards_over",
    "wr_yards_under",
    "rb_yards_over",
    "rb_yards_under",
    "te_receptions_over",
    "te_yards_over",
    "team_total_over",
    "team_total_under",
})

PRESSURE_IMPLICATIONS = frozenset({
    "qb_sacks_over",
    "qb_sacks_under",
    "qb_ints_over",
    "qb_pass_yards_under",
    "def_sacks_over",
})

WEATHER_IMPLICATIONS = frozenset({
    "game_total_under",
    "pass_yards_under",
    "field_goals_over",
})

QB_IMPLICATIONS = frozenset({
    "qb_pass_yards_over",
    "qb_pass_yards_under",
    "qb_pass_tds_over",
    "qb_pass_tds_under",
    "qb_completions_over",
    "qb_completions_under",
    "qb_ints_over",
})

HB_IMPLICATIONS = frozenset({
    "rb_rush_yards_over",
    "rb_rush_yards_under",
    "rb_receptions_over",
    "rb_rush_attempts_over",
    "rb_tds_over",
})

WR_IMPLICATIONS = frozenset({
    "wr_receptions_over",
    "wr_receptions_under",
    "wr_yards_over",
    "wr_yards_under",
    "wr_tds_over",
    "wr_longest_reception_over",
})

TE_IMPLICATIONS = frozenset({
    "te_receptions_over",
    "te_receptions_under",
    "te_yards_over",
    "te_yards_under",
    "te_tds_over",
})

# Finding-type keyed implications for the context agents. The first entry is
# the primary implication stamped on the finding.
INJURY_IMPLICATIONS: Dict[str, Tuple[str, ...]] = {
    "qb_unavailable": ("team_total_under", "qb_pass_yards_under", "qb_pass_tds_under"),
    "skill_player_unavailable": (
        "wr_receptions_over",
        "te_receptions_over",
        "rb_rush_attempts_over",
        "team_total_under",
    ),
    "oline_unavailable": ("qb_sacks_over", "qb_pass_yards_under", "rb_rush_yards_under"),
    "defensive_playmaker_unavailable": ("game_total_over", "qb_pass_yards_over"),
}

USAGE_IMPLICATIONS: Dict[str, Tuple[str, ...]] = {
    "target_share_elite": ("wr_receptions_over", "wr_yards_over", "wr_tds_over"),
    "target_share_alpha": ("wr_receptions_over", "wr_yards_over"),
    "volume_workhorse": ("rb_rush_attempts_over", "rb_rush_yards_over"),
    "usage_trending_up": ("wr_receptions_over", "rb_rush_attempts_over"),
    "usage_trending_down": ("wr_receptions_under", "rb_rush_yards_under"),
    "snap_share_committee": ("rb_rush_yards_under",),
}

PACE_IMPLICATIONS: Dict[str, Tuple[str, ...]] = {
    "pace_over_signal": ("game_total_over", "qb_pass_yards_over"),
    "pace_under_signal": ("game_total_under", "qb_pass_yards_under"),
    "team_plays_above_avg": ("team_total_over", "qb_pass_yards_over"),
    "team_plays_below_avg": ("team_total_under",),
    "pace_mismatch": (),
}


def _flatten(by_type: Mapping[str, Tuple[str, ...]]) -> FrozenSet[str]:
    return frozenset(imp for imps in by_type.values() for imp in imps)


INJURY_ALLOWED = _flatten(INJURY_IMPLICATIONS)
USAGE_ALLOWED = _flatten(USAGE_IMPLICATIONS)
PACE_ALLOWED = _flatten(PACE_IMPLICATIONS)

ALL_IMPLICATIONS: FrozenSet[str] = (
    EPA_IMPLICATIONS
    | PRESSURE_IMPLICATIONS
    | WEATHER_IMPLICATIONS
    | QB_IMPLICATIONS
    | HB_IMPLICATIONS
    | WR_IMPLICATIONS
    | TE_IMPLICATIONS
    | INJURY_ALLOWED
    | USAGE_ALLOWED
    | PACE_ALLOWED
)

AGENT_IMPLICATIONS: Dict[AgentType, FrozenSet[str]] = {
    AgentType.EPA: EPA_IMPLICATIONS,
    AgentType.PRESSURE: PRESSURE_IMPLICATIONS,
    AgentType.WEATHER: WEATHER_IMPLICATIONS,
    AgentType.QB: QB_IMPLICATIONS,
    AgentType.HB: HB_IMPLICATIONS,
    AgentType.WR: WR_IMPLICATIONS,
    AgentType.TE: TE_IMPLICATIONS,
    AgentType.INJURY: INJURY_ALLOWED,
    AgentType.USAGE: USAGE_ALLOWED,
    AgentType.PACE: PACE_ALLOWED,
    AgentType.NOTES: ALL_IMPLICATIONS,
}


# =============================================================================
# Validation
# =============================================================================


def allowed_implications(agent: Union[AgentType, str]) -> FrozenSet[str]:
    """Allowlist for an agent; unknown agents may imply nothing."""
    try:
        key = AgentType(agent)
    except ValueError:
        return frozenset()
    return AGENT_IMPLICATIONS.get(key, frozenset())


def validate_implications_for_agent(
    agent: Union[AgentType, str],
    implications: Iterable[str],
) -> Tuple[bool, List[str]]:
    """
    Check implications against the agent's allowlist.

    Returns (valid, invalid) where invalid preserves input order.
    """
    allowed = allowed_implications(agent)
    invalid = [imp for imp in implications if imp not in allowed]
    return len(invalid) == 0, invalid
