# core/script_builder.py
"""
Script and Ladder builders.

Scripts are correlated parlays built from correlation groups. Ladders are
risk-tiered sets of single alerts. Both carry a short provenance hash over
their type and member ids for dedup and debugging.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

from core.correlation_engine import identify_correlations
from core.models.alert import Alert
from core.models.bundles import (
    MAX_LADDER_RUNGS,
    MAX_SCRIPT_LEGS,
    MIN_LADDER_RUNGS,
    MIN_SCRIPT_LEGS,
    CorrelationGroup,
    CorrelationType,
    Ladder,
    LadderRung,
    LadderTier,
    RiskLevel,
    Script,
    ScriptLeg,
)
from core.models.llm_output import Severity
from core.provenance import hash_object


_logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

MODE_PRODUCT = "product"
MODE_GEOMETRIC = "geometric"
SCRIPT_MODES = (MODE_PRODUCT, MODE_GEOMETRIC)

DEFAULT_MAX_LEGS = 4
DEFAULT_MAX_RUNGS = 3

CORRELATION_BONUS = 0.15
CORRELATION_BONUS_WEIGHT = 0.1
MAX_COMBINED_CONFIDENCE = 0.95

SCRIPT_NAMES: Dict[CorrelationType, str] = {
    CorrelationType.GAME_SCRIPT: "Game Script Stack",
    CorrelationType.PLAYER_STACK: "Player Stack Parlay",
    CorrelationType.WEATHER_CASCADE: "Weather Impact Parlay",
    CorrelationType.DEFENSIVE_FUNNEL: "Defensive Pressure Stack",
    CorrelationType.VOLUME_SHARE: "Target Volume Parlay",
}

SAFE_MIN_CONFIDENCE = 0.7
MODERATE_MIN_CONFIDENCE = 0.5
AGGRESSIVE_MIN_CONFIDENCE = 0.3

TIER_CAPS: Dict[LadderTier, int] = {
    LadderTier.SAFE: 3,
    LadderTier.MODERATE: 4,
    LadderTier.AGGRESSIVE: 3,
}

TIER_NAMES: Dict[LadderTier, str] = {
    LadderTier.SAFE: "High Confidence Picks",
    LadderTier.MODERATE: "Balanced Value Plays",
    LadderTier.AGGRESSIVE: "High Upside Longshots",
}

TIER_BASE_STAKE_PCT: Dict[LadderTier, float] = {
    LadderTier.SAFE: 5.0,
    LadderTier.MODERATE: 3.0,
    LadderTier.AGGRESSIVE: 1.0,
}

MIN_STAKE_PCT = 0.5
MAX_STAKE_PCT = 10.0


class ScriptBuildError(Exception):
    """Raised when a script or ladder would fall outside its leg/rung bounds."""
    pass


def _round_half_up(value: float, places: int) -> float:
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


# =============================================================================
# Scripts
# =============================================================================


def calculate_combined_confidence(
    confidences: Sequence[float],
    mode: str = MODE_PRODUCT,
) -> float:
    """
    Combine leg confidences.

    product: independent-event product plus a capped correlation bonus
    geometric: geometric mean of the legs
    """
    if not confidences:
        raise ScriptBuildError("cannot combine an empty set of legs")
    if mode == MODE_PRODUCT:
        product = math.prod(confidences)
        adjusted = min(product + CORRELATION_BONUS * CORRELATION_BONUS_WEIGHT, MAX_COMBINED_CONFIDENCE)
        return _round_half_up(adjusted, 2)
    if mode == MODE_GEOMETRIC:
        mean = math.prod(confidences) ** (1.0 / len(confidences))
        return _round_half_up(mean, 2)
    raise ScriptBuildError(f"unknown script mode: {mode}")


def determine_risk_level(combined_confidence: float, leg_count: int, mode: str = MODE_PRODUCT) -> RiskLevel:
    if mode == MODE_GEOMETRIC:
        if combined_confidence > 0.7:
            return RiskLevel.CONSERVATIVE
        if combined_confidence > 0.5:
            return RiskLevel.MODERATE
        return RiskLevel.AGGRESSIVE

    if leg_count <= 2 and combined_confidence >= 0.5:
        return RiskLevel.CONSERVATIVE
    if leg_count <= 4 and combined_confidence >= 0.3:
        return RiskLevel.MODERATE
    return RiskLevel.AGGRESSIVE


def build_script(
    group: CorrelationGroup,
    alerts_by_id: Mapping[str, Alert],
    max_legs: int = DEFAULT_MAX_LEGS,
    mode: str = MODE_PRODUCT,
) -> Script:
    """
    Build a Script from one correlation group.

    Members are taken in group order up to max_legs; ids without an alert
    are skipped.

    Raises:
        ScriptBuildError: max_legs outside 2-6, unknown mode, or fewer than
            two legs available
    """
    if not MIN_SCRIPT_LEGS <= max_legs <= MAX_SCRIPT_LEGS:
        raise ScriptBuildError(
            f"max_legs must be between {MIN_SCRIPT_LEGS} and {MAX_SCRIPT_LEGS}, got {max_legs}"
        )
    if mode not in SCRIPT_MODES:
        raise ScriptBuildError(f"unknown script mode: {mode}")

    legs: List[ScriptLeg] = []
    for alert_id in group.ids[:max_legs]:
        alert = alerts_by_id.get(alert_id)
        if alert is None:
            continue
        legs.append(ScriptLeg(
            alert_id=alert.id,
            agent=alert.agent,
            claim=alert.claim,
            implication=alert.implications[0] if alert.implications else None,
            implied_probability=alert.confidence,
        ))

    if len(legs) < MIN_SCRIPT_LEGS:
        raise ScriptBuildError(
            f"{group.type.value} group has {len(legs)} usable legs, need {MIN_SCRIPT_LEGS}"
        )

    combined = calculate_combined_confidence([leg.implied_probability for leg in legs], mode)
    digest = hash_object({"type": group.type.value, "ids": [leg.alert_id for leg in legs]})

    return Script(
        id=f"script-{group.type.value}-{digest}",
        name=SCRIPT_NAMES[group.type],
        correlation_type=group.type,
        legs=legs,
        combined_confidence=combined,
        risk_level=determine_risk_level(combined, len(legs), mode),
        explanation=group.explanation,
        provenance_hash=digest,
    )


def build_scripts(
    alerts: Sequence[Alert],
    max_legs: int = DEFAULT_MAX_LEGS,
    mode: str = MODE_PRODUCT,
    exclusive: bool = True,
) -> List[Script]:
    """Correlate alerts and build one script per usable group."""
    if len(alerts) < MIN_SCRIPT_LEGS:
        return []

    alerts_by_id = {a.id: a for a in alerts}
    groups = identify_correlations(
        [a.id for a in alerts],
        {a.id: a.agent for a in alerts},
        {a.id: list(a.implications) for a in alerts},
        exclusive=exclusive,
    )

    scripts: List[Script] = []
    for group in groups:
        try:
            scripts.append(build_script(group, alerts_by_id, max_legs=max_legs, mode=mode))
        except ScriptBuildError as e:
            _logger.debug(f"Skipping {group.type.value} group: {e}")
    return scripts


# =============================================================================
# Ladders
# =============================================================================


@dataclass(frozen=True)
class LadderBucket:
    tier: LadderTier
    name: str
    alerts: List[Alert]


def _is_safe(alert: Alert) -> bool:
    return alert.confidence >= SAFE_MIN_CONFIDENCE and alert.severity == Severity.HIGH.value


def _is_moderate(alert: Alert) -> bool:
    in_band = MODERATE_MIN_CONFIDENCE <= alert.confidence < SAFE_MIN_CONFIDENCE
    return (in_band or alert.severity == Severity.MEDIUM.value) and not _is_safe(alert)


def _is_aggressive(alert: Alert) -> bool:
    return AGGRESSIVE_MIN_CONFIDENCE <= alert.confidence < MODERATE_MIN_CONFIDENCE


def organize_ladders(alerts: Sequence[Alert]) -> List[LadderBucket]:
    """Bucket alerts into safe / moderate / aggressive tiers; empty tiers are omitted."""
    predicates = (
        (LadderTier.SAFE, _is_safe),
        (LadderTier.MODERATE, _is_moderate),
        (LadderTier.AGGRESSIVE, _is_aggressive),
    )
    buckets: List[LadderBucket] = []
    for tier, predicate in predicates:
        members = [a for a in alerts if predicate(a)][:TIER_CAPS[tier]]
        if members:
            buckets.append(LadderBucket(tier, TIER_NAMES[tier], members))
    return buckets


def calculate_stake_pct(tier: LadderTier, mean_confidence: float) -> float:
    stake = TIER_BASE_STAKE_PCT[tier] + (mean_confidence - 0.5) * 2
    return _round_half_up(max(MIN_STAKE_PCT, min(MAX_STAKE_PCT, stake)), 1)


def build_ladder(
    tier: LadderTier,
    alerts: Sequence[Alert],
    max_rungs: int = DEFAULT_MAX_RUNGS,
    name: Optional[str] = None,
) -> Ladder:
    """
    Build one Ladder from alerts already bucketed into a tier.

    Raises:
        ScriptBuildError: max_rungs outside 1-5 or no alerts
    """
    if not MIN_LADDER_RUNGS <= max_rungs <= MAX_LADDER_RUNGS:
        raise ScriptBuildError(
            f"max_rungs must be between {MIN_LADDER_RUNGS} and {MAX_LADDER_RUNGS}, got {max_rungs}"
        )
    selected = list(alerts)[:max_rungs]
    if not selected:
        raise ScriptBuildError(f"{tier.value} ladder needs at least one alert")

    rungs = [
        LadderRung(
            alert_id=a.id,
            agent=a.agent,
            claim=a.claim,
            confidence=a.confidence,
            severity=a.severity,
            implications=list(a.implications),
        )
        for a in selected
    ]
    mean = sum(r.confidence for r in rungs) / len(rungs)
    digest = hash_object({"tier": tier.value, "ids": [r.alert_id for r in rungs]})

    return Ladder(
        id=f"ladder-{tier.value}-{digest}",
        tier=tier,
        name=name or TIER_NAMES[tier],
        rungs=rungs,
        total_implied_probability=_round_half_up(mean, 2),
        suggested_stake_pct=calculate_stake_pct(tier, mean),
        provenance_hash=digest,
    )


def build_ladders(
    alerts: Sequence[Alert],
    max_rungs: int = DEFAULT_MAX_RUNGS,
    include_aggressive: bool = False,
) -> List[Ladder]:
    """Organize alerts into tiers and build a ladder per non-empty tier."""
    ladders: List[Ladder] = []
    for bucket in organize_ladders(alerts):
        if bucket.tier == LadderTier.AGGRESSIVE and not include_aggressive:
            continue
        ladders.append(build_ladder(bucket.tier, bucket.alerts, max_rungs=max_rungs, name=bucket.name))
    return ladders
