# app/pipeline.py
"""
Pipeline Facade - single entry point for terminal scans and builds.

All routes go through this facade:

    Router (request schema) → Pipeline (agents → analyst → validators) → Router (response)

The scan pipeline:
1. Runs the selected agents over the matchup context
2. Annotates findings through the analyst (or falls back)
3. Validates every alert independently
4. Records provenance for the request

Routes should NOT call agents, the analyst or the validators themselves.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from agents import MatchupContext, run_agents
from agents.thresholds import get_thresholds
from app.analyst import analyze_findings
from app.config import AppConfig
from app.providers.base import AnalystProvider
from app.providers.factory import ProviderFactory
from core.confidence import now_ms
from core.models.alert import Alert
from core.models.bundles import Ladder, Script
from core.provenance import build_provenance, generate_request_id
from core.script_builder import (
    DEFAULT_MAX_LEGS,
    DEFAULT_MAX_RUNGS,
    MODE_GEOMETRIC,
    MODE_PRODUCT,
    build_ladders,
    build_scripts,
)
from core.validators import RejectedAlert, ValidationError, validate_alerts, validate_schema

_logger = logging.getLogger(__name__)


# =============================================================================
# Modes
# =============================================================================

MODE_PROP = "prop"
MODE_STORY = "story"
MODE_PARLAY = "parlay"
RESPONSE_MODES = (MODE_PROP, MODE_STORY, MODE_PARLAY)

# How script legs are combined per response mode
SCRIPT_COMBINATION = {
    MODE_PARLAY: MODE_PRODUCT,
    MODE_STORY: MODE_GEOMETRIC,
}

NO_FINDINGS_MESSAGE = "No agents found anything notable for this matchup."


# =============================================================================
# Pipeline Responses
# =============================================================================


@dataclass(frozen=True)
class TerminalResponse:
    """
    Unified response for a scan.

    alerts always holds the alerts that passed validation; rejected holds
    one entry per alert that failed, with the error code and details.
    """
    alerts: List[Alert]
    rejected: List[RejectedAlert]
    mode: str
    request_id: str
    home_team: str
    away_team: str
    agents_invoked: List[str]
    agents_silent: List[str]
    provenance: Dict[str, Any]
    timing_ms: int
    fallback: bool = False
    warnings: List[str] = field(default_factory=list)
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "alerts": [a.to_dict() for a in self.alerts],
            "rejected": [r.to_dict() for r in self.rejected],
            "mode": self.mode,
            "request_id": self.request_id,
            "matchup": {"home": self.home_team, "away": self.away_team},
            "agents": {"invoked": list(self.agents_invoked), "silent": list(self.agents_silent)},
            "provenance": self.provenance,
            "timing_ms": self.timing_ms,
        }
        if self.fallback:
            data["fallback"] = True
        if self.warnings:
            data["warnings"] = list(self.warnings)
        if self.message:
            data["message"] = self.message
        return data


@dataclass(frozen=True)
class BundleResult:
    """Scripts or ladders built from validated alerts."""
    mode: str
    scripts: List[Script] = field(default_factory=list)
    ladders: List[Ladder] = field(default_factory=list)
    rejected: List[RejectedAlert] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "scripts": [s.to_dict() for s in self.scripts],
            "ladders": [ladder.to_dict() for ladder in self.ladders],
            "rejected": [r.to_dict() for r in self.rejected],
        }


# =============================================================================
# Scan
# =============================================================================


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


async def run_scan(
    context: MatchupContext,
    config: AppConfig,
    mode: str = MODE_PROP,
    agent_ids: Optional[Iterable[str]] = None,
    provider: Optional[AnalystProvider] = None,
    request_id: Optional[str] = None,
    parallel: bool = False,
    now: Optional[int] = None,
) -> TerminalResponse:
    """
    Run the full scan for one matchup.

    Args:
        context: Matchup inputs
        config: Analyst and season settings
        mode: Response mode (prop, story, parlay)
        agent_ids: Agents to run (default: full roster)
        provider: Analyst override (default: from config)
        request_id: Correlation id (default: generated)
        parallel: Run agents on a thread pool
        now: Epoch ms used for confidence and freshness

    Raises:
        ValueError: unknown mode or agent id
        GuardrailError: analyst prompt over the token or cost limit
    """
    if mode not in RESPONSE_MODES:
        raise ValueError(f"Unknown mode: {mode}")

    started = time.perf_counter()
    current = now if now is not None else now_ms()
    request_id = request_id or generate_request_id(current)
    analyst = provider or ProviderFactory.get_analyst_provider(config.analyst_provider)

    thresholds = get_thresholds(context.year or config.season_year)
    run = run_agents(context, agent_ids, thresholds=thresholds, parallel=parallel)

    notes_text = context.game_notes.notes if context.game_notes else None
    analysis = await analyze_findings(
        run.findings,
        context.data_version,
        analyst,
        model=config.analyst_model,
        temperature=config.analyst_temperature,
        timeout_ms=config.analyst_timeout_ms,
        game_notes=notes_text,
        now=current,
        cache_ttl_seconds=config.analyst_cache_ttl_seconds,
    )

    batch = validate_alerts(analysis.alerts, run.findings, analysis.confidences, now=current)

    provenance = build_provenance(
        request_id=request_id,
        prompt=analysis.prompt,
        skill_mds=analysis.skill_mds,
        findings=run.findings,
        data_version=context.data_version,
        data_timestamp=context.data_timestamp,
        llm_model=config.analyst_model,
        llm_temperature=config.analyst_temperature,
        agents_invoked=run.agents_invoked,
        agents_silent=run.agents_silent,
        cache_hits=analysis.cache_hits,
        cache_misses=analysis.cache_misses,
    )

    warnings = list(analysis.warnings)
    if batch.errors:
        warnings.append(f"{len(batch.errors)} alert(s) failed validation")

    _logger.info(
        f"[SCAN] request_id={request_id} matchup={context.matchup} mode={mode} "
        f"findings={len(run.findings)} alerts={len(batch.valid)} rejected={len(batch.errors)} "
        f"fallback={analysis.fallback}"
    )

    return TerminalResponse(
        alerts=batch.valid,
        rejected=batch.errors,
        mode=mode,
        request_id=request_id,
        home_team=context.home_team,
        away_team=context.away_team,
        agents_invoked=run.agents_invoked,
        agents_silent=run.agents_silent,
        provenance=provenance.to_dict(),
        timing_ms=_elapsed_ms(started),
        fallback=analysis.fallback,
        warnings=warnings,
        message=None if run.findings else NO_FINDINGS_MESSAGE,
    )


# =============================================================================
# Build
# =============================================================================


def parse_alerts(raw_alerts: Sequence[Union[Alert, Dict[str, Any]]]) -> tuple[List[Alert], List[RejectedAlert]]:
    """Strictly re-parse client-supplied alerts; invalid ones are rejected, not raised."""
    alerts: List[Alert] = []
    rejected: List[RejectedAlert] = []
    for raw in raw_alerts:
        try:
            alerts.append(validate_schema(raw))
        except ValidationError as e:
            alert_id = raw.get("id", "") if isinstance(raw, dict) else raw.id
            rejected.append(RejectedAlert(str(alert_id), e))
    return alerts, rejected


def build_bundles(
    raw_alerts: Sequence[Union[Alert, Dict[str, Any]]],
    mode: str = MODE_PROP,
    max_legs: int = DEFAULT_MAX_LEGS,
    max_rungs: int = DEFAULT_MAX_RUNGS,
    include_aggressive: bool = False,
) -> BundleResult:
    """
    Build ladders (prop mode) or correlated scripts (story and parlay modes).

    Raises:
        ValueError: unknown mode
        ScriptBuildError: max_rungs out of range
    """
    if mode not in RESPONSE_MODES:
        raise ValueError(f"Unknown mode: {mode}")

    alerts, rejected = parse_alerts(raw_alerts)

    if mode == MODE_PROP:
        ladders = build_ladders(alerts, max_rungs=max_rungs, include_aggressive=include_aggressive)
        _logger.info(f"Built {len(ladders)} ladders from {len(alerts)} alerts")
        return BundleResult(mode=mode, ladders=ladders, rejected=rejected)

    scripts = build_scripts(alerts, max_legs=max_legs, mode=SCRIPT_COMBINATION[mode])
    _logger.info(f"Built {len(scripts)} scripts from {len(alerts)} alerts")
    return BundleResult(mode=mode, scripts=scripts, rejected=rejected)
