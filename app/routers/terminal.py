# app/routers/terminal.py
"""
Terminal API Router.

Exposes the scan and build pipeline via HTTP endpoints.
Feature-flagged via AppConfig.terminal_enabled (TERMINAL_ENABLED, default on).
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from agents import ALL_AGENTS, MatchupContext
from app.config import AppConfig, load_config
from app.pipeline import build_bundles, run_scan
from app.providers.base import AnalystProvider
from app.providers.factory import ProviderFactory
from app.schemas.terminal import (
    BuildRequestSchema,
    BuildResponseSchema,
    ContextHashRequestSchema,
    ContextHashResponseSchema,
    ErrorResponseSchema,
    ScanRequestSchema,
    ServiceDisabledResponseSchema,
    TerminalResponseSchema,
)
from core.guardrails import TOKEN_LIMIT_EXCEEDED, GuardrailError
from core.script_builder import ScriptBuildError
from core.staleness import compute_context_hash, is_scan_stale

logger = logging.getLogger(__name__)


# =============================================================================
# Router Setup
# =============================================================================

router = APIRouter(
    prefix="/terminal",
    tags=["Terminal"],
)


# =============================================================================
# Feature Flag and Dependencies
# =============================================================================


def _require_enabled(config: AppConfig) -> None:
    if not config.terminal_enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=ServiceDisabledResponseSchema().model_dump(),
        )


def get_config() -> AppConfig:
    """Request-time configuration; a missing API key degrades to fallback alerts."""
    return load_config(fail_fast=False)


def get_analyst(config: AppConfig = Depends(get_config)) -> AnalystProvider:
    return ProviderFactory.get_analyst_provider(config.analyst_provider)


def _bad_request(message: str, code: str = "INVALID_REQUEST") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": "Invalid request", "detail": message, "code": code},
    )


def _guardrail_exception(e: GuardrailError) -> HTTPException:
    status_code = (
        status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
        if e.code == TOKEN_LIMIT_EXCEEDED
        else status.HTTP_429_TOO_MANY_REQUESTS
    )
    return HTTPException(
        status_code=status_code,
        detail={"error": "Request limit exceeded", "detail": e.message, "code": e.code, **e.details},
    )


# =============================================================================
# Endpoints
# =============================================================================


@router.post(
    "/scan",
    response_model=TerminalResponseSchema,
    response_model_exclude_none=True,
    responses={
        200: {"description": "Successful scan"},
        400: {"description": "Invalid request", "model": ErrorResponseSchema},
        413: {"description": "Prompt over the token limit", "model": ErrorResponseSchema},
        429: {"description": "Prompt over the cost limit", "model": ErrorResponseSchema},
        503: {"description": "Service disabled", "model": ServiceDisabledResponseSchema},
    },
    summary="Scan a matchup",
    description="Run the agents over a matchup, annotate findings and return validated alerts.",
)
async def scan(
    body: ScanRequestSchema,
    request: Request,
    config: AppConfig = Depends(get_config),
    analyst: AnalystProvider = Depends(get_analyst),
) -> TerminalResponseSchema:
    """
    Scan one matchup.

    Alerts that fail validation are listed under rejected; the rest are
    returned. When the analyst is unavailable the response carries
    fallback alerts and fallback=true.
    """
    _require_enabled(config)

    context = MatchupContext.from_dict(body.context.model_dump(exclude_none=True))

    try:
        response = await run_scan(
            context,
            config,
            mode=body.mode,
            agent_ids=body.agents,
            provider=analyst,
            request_id=getattr(request.state, "request_id", None),
            parallel=body.parallel,
        )
    except GuardrailError as e:
        logger.warning(f"[SCAN] {context.matchup} rejected by guardrails: {e.code}")
        raise _guardrail_exception(e)
    except ValueError as e:
        raise _bad_request(str(e))

    return TerminalResponseSchema(**response.to_dict())


@router.post(
    "/build",
    response_model=BuildResponseSchema,
    responses={
        200: {"description": "Scripts or ladders built"},
        400: {"description": "Invalid request", "model": ErrorResponseSchema},
        503: {"description": "Service disabled", "model": ServiceDisabledResponseSchema},
    },
    summary="Build scripts or ladders",
    description="Build correlated scripts (story, parlay) or tiered ladders (prop) from scan alerts.",
)
async def build(
    body: BuildRequestSchema,
    config: AppConfig = Depends(get_config),
) -> BuildResponseSchema:
    """Alerts that fail the schema check are rejected individually."""
    _require_enabled(config)

    try:
        result = build_bundles(
            body.alerts,
            mode=body.mode,
            max_legs=body.max_legs,
            max_rungs=body.max_rungs,
            include_aggressive=body.include_aggressive,
        )
    except (ScriptBuildError, ValueError) as e:
        raise _bad_request(str(e))

    return BuildResponseSchema(**result.to_dict())


@router.post(
    "/context-hash",
    response_model=ContextHashResponseSchema,
    response_model_exclude_none=True,
    summary="Hash scan inputs",
    description="Return the staleness key for a set of scan inputs.",
)
async def context_hash(
    body: ContextHashRequestSchema,
    config: AppConfig = Depends(get_config),
) -> ContextHashResponseSchema:
    _require_enabled(config)

    current = compute_context_hash(
        body.matchup,
        anchors=body.anchors,
        script_bias=body.script_bias,
        signals=body.signals,
        odds_paste=body.odds_paste,
        selected_agents=body.selected_agents,
        overrides=body.overrides,
    )
    stale = is_scan_stale(body.previous_hash, current) if body.previous_hash is not None else None
    return ContextHashResponseSchema(context_hash=current, stale=stale)


@router.get("/status", summary="Terminal status")
async def status_check(config: AppConfig = Depends(get_config)):
    """Feature flag and roster, for health dashboards."""
    return {
        "enabled": config.terminal_enabled,
        "agents": [agent.value for agent in ALL_AGENTS],
        "analyst_providers": ProviderFactory.available_analyst_providers(),
    }
