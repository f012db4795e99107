# app/schemas/terminal.py
"""
Pydantic schemas for the Terminal API.

Request bodies are validated here and converted to core types by the
router; responses mirror TerminalResponse.to_dict() and BundleResult.to_dict().
Uses snake_case to match existing API conventions.
"""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


ResponseMode = Literal["prop", "story", "parlay"]


# =============================================================================
# Request Schemas
# =============================================================================


class WeatherSchema(BaseModel):
    """Game-time weather."""
    temperature: float
    wind_mph: float = Field(ge=0)
    precipitation_chance: float = Field(ge=0, le=100)
    indoor: bool = False
    precipitation_type: Optional[str] = None
    stadium: Optional[str] = None


class NewsItemSchema(BaseModel):
    date: str
    text: str


class GameNotesSchema(BaseModel):
    """Analyst-entered notes attached to a game."""
    notes: Optional[str] = None
    key_matchups: List[str] = Field(default_factory=list)
    injuries: Dict[str, List[str]] = Field(default_factory=dict)
    weather: Dict[str, float] = Field(default_factory=dict)
    news: List[NewsItemSchema] = Field(default_factory=list)
    kickoff: Optional[str] = None
    totals: Optional[Dict[str, float]] = None
    spread: Optional[Dict[str, Any]] = None


class PlayerSchema(BaseModel):
    """
    One player's season ranks and usage window.

    The team comes from the roster key; a team field in the entry is ignored.
    """
    name: str = Field(min_length=1)
    position: str = Field(min_length=1)
    player_id: Optional[str] = None

    receiving_epa_rank: Optional[int] = Field(default=None, ge=1)
    rushing_epa_rank: Optional[int] = Field(default=None, ge=1)
    targets: Optional[int] = Field(default=None, ge=0)
    rushes: Optional[int] = Field(default=None, ge=0)

    qb_rating_rank: Optional[int] = Field(default=None, ge=1)
    yards_per_attempt_rank: Optional[int] = Field(default=None, ge=1)
    turnover_pct_rank: Optional[int] = Field(default=None, ge=1)
    attempts: Optional[int] = Field(default=None, ge=0)

    rush_yards_rank: Optional[int] = Field(default=None, ge=1)
    yards_per_carry_rank: Optional[int] = Field(default=None, ge=1)
    rush_td_rank: Optional[int] = Field(default=None, ge=1)
    carries: Optional[int] = Field(default=None, ge=0)
    reception_rank: Optional[int] = Field(default=None, ge=1)

    target_share_rank: Optional[int] = Field(default=None, ge=1)
    receiving_yards_rank: Optional[int] = Field(default=None, ge=1)
    receiving_td_rank: Optional[int] = Field(default=None, ge=1)
    separation_rank: Optional[int] = Field(default=None, ge=1)
    red_zone_target_rank: Optional[int] = Field(default=None, ge=1)

    # Fractions in [0, 1]
    snap_pct_season: Optional[float] = Field(default=None, ge=0, le=1)
    snap_pct_l4: Optional[float] = Field(default=None, ge=0, le=1)
    route_participation_season: Optional[float] = Field(default=None, ge=0, le=1)
    route_participation_l4: Optional[float] = Field(default=None, ge=0, le=1)
    target_share_season: Optional[float] = Field(default=None, ge=0, le=1)
    target_share_l4: Optional[float] = Field(default=None, ge=0, le=1)
    games_in_window: Optional[int] = Field(default=None, ge=0)
    routes_sample: Optional[int] = Field(default=None, ge=0)
    targets_sample: Optional[int] = Field(default=None, ge=0)
    injury_limited: bool = False


class TeamStatsSchema(BaseModel):
    """Team-level ranks and pace; lower rank is better."""
    epa_allowed_to_wr_rank: Optional[int] = Field(default=None, ge=1)
    epa_allowed_to_rb_rank: Optional[int] = Field(default=None, ge=1)

    pressure_rate: Optional[float] = Field(default=None, ge=0)
    pressure_rate_rank: Optional[int] = Field(default=None, ge=1)
    pass_block_win_rate_rank: Optional[int] = Field(default=None, ge=1)
    qb_name: Optional[str] = None
    qb_passer_rating_under_pressure: Optional[float] = None

    pass_defense_rank: Optional[int] = Field(default=None, ge=1)
    pass_yards_allowed_rank: Optional[int] = Field(default=None, ge=1)
    interception_rate_rank: Optional[int] = Field(default=None, ge=1)
    yards_allowed_to_wr_rank: Optional[int] = Field(default=None, ge=1)
    td_allowed_to_wr_rank: Optional[int] = Field(default=None, ge=1)
    te_defense_rank: Optional[int] = Field(default=None, ge=1)
    yards_allowed_to_te_rank: Optional[int] = Field(default=None, ge=1)
    td_allowed_to_te_rank: Optional[int] = Field(default=None, ge=1)

    rush_defense_rank: Optional[int] = Field(default=None, ge=1)
    rush_yards_allowed_rank: Optional[int] = Field(default=None, ge=1)
    rush_td_allowed_rank: Optional[int] = Field(default=None, ge=1)

    pace_rank: Optional[int] = Field(default=None, ge=1)
    plays_per_game: Optional[float] = Field(default=None, ge=0)
    seconds_per_play: Optional[float] = Field(default=None, ge=0)
    neutral_pace: Optional[float] = Field(default=None, ge=0)


class InjuryReportSchema(BaseModel):
    """Structured injury entry; free-text entries are plain strings."""
    player: str
    status: Optional[str] = None
    position: Optional[str] = None
    designation: Optional[str] = None


class MatchupContextSchema(BaseModel):
    """
    Matchup inputs for one game.

    players, team_stats and injuries are keyed by team abbreviation.
    Unknown stat fields are ignored; malformed entries fail validation.
    """
    home_team: str = Field(min_length=1)
    away_team: str = Field(min_length=1)
    data_timestamp: int = Field(ge=0)
    data_version: str = Field(min_length=1)
    players: Dict[str, List[PlayerSchema]] = Field(default_factory=dict)
    team_stats: Dict[str, TeamStatsSchema] = Field(default_factory=dict)
    weather: Optional[WeatherSchema] = None
    injuries: Dict[str, List[Union[str, InjuryReportSchema]]] = Field(default_factory=dict)
    game_notes: Optional[GameNotesSchema] = None
    year: Optional[int] = Field(default=None, ge=2000)
    week: Optional[int] = Field(default=None, ge=1, le=23)


class ScanRequestSchema(BaseModel):
    """
    Request schema for a terminal scan.

    {
      "context": { ... MatchupContext JSON ... },
      "agents": ["epa", "weather"],   // optional, default full roster
      "mode": "prop"
    }
    """
    context: MatchupContextSchema
    agents: Optional[List[str]] = None
    mode: ResponseMode = "prop"
    parallel: bool = False


class BuildRequestSchema(BaseModel):
    """Request schema for building scripts or ladders from scan alerts."""
    alerts: List[Dict[str, Any]]
    mode: ResponseMode = "prop"
    max_legs: int = Field(default=4, ge=2, le=6)
    max_rungs: int = Field(default=3, ge=1, le=5)
    include_aggressive: bool = False


class ContextHashRequestSchema(BaseModel):
    """Scan inputs that decide whether a previous scan is stale."""
    matchup: str = Field(min_length=1)
    anchors: List[str] = Field(default_factory=list)
    script_bias: List[str] = Field(default_factory=list)
    signals: List[str] = Field(default_factory=list)
    odds_paste: Optional[str] = None
    selected_agents: List[str] = Field(default_factory=list)
    overrides: Optional[Dict[str, List[str]]] = None
    previous_hash: Optional[str] = None


# =============================================================================
# Response Schemas
# =============================================================================


class MatchupSchema(BaseModel):
    home: str
    away: str


class AgentsSchema(BaseModel):
    """Which selected agents produced findings."""
    invoked: List[str]
    silent: List[str]


class RejectedAlertSchema(BaseModel):
    """An alert dropped by validation, with the failing check."""
    alert_id: str
    error: Dict[str, Any]


class TerminalResponseSchema(BaseModel):
    """Response schema for a terminal scan."""
    alerts: List[Dict[str, Any]]
    rejected: List[RejectedAlertSchema] = Field(default_factory=list)
    mode: ResponseMode
    request_id: str
    matchup: MatchupSchema
    agents: AgentsSchema
    provenance: Dict[str, Any]
    timing_ms: int
    fallback: Optional[bool] = None
    warnings: Optional[List[str]] = None
    message: Optional[str] = None


class BuildResponseSchema(BaseModel):
    """Scripts (story, parlay) or ladders (prop) built from alerts."""
    mode: ResponseMode
    scripts: List[Dict[str, Any]] = Field(default_factory=list)
    ladders: List[Dict[str, Any]] = Field(default_factory=list)
    rejected: List[RejectedAlertSchema] = Field(default_factory=list)


class ContextHashResponseSchema(BaseModel):
    context_hash: str
    stale: Optional[bool] = None


# =============================================================================
# Error Response
# =============================================================================


class ErrorResponseSchema(BaseModel):
    """Error response schema."""
    error: str
    detail: Optional[str] = None
    code: str


class ServiceDisabledResponseSchema(BaseModel):
    """Response when service is disabled."""
    error: str = "Terminal disabled"
    detail: str = "The Terminal feature is currently disabled. Set TERMINAL_ENABLED=true to enable."
    code: str = "SERVICE_DISABLED"
