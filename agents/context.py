# agents/context.py
"""
MatchupContext - the input every detector agent reads.

Structured, immutable inputs for one game:
- players per team (season ranks plus usage windows)
- team stats per team (defense ranks, pass rush, pace)
- weather, curated game notes and injury reports

Missing optional values are None. Agents treat None as "condition not
satisfied", never as an error.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union


def _known_fields(cls, data: Mapping[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


@dataclass(frozen=True)
class PlayerData:
    """One player's season ranks and usage window."""

    name: str
    team: str
    position: str
    player_id: Optional[str] = None

    # EPA
    receiving_epa_rank: Optional[int] = None
    rushing_epa_rank: Optional[int] = None
    targets: Optional[int] = None
    rushes: Optional[int] = None

    # Passing
    qb_rating_rank: Optional[int] = None
    yards_per_attempt_rank: Optional[int] = None
    turnover_pct_rank: Optional[int] = None
    attempts: Optional[int] = None

    # Rushing
    rush_yards_rank: Optional[int] = None
    yards_per_carry_rank: Optional[int] = None
    rush_td_rank: Optional[int] = None
    carries: Optional[int] = None
    reception_rank: Optional[int] = None

    # Receiving
    target_share_rank: Optional[int] = None
    receiving_yards_rank: Optional[int] = None
    receiving_td_rank: Optional[int] = None
    separation_rank: Optional[int] = None
    red_zone_target_rank: Optional[int] = None

    # Usage, season vs last four games (fractions in [0, 1])
    snap_pct_season: Optional[float] = None
    snap_pct_l4: Optional[float] = None
    route_participation_season: Optional[float] = None
    route_participation_l4: Optional[float] = None
    target_share_season: Optional[float] = None
    target_share_l4: Optional[float] = None
    games_in_window: Optional[int] = None
    routes_sample: Optional[int] = None
    targets_sample: Optional[int] = None
    injury_limited: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlayerData":
        return cls(**_known_fields(cls, data))


@dataclass(frozen=True)
class TeamStats:
    """Team-level ranks. Lower rank is better; defense ranks count from best to worst."""

    team: str

    # EPA allowed
    epa_allowed_to_wr_rank: Optional[int] = None
    epa_allowed_to_rb_rank: Optional[int] = None

    # Pass rush / protection
    pressure_rate: Optional[float] = None
    pressure_rate_rank: Optional[int] = None
    pass_block_win_rate_rank: Optional[int] = None
    qb_name: Optional[str] = None
    qb_passer_rating_under_pressure: Optional[float] = None

    # Pass defense
    pass_defense_rank: Optional[int] = None
    pass_yards_allowed_rank: Optional[int] = None
    interception_rate_rank: Optional[int] = None
    yards_allowed_to_wr_rank: Optional[int] = None
    td_allowed_to_wr_rank: Optional[int] = None
    te_defense_rank: Optional[int] = None
    yards_allowed_to_te_rank: Optional[int] = None
    td_allowed_to_te_rank: Optional[int] = None

    # Run defense
    rush_defense_rank: Optional[int] = None
    rush_yards_allowed_rank: Optional[int] = None
    rush_td_allowed_rank: Optional[int] = None

    # Pace
    pace_rank: Optional[int] = None
    plays_per_game: Optional[float] = None
    seconds_per_play: Optional[float] = None
    neutral_pace: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TeamStats":
        return cls(**_known_fields(cls, data))


@dataclass(frozen=True)
class WeatherData:
    """Game-time forecast. Temperature in Fahrenheit, precipitation as a percent chance."""

    temperature: float
    wind_mph: float
    precipitation_chance: float
    indoor: bool = False
    precipitation_type: Optional[str] = None
    stadium: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WeatherData":
        return cls(**_known_fields(cls, data))


@dataclass(frozen=True)
class NewsItem:
    date: str
    text: str


@dataclass(frozen=True)
class GameNotes:
    """Curated intelligence for one game."""

    notes: Optional[str] = None
    key_matchups: Tuple[str, ...] = ()
    injuries: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    weather: Dict[str, float] = field(default_factory=dict)
    news: Tuple[NewsItem, ...] = ()
    kickoff: Optional[str] = None
    totals: Optional[Dict[str, float]] = None
    spread: Optional[Dict[str, Any]] = None

    @property
    def is_empty(self) -> bool:
        return not (self.notes or self.key_matchups or self.injuries or self.weather or self.news)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GameNotes":
        return cls(
            notes=data.get("notes"),
            key_matchups=tuple(data.get("key_matchups") or ()),
            injuries={
                team: tuple(entries) for team, entries in (data.get("injuries") or {}).items()
            },
            weather=dict(data.get("weather") or {}),
            news=tuple(
                NewsItem(date=str(item.get("date", "")), text=str(item.get("text", "")))
                for item in (data.get("news") or ())
            ),
            kickoff=data.get("kickoff"),
            totals=data.get("totals"),
            spread=data.get("spread"),
        )


# Injury report entry: free text ("Patrick Mahomes (QB) - OUT") or a dict
InjuryEntry = Union[str, Mapping[str, Any]]


@dataclass(frozen=True)
class MatchupContext:
    """Everything the agents may look at for one game."""

    home_team: str
    away_team: str
    data_timestamp: int
    data_version: str
    players: Dict[str, Tuple[PlayerData, ...]] = field(default_factory=dict)
    team_stats: Dict[str, TeamStats] = field(default_factory=dict)
    weather: Optional[WeatherData] = None
    injuries: Dict[str, Tuple[InjuryEntry, ...]] = field(default_factory=dict)
    game_notes: Optional[GameNotes] = None
    year: Optional[int] = None
    week: Optional[int] = None

    @property
    def matchup(self) -> str:
        return f"{self.away_team} @ {self.home_team}"

    @property
    def has_notes(self) -> bool:
        return self.game_notes is not None and not self.game_notes.is_empty

    def opponent_of(self, team: str) -> str:
        return self.away_team if team == self.home_team else self.home_team

    def team_pairs(self) -> Iterator[Tuple[str, str]]:
        """(team, opponent) pairs, home first."""
        yield self.home_team, self.away_team
        yield self.away_team, self.home_team

    def player_matchups(self) -> Iterator[Tuple[PlayerData, TeamStats]]:
        """
        Yield each player with the opposing team's stats, home roster first.

        Players whose opponent has no stats are skipped.
        """
        for team, opponent in self.team_pairs():
            opponent_stats = self.team_stats.get(opponent)
            if opponent_stats is None:
                continue
            for player in self.players.get(team, ()):
                yield player, opponent_stats

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MatchupContext":
        players = {
            team: tuple(
                p if isinstance(p, PlayerData) else PlayerData.from_dict({"team": team, **p})
                for p in roster
            )
            for team, roster in (data.get("players") or {}).items()
        }
        team_stats = {
            team: s if isinstance(s, TeamStats) else TeamStats.from_dict({"team": team, **s})
            for team, s in (data.get("team_stats") or {}).items()
        }
        weather = data.get("weather")
        if weather is not None and not isinstance(weather, WeatherData):
            weather = WeatherData.from_dict(weather)
        notes = data.get("game_notes")
        if notes is not None and not isinstance(notes, GameNotes):
            notes = GameNotes.from_dict(notes)

        return cls(
            home_team=data["home_team"],
            away_team=data["away_team"],
            data_timestamp=int(data["data_timestamp"]),
            data_version=data["data_version"],
            players=players,
            team_stats=team_stats,
            weather=weather,
            injuries={team: tuple(entries) for team, entries in (data.get("injuries") or {}).items()},
            game_notes=notes,
            year=data.get("year"),
            week=data.get("week"),
        )
