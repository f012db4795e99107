# agents/tests/test_context.py
"""Tests for matchup inputs and season thresholds."""
from agents.context import GameNotes, MatchupContext, PlayerData, TeamStats
from agents.thresholds import LATEST_SEASON, get_thresholds


class TestMatchupContext:
    """Tests for building a context from request data."""

    def test_from_dict(self):
        context = MatchupContext.from_dict({
            "home_team": "KC",
            "away_team": "BUF",
            "data_timestamp": "1700000000000",
            "data_version": "2025-week-6",
            "players": {"KC": [{"name": "Travis Kelce", "position": "TE", "unknown_field": 1}]},
            "team_stats": {"BUF": {"te_defense_rank": 30}},
            "weather": {"temperature": 40, "wind_mph": 10, "precipitation_chance": 0},
            "injuries": {"KC": ["Rashee Rice (WR) - OUT"]},
            "game_notes": {"news": [{"date": "2025-01-10", "text": "Allen cleared"}]},
            "year": 2025,
        })

        assert context.data_timestamp == 1_700_000_000_000
        assert context.players["KC"][0] == PlayerData(name="Travis Kelce", team="KC", position="TE")
        assert context.team_stats["BUF"] == TeamStats(team="BUF", te_defense_rank=30)
        assert context.weather.indoor is False
        assert context.injuries == {"KC": ("Rashee Rice (WR) - OUT",)}
        assert context.has_notes
        assert context.matchup == "BUF @ KC"

    def test_player_matchups_skip_missing_opponent(self):
        context = MatchupContext(
            home_team="KC",
            away_team="BUF",
            data_timestamp=1,
            data_version="v1",
            players={
                "KC": (PlayerData(name="A", team="KC", position="WR"),),
                "BUF": (PlayerData(name="B", team="BUF", position="WR"),),
            },
            team_stats={"KC": TeamStats(team="KC")},
        )
        pairs = [(p.name, s.team) for p, s in context.player_matchups()]
        assert pairs == [("B", "KC")]

    def test_empty_notes(self):
        context = MatchupContext(
            home_team="KC", away_team="BUF", data_timestamp=1, data_version="v1", game_notes=GameNotes()
        )
        assert not context.has_notes
        assert context.opponent_of("BUF") == "KC"


class TestThresholds:
    """Tests for season-keyed thresholds."""

    def test_known_season(self):
        assert get_thresholds(2024).league.avg_plays_per_game == 62.5

    def test_unknown_season_uses_latest(self):
        assert get_thresholds(1999).season == LATEST_SEASON
        assert get_thresholds().season == LATEST_SEASON

    def test_default_values(self):
        limits = get_thresholds()
        assert limits.te.target_share_rank == 8
        assert limits.qb.min_attempts == 150
        assert limits.pressure.pass_block_win_rate_rank == 22
