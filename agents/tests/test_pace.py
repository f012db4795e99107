# agents/tests/test_pace.py
"""Tests for projected plays and pace findings."""
import pytest

from agents import pace
from agents.context import MatchupContext, TeamStats, WeatherData
from agents.pace import apply_weather_modifier, compute_projected_plays, matchup_confidence
from agents.thresholds import LeagueAverages, PaceThresholds, get_thresholds


TS = 1_700_000_000_000
THRESHOLDS = get_thresholds(2025)
LEAGUE = LeagueAverages(avg_plays_per_game=63.0, avg_seconds_per_play=30.0)


def make_context(home: TeamStats, away: TeamStats, weather=None) -> MatchupContext:
    return MatchupContext(
        home_team="KC",
        away_team="BUF",
        data_timestamp=TS,
        data_version="2025-week-6",
        team_stats={"KC": home, "BUF": away},
        weather=weather,
    )


class TestProjectedPlays:
    """Tests for the projected play blend."""

    def test_full(self):
        projected = compute_projected_plays(
            TeamStats(team="KC", plays_per_game=66), TeamStats(team="BUF", plays_per_game=64), LEAGUE
        )
        assert projected.plays == 65
        assert projected.data_quality == "full"

    def test_partial_from_seconds_per_play(self):
        projected = compute_projected_plays(
            TeamStats(team="KC", seconds_per_play=25), TeamStats(team="BUF", plays_per_game=64), LEAGUE
        )
        assert projected.home_contrib == 72
        assert projected.data_quality == "partial"

    def test_fallback_to_league(self):
        projected = compute_projected_plays(TeamStats(team="KC", plays_per_game=66), None, LEAGUE)
        assert projected.away_contrib == 63.0
        assert projected.data_quality == "fallback"


class TestConfidence:
    """Tests for pace confidence and the wind modifier."""

    def test_matchup_confidence(self):
        assert matchup_confidence("full", "pace_over_signal") == pytest.approx(0.9)
        assert matchup_confidence("fallback", "pace_mismatch") == pytest.approx(0.6)

    def test_high_wind_drops_totals(self):
        confidence, implications = apply_weather_modifier(
            0.9,
            WeatherData(temperature=40, wind_mph=25, precipitation_chance=0),
            ("game_total_over", "qb_pass_yards_over"),
            PaceThresholds(),
        )
        assert confidence == 0.63
        assert implications == ("qb_pass_yards_over",)

    def test_indoor_wind_ignored(self):
        weather = WeatherData(temperature=70, wind_mph=25, precipitation_chance=0, indoor=True)
        result = apply_weather_modifier(0.9, weather, ("game_total_over",), PaceThresholds())
        assert result == (0.9, ("game_total_over",))


class TestPaceAgent:
    """Tests for pace findings."""

    def test_over_signal(self):
        context = make_context(TeamStats(team="KC", plays_per_game=70), TeamStats(team="BUF", plays_per_game=68))

        findings = pace.detect(context, THRESHOLDS)

        assert len(findings) == 1
        finding = findings[0]
        assert finding.id == f"pace-matchup-kc-buf-{TS}"
        assert finding.type == "pace_over_signal"
        assert finding.value_num == 69.0
        assert finding.comparison_context == "Projected 69.0 plays (+6.0 vs league avg)"
        assert finding.threshold_met == "projected_plays >= 68"
        assert finding.implication == "game_total_over"
        assert finding.confidence == pytest.approx(0.9)

    def test_over_signal_in_wind(self):
        context = make_context(
            TeamStats(team="KC", plays_per_game=70),
            TeamStats(team="BUF", plays_per_game=68),
            weather=WeatherData(temperature=40, wind_mph=25, precipitation_chance=0),
        )
        finding = pace.detect(context, THRESHOLDS)[0]
        assert finding.confidence == 0.63
        assert finding.implication == "qb_pass_yards_over"
        assert finding.payload["implications"] == ["qb_pass_yards_over"]

    def test_mismatch_and_team_findings(self):
        """Without a matchup signal, team findings are emitted."""
        context = make_context(TeamStats(team="KC", pace_rank=3), TeamStats(team="BUF", pace_rank=28))

        findings = pace.detect(context, THRESHOLDS)

        assert [f.type for f in findings] == ["pace_mismatch", "team_plays_above_avg", "team_plays_below_avg"]
        mismatch, fast, slow = findings
        assert mismatch.comparison_context == "Pace mismatch: KC (3) vs BUF (28)"
        assert mismatch.confidence == 0.65
        assert fast.id == f"pace-team-kc-{TS}"
        assert fast.comparison_context == "KC: 3rd in pace"
        assert fast.implication == "team_total_over"
        assert slow.implication == "team_total_under"

    def test_average_game_silent(self):
        context = make_context(TeamStats(team="KC", plays_per_game=63), TeamStats(team="BUF", plays_per_game=64))
        assert pace.detect(context, THRESHOLDS) == []

    def test_no_team_stats(self):
        context = MatchupContext(home_team="KC", away_team="BUF", data_timestamp=TS, data_version="v1")
        assert pace.detect(context, THRESHOLDS) == []
