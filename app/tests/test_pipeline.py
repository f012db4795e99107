# app/tests/test_pipeline.py
"""Tests for the pipeline facade: run_scan and build_bundles."""
import asyncio

import pytest

from agents.context import GameNotes, MatchupContext, PlayerData, TeamStats
from app.analyst import clear_cache
from app.config import AppConfig
from app.pipeline import NO_FINDINGS_MESSAGE, build_bundles, run_scan
from app.providers.mock import MockAnalystProvider
from core.models.alert import Alert
from core.provenance import hash_content


TS = 1_700_000_000_000
DATA_VERSION = "2025-week-6"


def make_context(players=True, game_notes=None) -> MatchupContext:
    roster = {
        "KC": (PlayerData(name="Ja'Marr Chase", team="KC", position="WR",
                          receiving_epa_rank=3, targets=120),),
    }
    return MatchupContext(
        home_team="KC",
        away_team="BUF",
        data_timestamp=TS,
        data_version=DATA_VERSION,
        players=roster if players else {},
        team_stats={
            "KC": TeamStats(team="KC"),
            "BUF": TeamStats(team="BUF", epa_allowed_to_wr_rank=8),
        },
        game_notes=game_notes,
        year=2025,
    )


@pytest.fixture(autouse=True)
def clear_response_cache():
    """Clear the analyst response cache before each test."""
    clear_cache()
    yield
    clear_cache()


def scan(context, provider=None, **kwargs):
    return asyncio.run(run_scan(
        context,
        AppConfig(),
        provider=provider or MockAnalystProvider(),
        request_id="req-test-abc123",
        now=TS,
        **kwargs,
    ))


def make_alert(alert_id: str, agent: str, implication: str, confidence: float = 0.8) -> dict:
    ref = f"local://data/{agent}/v1.json"
    return {
        "id": alert_id,
        "agent": agent,
        "evidence": [{
            "source_type": "local",
            "stat": "rank",
            "value_num": 2,
            "value_type": "numeric",
            "comparison": "2nd",
            "source_ref": ref,
        }],
        "sources": [{"type": "local", "ref": ref, "data_version": "v1", "data_timestamp": TS}],
        "confidence": confidence,
        "freshness": "live",
        "severity": "high",
        "claim": f"{agent} claim",
        "implications": [implication],
        "suppressions": [],
    }


class TestRunScan:
    """Tests for run_scan."""

    def test_epa_scan(self):
        response = scan(make_context())

        assert [a.agent for a in response.alerts] == ["epa"]
        assert response.alerts[0].confidence == pytest.approx(0.72)
        assert response.rejected == []
        assert response.agents_invoked == ["epa"]
        assert "epa" not in response.agents_silent
        assert response.fallback is False
        assert response.message is None

    def test_provenance(self):
        response = scan(make_context())

        assert response.provenance["request_id"] == "req-test-abc123"
        assert response.provenance["data_version"] == DATA_VERSION
        assert response.provenance["llm_model"] == "gpt-4o-mini"
        assert response.provenance["agents_invoked"] == ["epa"]
        assert list(response.provenance["skill_md_hashes"]) == ["epa"]

    def test_repeat_scan_hits_cache(self):
        provider = MockAnalystProvider()

        first = scan(make_context(), provider=provider)
        second = scan(make_context(), provider=provider)

        assert provider.calls == 1
        assert (first.provenance["cache_hits"], first.provenance["cache_misses"]) == (0, 1)
        assert (second.provenance["cache_hits"], second.provenance["cache_misses"]) == (1, 0)
        assert [a.id for a in second.alerts] == [a.id for a in first.alerts]

    def test_to_dict_shape(self):
        data = scan(make_context()).to_dict()

        assert data["mode"] == "prop"
        assert data["matchup"] == {"home": "KC", "away": "BUF"}
        assert data["agents"]["invoked"] == ["epa"]
        assert data["alerts"][0]["agent"] == "epa"
        assert "fallback" not in data
        assert "message" not in data
        assert isinstance(data["timing_ms"], int)

    def test_no_findings_message(self):
        provider = MockAnalystProvider()
        response = scan(make_context(players=False), provider)

        assert response.alerts == []
        assert response.agents_invoked == []
        assert response.message == NO_FINDINGS_MESSAGE
        assert response.provenance["prompt_hash"] == hash_content("")
        assert provider.calls == 0

    def test_analyst_failure_returns_fallback_alerts(self):
        response = scan(make_context(), MockAnalystProvider(fail=True))

        assert response.fallback is True
        assert len(response.alerts) == 1
        assert response.warnings == ["Analyst unavailable: AnalystProviderError"]
        assert response.to_dict()["fallback"] is True

    def test_selected_agents(self):
        response = scan(make_context(), agent_ids=["weather", "pace"])

        assert response.alerts == []
        assert response.agents_silent == ["weather", "pace"]

    def test_notes_reach_the_prompt(self):
        provider = MockAnalystProvider()
        notes = GameNotes(notes="Chiefs allowed 28% pressure rate last 3 weeks")
        response = scan(make_context(game_notes=notes), provider)

        assert "notes" in response.agents_invoked
        assert provider.calls == 1

    def test_unknown_mode(self):
        with pytest.raises(ValueError, match="Unknown mode"):
            scan(make_context(), mode="teaser")

    def test_unknown_agent(self):
        with pytest.raises(ValueError, match="Unknown agent"):
            scan(make_context(), agent_ids=["kicker"])


class TestBuildBundles:
    """Tests for build_bundles."""

    def test_prop_builds_ladders(self):
        response = scan(make_context())
        result = build_bundles([a.to_dict() for a in response.alerts], mode="prop")

        assert [ladder.tier for ladder in result.ladders] == ["safe"]
        assert result.scripts == []
        assert result.rejected == []

    def test_accepts_alert_models(self):
        alert = Alert.model_validate(make_alert("pressure-buf-1", "pressure", "qb_sacks_over"))
        result = build_bundles([alert], mode="prop")
        assert len(result.ladders) == 1

    def test_parlay_builds_product_script(self):
        alerts = [
            make_alert("pressure-buf-1", "pressure", "qb_sacks_over"),
            make_alert("qb-josh-allen-1", "qb", "qb_pass_yards_under"),
        ]
        result = build_bundles(alerts, mode="parlay")

        assert len(result.scripts) == 1
        script = result.scripts[0]
        assert script.correlation_type == "defensive_funnel"
        assert [leg.alert_id for leg in script.legs] == ["pressure-buf-1", "qb-josh-allen-1"]
        assert script.combined_confidence == pytest.approx(0.66, abs=0.01)

    def test_story_builds_geometric_script(self):
        alerts = [
            make_alert("pressure-buf-1", "pressure", "qb_sacks_over"),
            make_alert("qb-josh-allen-1", "qb", "qb_pass_yards_under"),
        ]
        result = build_bundles(alerts, mode="story")

        assert result.scripts[0].combined_confidence == pytest.approx(0.8)
        assert result.scripts[0].risk_level == "conservative"

    def test_invalid_alert_rejected_not_raised(self):
        alerts = [make_alert("pressure-buf-1", "pressure", "qb_sacks_over"), {"id": "broken"}]
        result = build_bundles(alerts, mode="prop")

        assert [r.alert_id for r in result.rejected] == ["broken"]
        assert result.rejected[0].error.code == "SCHEMA_INVALID"
        assert len(result.ladders) == 1

    def test_single_alert_has_no_script(self):
        result = build_bundles([make_alert("pressure-buf-1", "pressure", "qb_sacks_over")], mode="parlay")
        assert result.scripts == []

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            build_bundles([], mode="teaser")
