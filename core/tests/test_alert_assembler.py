# core/tests/test_alert_assembler.py
"""Tests for merging code-derived fields with analyst annotations."""
import pytest

from core.alert_assembler import (
    AssemblyError,
    assemble_alert,
    assemble_alerts,
    build_code_derived_fields,
    compute_freshness,
    generate_fallback_alerts,
)
from core.confidence import DAY_MS, HOUR_MS
from core.models.alert import CODE_DERIVED_FIELDS, LLM_DERIVED_FIELDS, Freshness
from core.models.claim import MAX_CLAIM_LENGTH
from core.models.finding import Finding
from core.models.llm_output import LLMFindingOutput
from core.validators import validate_schema


NOW = 1_700_000_000_000
DATA_VERSION = "2025-week-6"


def make_finding(fid: str = "epa-ja'marr-chase-recv-1700000000000", **overrides) -> Finding:
    fields = dict(
        id=fid,
        agent="epa",
        type="receiving_epa_mismatch",
        stat="receiving_epa_rank",
        value_num=3,
        value_type="numeric",
        threshold_met="receiving_epa_rank <= 10",
        comparison_context="3rd in league vs 8th-worst defense",
        source_ref="local://data/epa/2025-week-6.json",
        source_type="local",
        source_timestamp=NOW - HOUR_MS,
        sample_size=120,
    )
    fields.update(overrides)
    return Finding(**fields)


def make_annotation(**overrides) -> LLMFindingOutput:
    entry = {
        "severity": "high",
        "claim_parts": {
            "metrics": ["receiving_epa"],
            "direction": "positive",
            "comparator": "ranks",
            "rank_or_percentile": {"type": "rank", "value": 3, "scope": "league", "direction": "top"},
        },
        "implications": ["wr_yards_over"],
        "suppressions": [],
    }
    entry.update(overrides)
    return LLMFindingOutput.model_validate(entry)


class TestFieldSets:
    """Tests for the disjoint field partition."""

    def test_field_sets_disjoint(self):
        assert CODE_DERIVED_FIELDS.isdisjoint(LLM_DERIVED_FIELDS)

    def test_confidence_is_code_derived(self):
        assert "confidence" in CODE_DERIVED_FIELDS
        assert "confidence" not in LLM_DERIVED_FIELDS


class TestComputeFreshness:
    """Tests for freshness buckets."""

    def test_live(self):
        assert compute_freshness(NOW - HOUR_MS, now=NOW) == Freshness.LIVE

    def test_weekly(self):
        assert compute_freshness(NOW - 3 * DAY_MS, now=NOW) == Freshness.WEEKLY

    def test_stale(self):
        assert compute_freshness(NOW - 8 * DAY_MS, now=NOW) == Freshness.STALE


class TestBuildCodeDerivedFields:
    """Tests for evidence and source construction."""

    def test_local_finding(self):
        fields = build_code_derived_fields(make_finding(), 0.72, DATA_VERSION, now=NOW)

        assert fields.id == "epa-ja'marr-chase-recv-1700000000000"
        assert fields.agent == "epa"
        assert fields.evidence[0].source_type == "local"
        assert fields.evidence[0].source_ref == fields.sources[0].ref
        assert fields.sources[0].search_timestamp is None
        assert fields.sources[0].data_version == DATA_VERSION
        assert fields.freshness == "live"

    def test_web_finding_has_search_timestamp(self):
        finding = make_finding(
            source_type="web",
            source_ref="https://example.com/report",
            quote_snippet="Chase practiced in full",
        )
        fields = build_code_derived_fields(finding, 0.6, DATA_VERSION, now=NOW)

        assert fields.evidence[0].source_type == "web"
        assert fields.sources[0].type == "web"
        assert fields.sources[0].search_timestamp == finding.source_timestamp

    def test_notes_finding_carried_as_local(self):
        finding = make_finding(source_type="notes", source_ref="notes://injuries/KC")
        fields = build_code_derived_fields(finding, 0.6, DATA_VERSION, now=NOW)
        assert fields.sources[0].type == "local"


class TestAssembleAlerts:
    """Tests for strict, total assembly."""

    def test_single_alert(self):
        finding = make_finding()
        alerts = assemble_alerts(
            [finding], {finding.id: make_annotation()}, {finding.id: 0.72}, DATA_VERSION, now=NOW
        )

        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.id == finding.id
        assert alert.confidence == pytest.approx(0.72)
        assert alert.claim == "Receiving EPA ranks top 3 in league"
        assert alert.implications == ["wr_yards_over"]

    def test_order_mirrors_findings(self):
        a = make_finding("a-1")
        b = make_finding("b-1")
        annotations = {"b-1": make_annotation(), "a-1": make_annotation()}

        alerts = assemble_alerts([a, b], annotations, {}, DATA_VERSION, now=NOW)

        assert [x.id for x in alerts] == ["a-1", "b-1"]

    def test_missing_confidence_defaults(self):
        finding = make_finding()
        alerts = assemble_alerts([finding], {finding.id: make_annotation()}, {}, DATA_VERSION, now=NOW)
        assert alerts[0].confidence == 0.5

    def test_missing_annotation(self):
        """A finding without annotation fails the whole batch."""
        a = make_finding("a-1")
        b = make_finding("b-1")

        with pytest.raises(AssemblyError, match="LLM output missing for finding: b-1"):
            assemble_alerts([a, b], {"a-1": make_annotation()}, {}, DATA_VERSION, now=NOW)

    def test_unknown_annotation_key(self):
        a = make_finding("a-1")
        annotations = {"a-1": make_annotation(), "ghost-1": make_annotation()}

        with pytest.raises(AssemblyError, match="LLM output contains unknown finding_id: ghost-1"):
            assemble_alerts([a], annotations, {}, DATA_VERSION, now=NOW)

    def test_assemble_alert_merges_fields(self):
        code = build_code_derived_fields(make_finding(), 0.72, DATA_VERSION, now=NOW)
        alert = assemble_alert(code, make_annotation(severity="medium"))

        assert alert.severity == "medium"
        assert alert.confidence == pytest.approx(0.72)
        assert alert.suppressions == []


class TestFallbackAlerts:
    """Tests for analyst-free fallback alerts."""

    def test_claim_quotes_finding(self):
        finding = make_finding()
        alerts = generate_fallback_alerts([finding], DATA_VERSION, now=NOW)

        assert alerts[0].claim == "receiving_epa_rank: 3 (3rd in league vs 8th-worst defense)"
        assert alerts[0].implications == ["team_total_over"]

    def test_severity_follows_confidence(self):
        strong = make_finding("strong-1", sample_size=120)
        weak = make_finding("weak-1", sample_size=10)

        alerts = generate_fallback_alerts([strong, weak], DATA_VERSION, now=NOW)

        assert alerts[0].confidence == pytest.approx(0.72)
        assert alerts[0].severity == "high"
        assert alerts[1].confidence == pytest.approx(0.5)
        assert alerts[1].severity == "medium"

    def test_comparison_not_repeated_when_it_is_the_value(self):
        finding = make_finding(
            "notes-matchup-0-1", agent="notes", type="note_key_matchup", stat="key_matchup",
            value_num=None, value_str="Kelce vs a rookie safety", value_type="string",
            comparison_context="Kelce vs a rookie safety", source_type="notes", sample_size=None,
        )
        alerts = generate_fallback_alerts([finding], DATA_VERSION, now=NOW)
        assert alerts[0].claim == "key_matchup: Kelce vs a rookie safety"

    def test_long_claim_cut_to_limit(self):
        text = "Travis Kelce against a linebacker group that has allowed " + "big plays " * 20
        finding = make_finding(
            "notes-matchup-0-2", agent="notes", type="note_key_matchup", stat="key_matchup",
            value_num=None, value_str=text, value_type="string",
            comparison_context=text, source_type="notes", sample_size=None,
        )

        alert = generate_fallback_alerts([finding], DATA_VERSION, now=NOW)[0]

        assert len(alert.claim) <= MAX_CLAIM_LENGTH
        assert alert.claim.startswith("key_matchup: Travis Kelce")
        assert alert.claim.endswith("...")
        assert validate_schema(alert.to_dict()).claim == alert.claim
