# core/tests/test_validators.py
"""Tests for the ordered validator chain."""
import pytest

from core.alert_assembler import assemble_alerts
from core.confidence import DAY_MS, HOUR_MS, MINUTE_MS
from core.models.alert import Alert
from core.models.finding import Finding
from core.models.llm_output import LLMFindingOutput
from core.validators import (
    AGENT_MISMATCH,
    CONFIDENCE_MODIFIED,
    EDGE_LANGUAGE_WITHOUT_LINE,
    FRESHNESS_MISMATCH,
    ID_MISMATCH,
    INVALID_IMPLICATIONS,
    MISSING_FINDING,
    MISSING_SOURCE,
    ORPHAN_SOURCE,
    SCHEMA_INVALID,
    STALE_LINE,
    ValidationError,
    validate_alert,
    validate_alerts,
    validate_line_freshness,
    validate_no_edge_without_line,
)


NOW = 1_700_000_000_000
FINDING_ID = "epa-ja'marr-chase-recv-1700000000000"
SOURCE_REF = "local://data/epa/2025-week-6.json"


def make_finding(**overrides) -> Finding:
    fields = dict(
        id=FINDING_ID,
        agent="epa",
        type="receiving_epa_mismatch",
        stat="receiving_epa_rank",
        value_num=3,
        value_type="numeric",
        threshold_met="receiving_epa_rank <= 10",
        comparison_context="3rd in league",
        source_ref=SOURCE_REF,
        source_type="local",
        source_timestamp=NOW - HOUR_MS,
    )
    fields.update(overrides)
    return Finding(**fields)


def make_alert_dict(**overrides) -> dict:
    """A valid alert payload that tests mutate one field at a time."""
    alert = {
        "id": FINDING_ID,
        "agent": "epa",
        "evidence": [{
            "source_type": "local",
            "stat": "receiving_epa_rank",
            "value_num": 3,
            "value_type": "numeric",
            "comparison": "3rd in league",
            "source_ref": SOURCE_REF,
        }],
        "sources": [{
            "type": "local",
            "ref": SOURCE_REF,
            "data_version": "2025-week-6",
            "data_timestamp": NOW - HOUR_MS,
        }],
        "confidence": 0.6,
        "freshness": "live",
        "severity": "high",
        "claim": "Receiving EPA ranks top 3 in league",
        "implications": ["wr_yards_over"],
        "suppressions": [],
    }
    alert.update(overrides)
    return alert


def make_line_evidence(line_type: str, age_ms: int) -> dict:
    return {
        "source_type": "line",
        "stat": "line",
        "value_num": 47.5,
        "value_type": "numeric",
        "comparison": "market",
        "source_ref": "line://book/1",
        "line_type": line_type,
        "line_value": 47.5,
        "line_odds": -110,
        "book": "book",
        "line_timestamp": NOW - age_ms,
        "line_ttl": 30 * MINUTE_MS,
    }


def with_line(line_type: str, age_ms: int, **overrides) -> dict:
    base = make_alert_dict(**overrides)
    base["evidence"] = base["evidence"] + [make_line_evidence(line_type, age_ms)]
    base["sources"] = base["sources"] + [{
        "type": "line",
        "ref": "line://book/1",
        "data_version": "2025-week-6",
        "data_timestamp": NOW - age_ms,
    }]
    return base


def error_code(alert, finding=None, expected=0.6) -> str:
    with pytest.raises(ValidationError) as exc:
        validate_alert(alert, finding or make_finding(), expected, now=NOW)
    return exc.value.code


class TestValidateAlert:
    """Tests for each step of the chain."""

    def test_valid_alert_passes(self):
        alert = validate_alert(make_alert_dict(), make_finding(), 0.6, now=NOW)
        assert isinstance(alert, Alert)

    def test_extra_field_rejected(self):
        assert error_code(make_alert_dict(edge_score=0.9)) == SCHEMA_INVALID

    def test_claim_too_long_rejected(self):
        assert error_code(make_alert_dict(claim="x" * 201)) == SCHEMA_INVALID

    def test_id_mismatch(self):
        assert error_code(make_alert_dict(id="epa-someone-else-1")) == ID_MISMATCH

    def test_agent_mismatch(self):
        assert error_code(make_alert_dict(agent="wr")) == AGENT_MISMATCH

    def test_confidence_modified(self):
        """The analyst cannot move confidence."""
        assert error_code(make_alert_dict(confidence=0.95)) == CONFIDENCE_MODIFIED

    def test_confidence_within_tolerance(self):
        validate_alert(make_alert_dict(confidence=0.6005), make_finding(), 0.6, now=NOW)

    def test_orphan_source(self):
        alert = make_alert_dict()
        alert["sources"] = alert["sources"] + [{
            "type": "web",
            "ref": "https://nobody-cites-this.example",
            "data_version": "2025-week-6",
            "data_timestamp": NOW,
        }]
        assert error_code(alert) == ORPHAN_SOURCE

    def test_missing_source(self):
        alert = make_alert_dict()
        alert["evidence"] = alert["evidence"] + [{
            "source_type": "local",
            "stat": "targets",
            "value_num": 120,
            "value_type": "numeric",
            "comparison": "top 5",
            "source_ref": "local://uncited",
        }]
        assert error_code(alert) == MISSING_SOURCE

    def test_invalid_implications(self):
        assert error_code(make_alert_dict(implications=["qb_sacks_over"])) == INVALID_IMPLICATIONS

    def test_edge_language_without_line(self):
        assert error_code(make_alert_dict(claim="Sharp value on Chase")) == EDGE_LANGUAGE_WITHOUT_LINE

    def test_edge_language_whole_word_only(self):
        """'valued' and 'sharpest' are not edge words."""
        validate_alert(
            make_alert_dict(claim="Chase valued as sharpest route runner"), make_finding(), 0.6, now=NOW
        )

    def test_edge_language_allowed_with_fresh_line(self):
        alert = with_line("total", 10 * MINUTE_MS, claim="Total looks mispriced")
        validate_alert(alert, make_finding(), 0.6, now=NOW)

    def test_live_freshness_on_old_source(self):
        alert = make_alert_dict()
        alert["sources"][0]["data_timestamp"] = NOW - 2 * DAY_MS
        assert error_code(alert) == FRESHNESS_MISMATCH

    def test_weekly_freshness_on_old_source(self):
        alert = make_alert_dict(freshness="weekly")
        alert["sources"][0]["data_timestamp"] = NOW - 8 * DAY_MS
        assert error_code(alert) == FRESHNESS_MISMATCH

    def test_stale_label_always_consistent(self):
        alert = make_alert_dict(freshness="stale")
        alert["sources"][0]["data_timestamp"] = NOW - 30 * DAY_MS
        validate_alert(alert, make_finding(), 0.6, now=NOW)

    def test_chain_order_id_before_confidence(self):
        """Only the first violation is reported."""
        alert = make_alert_dict(id="other-1", confidence=0.99)
        assert error_code(alert) == ID_MISMATCH


class TestLineFreshness:
    """Tests for line TTL boundaries."""

    def test_spread_within_ttl(self):
        alert = Alert.model_validate(with_line("spread", 29 * MINUTE_MS))
        validate_line_freshness(alert, now=NOW)

    def test_spread_past_ttl(self):
        alert = Alert.model_validate(with_line("spread", 31 * MINUTE_MS))
        with pytest.raises(ValidationError) as exc:
            validate_line_freshness(alert, now=NOW)
        assert exc.value.code == STALE_LINE

    def test_prop_within_ttl(self):
        alert = Alert.model_validate(with_line("prop", 14 * MINUTE_MS))
        validate_line_freshness(alert, now=NOW)

    def test_prop_past_ttl(self):
        alert = Alert.model_validate(with_line("prop", 16 * MINUTE_MS))
        with pytest.raises(ValidationError) as exc:
            validate_line_freshness(alert, now=NOW)
        assert exc.value.code == STALE_LINE

    def test_exact_ttl_is_fresh(self):
        alert = Alert.model_validate(with_line("prop", 15 * MINUTE_MS))
        validate_line_freshness(alert, now=NOW)

    def test_stale_line_fails_chain(self):
        assert error_code(with_line("moneyline", 61 * MINUTE_MS)) == STALE_LINE


class TestEdgeLanguage:
    """Tests for the edge-language gate."""

    @pytest.mark.parametrize("word", ["edge", "VALUE", "Mispriced", "exploit", "sharp", "lock"])
    def test_each_word_blocked(self, word):
        alert = Alert.model_validate(make_alert_dict(claim=f"Chase is a {word} play"))
        with pytest.raises(ValidationError) as exc:
            validate_no_edge_without_line(alert)
        assert exc.value.code == EDGE_LANGUAGE_WITHOUT_LINE


class TestValidateAlerts:
    """Tests for batch validation."""

    def test_one_failure_does_not_block_others(self):
        good = make_alert_dict()
        bad = make_alert_dict(id="epa-other-1", implications=["qb_sacks_over"])
        findings = [make_finding(), make_finding(id="epa-other-1")]

        result = validate_alerts(
            [good, bad], findings, {FINDING_ID: 0.6, "epa-other-1": 0.6}, now=NOW
        )

        assert [a.id for a in result.valid] == [FINDING_ID]
        assert result.errors[0].alert_id == "epa-other-1"
        assert result.errors[0].error.code == INVALID_IMPLICATIONS

    def test_missing_finding(self):
        result = validate_alerts([make_alert_dict()], [], {}, now=NOW)
        assert result.valid == []
        assert result.errors[0].error.code == MISSING_FINDING

    def test_confidence_defaults_to_baseline(self):
        result = validate_alerts([make_alert_dict(confidence=0.5)], [make_finding()], {}, now=NOW)
        assert len(result.valid) == 1

    def test_assembled_alerts_validate(self):
        """Alerts straight from the assembler pass the chain."""
        finding = make_finding(sample_size=120)
        annotation = LLMFindingOutput.model_validate({
            "severity": "high",
            "claim_parts": {"metrics": ["receiving_epa"], "direction": "positive", "comparator": "ranks"},
            "implications": ["wr_receptions_over"],
            "suppressions": [],
        })
        alerts = assemble_alerts([finding], {finding.id: annotation}, {finding.id: 0.72}, "v1", now=NOW)

        result = validate_alerts(alerts, [finding], {finding.id: 0.72}, now=NOW)

        assert len(result.valid) == 1
        assert result.errors == []

    def test_rejection_serializes(self):
        result = validate_alerts([make_alert_dict(confidence=0.9)], [make_finding()], {FINDING_ID: 0.6}, now=NOW)
        data = result.errors[0].to_dict()
        assert data["error"]["code"] == CONFIDENCE_MODIFIED
        assert data["error"]["details"]["expected"] == 0.6
