# core/tests/test_models.py
"""Tests for finding ids, implication allowlists, claim rendering and analyst output parsing."""
import json

import pytest
from pydantic import ValidationError as PydanticValidationError

from core.models.claim import ClaimParts, render_claim
from core.models.evidence import WebEvidence
from core.models.finding import AgentType, Finding, finding_id, ordinal, slugify
from core.models.implications import (
    ALL_IMPLICATIONS,
    allowed_implications,
    validate_implications_for_agent,
)
from core.models.llm_output import (
    LLMFindingOutput,
    LLMOutputError,
    LLMOutputParseError,
    LLMOutputSchemaError,
    parse_llm_output,
    strip_code_fences,
    validate_llm_output_keys,
)


NOW = 1_700_000_000_000


def make_finding(fid: str = "epa-ja'marr-chase-recv-1700000000000", **overrides) -> Finding:
    fields = dict(
        id=fid,
        agent="epa",
        type="receiving_epa_mismatch",
        stat="receiving_epa_rank",
        value_num=3,
        value_type="numeric",
        threshold_met="receiving_epa_rank <= 10",
        comparison_context="3rd in league",
        source_ref="local://data/epa/v1.json",
        source_type="local",
        source_timestamp=NOW,
    )
    fields.update(overrides)
    return Finding(**fields)


def make_annotation(**overrides) -> dict:
    entry = {
        "severity": "high",
        "claim_parts": {
            "metrics": ["receiving_epa"],
            "direction": "positive",
            "comparator": "ranks",
            "rank_or_percentile": {
                "type": "rank",
                "value": 3,
                "scope": "league",
                "direction": "top",
            },
        },
        "implications": ["wr_yards_over"],
        "suppressions": [],
    }
    entry.update(overrides)
    return entry


class TestFindingIds:
    """Tests for the canonical id builder."""

    def test_slugify_lowercases_and_hyphenates(self):
        assert slugify("  Ja'Marr   Chase ") == "ja'marr-chase"

    def test_finding_id_deterministic(self):
        a = finding_id("epa", "Ja'Marr Chase", "recv", timestamp=NOW)
        b = finding_id(AgentType.EPA, "Ja'Marr Chase", "recv", timestamp=NOW)
        assert a == b == "epa-ja'marr-chase-recv-1700000000000"

    def test_ordinals(self):
        assert [ordinal(n) for n in (1, 2, 3, 4, 11, 12, 13, 21, 22, 23, 101)] == [
            "1st", "2nd", "3rd", "4th", "11th", "12th", "13th", "21st", "22nd", "23rd", "101st",
        ]


class TestFinding:
    """Tests for the Finding dataclass."""

    def test_string_enums_coerced(self):
        finding = make_finding()
        assert finding.agent is AgentType.EPA
        assert finding.is_local is True

    def test_numeric_requires_value_num(self):
        with pytest.raises(ValueError):
            make_finding(value_num=None)

    def test_confidence_bounds(self):
        with pytest.raises(ValueError):
            make_finding(confidence=1.5)

    def test_to_dict_omits_none(self):
        data = make_finding().to_dict()
        assert "value_str" not in data
        assert "quote_snippet" not in data
        assert data["agent"] == "epa"

    def test_round_trip(self):
        finding = make_finding(sample_size=120, players_mentioned=["Ja'Marr Chase"])
        assert Finding.from_dict(finding.to_dict()) == finding

    def test_immutable(self):
        finding = make_finding()
        with pytest.raises(AttributeError):
            finding.stat = "other"

    def test_no_slots(self):
        """dataclass(slots=True) needs Python 3.10; the package supports 3.9."""
        assert "__slots__" not in vars(Finding)


class TestImplications:
    """Tests for per-agent implication isolation."""

    def test_epa_cannot_imply_sacks(self):
        valid, invalid = validate_implications_for_agent("epa", ["qb_sacks_over"])
        assert valid is False
        assert invalid == ["qb_sacks_over"]

    def test_epa_can_imply_receptions(self):
        valid, invalid = validate_implications_for_agent(AgentType.EPA, ["wr_receptions_over"])
        assert valid is True
        assert invalid == []

    def test_unknown_agent_allows_nothing(self):
        assert allowed_implications("kicker") == frozenset()
        valid, _ = validate_implications_for_agent("kicker", ["team_total_over"])
        assert valid is False

    def test_notes_allows_union(self):
        assert allowed_implications("notes") == ALL_IMPLICATIONS

    def test_invalid_order_preserved(self):
        _, invalid = validate_implications_for_agent(
            "weather", ["qb_sacks_over", "game_total_under", "wr_tds_over"]
        )
        assert invalid == ["qb_sacks_over", "wr_tds_over"]


class TestRenderClaim:
    """Tests for claim rendering from closed-vocabulary parts."""

    def test_rank_claim(self):
        parts = ClaimParts.model_validate(make_annotation()["claim_parts"])
        assert render_claim(parts) == "Receiving EPA ranks top 3 in league"

    def test_percentile_target_and_qualifier(self):
        parts = ClaimParts(
            metrics=["target_share", "route_participation"],
            direction="positive",
            comparator="exceeds",
            rank_or_percentile={"type": "percentile", "value": 90, "scope": "position", "direction": "top"},
            comparison_target="league_average",
            context_qualifier="at_home",
        )
        assert render_claim(parts) == (
            "Target Share + Route Participation exceeds top 90th percentile vs league average (at home)"
        )

    def test_metrics_required(self):
        with pytest.raises(PydanticValidationError):
            ClaimParts(metrics=[], direction="positive", comparator="ranks")

    def test_unknown_metric_rejected(self):
        with pytest.raises(PydanticValidationError):
            ClaimParts(metrics=["vibes"], direction="positive", comparator="ranks")


class TestEvidence:
    """Tests for evidence schemas."""

    def test_web_evidence_requires_snippet(self):
        with pytest.raises(PydanticValidationError):
            WebEvidence(
                stat="status", value_str="out", value_type="string",
                comparison="ruled out", source_ref="https://example.com",
            )


class TestParseLLMOutput:
    """Tests for strict analyst output parsing."""

    def test_valid_output(self):
        finding = make_finding()
        raw = json.dumps({finding.id: make_annotation()})

        output = parse_llm_output(raw, [finding])

        assert isinstance(output[finding.id], LLMFindingOutput)
        assert output[finding.id].severity == "high"

    def test_code_fences_stripped(self):
        finding = make_finding()
        raw = "```json\n" + json.dumps({finding.id: make_annotation()}) + "\n```"
        assert finding.id in parse_llm_output(raw, [finding])

    @pytest.mark.parametrize("raw", [
        '```json\n{"a": 1}\n```',
        '```\n{"a": 1}\n```',
        '  ```json {"a": 1}```  ',
        '{"a": 1}',
    ])
    def test_outer_fence_only(self, raw):
        assert strip_code_fences(raw) == '{"a": 1}'

    def test_fence_inside_value_kept(self):
        raw = '```json\n{"note": "use ```json blocks```"}\n```'
        assert json.loads(strip_code_fences(raw)) == {"note": "use ```json blocks```"}

    def test_invalid_json(self):
        with pytest.raises(LLMOutputParseError):
            parse_llm_output("not json {", [make_finding()])

    def test_non_object(self):
        with pytest.raises(LLMOutputSchemaError):
            parse_llm_output("[]", [make_finding()])

    def test_empty_object(self):
        with pytest.raises(LLMOutputSchemaError):
            parse_llm_output("{}", [make_finding()])

    def test_confidence_key_rejected(self):
        """The analyst may not supply confidence."""
        finding = make_finding()
        raw = json.dumps({finding.id: make_annotation(confidence=0.99)})

        with pytest.raises(LLMOutputSchemaError) as exc:
            parse_llm_output(raw, [finding])

        assert any("confidence" in e for e in exc.value.errors)

    def test_unknown_implication_rejected(self):
        finding = make_finding()
        raw = json.dumps({finding.id: make_annotation(implications=["moon_landing_over"])})
        with pytest.raises(LLMOutputSchemaError):
            parse_llm_output(raw, [finding])

    def test_too_many_implications_rejected(self):
        finding = make_finding()
        imps = ["wr_yards_over", "wr_yards_under", "wr_receptions_over", "wr_receptions_under",
                "team_total_over", "team_total_under"]
        raw = json.dumps({finding.id: make_annotation(implications=imps)})
        with pytest.raises(LLMOutputSchemaError):
            parse_llm_output(raw, [finding])

    def test_key_mismatch(self):
        finding = make_finding()
        raw = json.dumps({"someone-else": make_annotation()})

        with pytest.raises(LLMOutputSchemaError) as exc:
            parse_llm_output(raw, [finding])

        assert f"missing finding_id: {finding.id}" in exc.value.errors
        assert "unknown finding_id: someone-else" in exc.value.errors

    def test_errors_distinct_from_validation_errors(self):
        from core.validators import ValidationError

        assert issubclass(LLMOutputParseError, LLMOutputError)
        assert issubclass(LLMOutputSchemaError, LLMOutputError)
        assert not issubclass(LLMOutputError, ValidationError)


class TestKeyCheck:
    """Tests for the key-set comparison."""

    def test_exact_match(self):
        a, b = make_finding("a-1"), make_finding("b-1")
        check = validate_llm_output_keys({"a-1": {}, "b-1": {}}, [a, b])
        assert check.valid is True

    def test_missing_and_extra(self):
        a, b = make_finding("a-1"), make_finding("b-1")
        check = validate_llm_output_keys({"a-1": {}, "c-1": {}}, [a, b])
        assert check.valid is False
        assert check.missing == ["b-1"]
        assert check.extra == ["c-1"]
