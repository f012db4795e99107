# core/tests/test_provenance.py
"""Tests for provenance hashing and the scan staleness key."""
import hashlib
import re

import pytest

from core.models.finding import Finding
from core.provenance import (
    build_provenance,
    canonicalize,
    generate_request_id,
    hash_content,
    hash_findings,
    hash_object,
    resolve_request_id,
    to_base36,
    verify_provenance,
)
from core.staleness import build_context_payload, compute_context_hash, is_scan_stale, rolling_hash


NOW = 1_700_000_000_000


def make_finding(fid: str, stat: str = "receiving_epa_rank") -> Finding:
    return Finding(
        id=fid,
        agent="epa",
        type="receiving_epa_mismatch",
        stat=stat,
        value_num=3,
        value_type="numeric",
        threshold_met="receiving_epa_rank <= 10",
        comparison_context="3rd in league",
        source_ref="local://data/epa/v1.json",
        source_type="local",
        source_timestamp=NOW,
    )


def make_provenance(prompt="prompt", skills=None, findings=None):
    return build_provenance(
        request_id="req-test-abc123",
        prompt=prompt,
        skill_mds=skills if skills is not None else {"epa": "# EPA Agent"},
        findings=findings if findings is not None else [make_finding("a-1")],
        data_version="2025-week-6",
        data_timestamp=NOW,
        llm_model="gpt-4o-mini",
        llm_temperature=0.2,
        agents_invoked=["epa"],
        agents_silent=["weather"],
    )


class TestHashing:
    """Tests for content and object hashing."""

    def test_hash_content_is_sha256_prefix(self):
        expected = hashlib.sha256(b"hello").hexdigest()[:12]
        assert hash_content("hello") == expected
        assert len(hash_content("anything")) == 12

    def test_canonicalize_sorts_nested_keys(self):
        value = {"b": {"d": 1, "c": 2}, "a": [{"z": 1, "y": 2}]}
        assert list(canonicalize(value)) == ["a", "b"]
        assert list(canonicalize(value)["b"]) == ["c", "d"]
        assert list(canonicalize(value)["a"][0]) == ["y", "z"]

    def test_hash_object_key_order_invariant(self):
        a = {"context_version": "v1", "payload": {"b": 2, "a": 1}}
        b = {"payload": {"a": 1, "b": 2}, "context_version": "v1"}
        assert hash_object(a) == hash_object(b)

    def test_hash_object_list_order_matters(self):
        assert hash_object({"ids": ["a", "b"]}) != hash_object({"ids": ["b", "a"]})

    def test_findings_hash_order_invariant(self):
        """Discovery order never changes the findings hash."""
        a, b, c = make_finding("a-1"), make_finding("b-1"), make_finding("c-1")
        assert hash_findings([a, b, c]) == hash_findings([c, a, b])

    def test_findings_hash_content_sensitive(self):
        assert hash_findings([make_finding("a-1")]) != hash_findings([make_finding("a-1", stat="other")])


class TestProvenance:
    """Tests for building and verifying provenance."""

    def test_build(self):
        provenance = make_provenance()

        assert provenance.prompt_hash == hash_content("prompt")
        assert provenance.skill_md_hashes == {"epa": hash_content("# EPA Agent")}
        assert provenance.agents_invoked == ["epa"]
        assert provenance.to_dict()["llm_model"] == "gpt-4o-mini"

    def test_verify_clean(self):
        findings = [make_finding("a-1"), make_finding("b-1")]
        provenance = make_provenance(findings=findings)

        assert verify_provenance(provenance, "prompt", {"epa": "# EPA Agent"}, list(reversed(findings))) == []

    def test_verify_reports_mismatches(self):
        provenance = make_provenance()

        mismatches = verify_provenance(
            provenance, "changed prompt", {"epa": "# edited"}, [make_finding("z-1")]
        )

        assert len(mismatches) == 3
        assert mismatches[0].startswith("prompt_hash:")
        assert mismatches[1].startswith("skill_md_hashes.epa:")
        assert mismatches[2].startswith("findings_hash:")


class TestRequestId:
    """Tests for request id generation."""

    def test_format(self):
        request_id = generate_request_id(now=NOW)
        assert re.fullmatch(r"req-[0-9a-z]+-[0-9a-z]{6}", request_id)
        assert request_id.startswith(f"req-{to_base36(NOW)}-")

    def test_base36(self):
        assert to_base36(0) == "0"
        assert to_base36(35) == "z"
        assert to_base36(36) == "10"

    @pytest.mark.parametrize("request_id", [
        "550e8400-e29b-41d4-a716-446655440000",
        "req-lq2x9k3a-ab12cd",
        "a" * 64,
    ])
    def test_safe_client_id_kept(self, request_id):
        assert resolve_request_id(request_id, now=NOW) == request_id

    @pytest.mark.parametrize("request_id", [None, "", "a" * 65, "abc@123", "abc 123", "abc/123", "abc;123"])
    def test_unsafe_client_id_replaced(self, request_id):
        resolved = resolve_request_id(request_id, now=NOW)
        assert resolved != request_id
        assert resolved.startswith(f"req-{to_base36(NOW)}-")


class TestContextHash:
    """Tests for the scan staleness key."""

    def test_rolling_hash_small_inputs(self):
        assert rolling_hash("") == 0
        assert rolling_hash("a") == 97
        assert rolling_hash("ab") == 97 * 31 + 98

    def test_rolling_hash_wraps_to_int32(self):
        value = rolling_hash("x" * 200)
        assert -(2 ** 31) <= value < 2 ** 31

    def test_payload_format(self):
        payload = build_context_payload(
            "BUF @ KC", ["total", "spread"], ["shootout"], ["pace"], "", None
        )
        assert payload == "BUF @ KC|anchors:spread,total|bias:shootout|pace||agents:all"

    def test_overrides_suffix_only_when_present(self):
        plain = build_context_payload("BUF @ KC", [], [], [], "", ["qb"], {"add": [], "remove": []})
        with_overrides = build_context_payload(
            "BUF @ KC", [], [], [], "", ["qb"], {"add": ["X"], "remove": ["B", "A"]}
        )

        assert plain.endswith("|agents:qb")
        assert with_overrides.endswith("|agents:qb|overrides:add:X;rm:A,B")

    def test_list_order_invariant(self):
        a = compute_context_hash("BUF @ KC", ["total", "spread"], selected_agents=["wr", "qb"])
        b = compute_context_hash("BUF @ KC", ["spread", "total"], selected_agents=["qb", "wr"])
        assert a == b
        assert a.startswith("h_")

    def test_non_ascii_uses_utf16_units(self):
        """Characters outside the BMP hash as two code units."""
        assert rolling_hash("\U0001F3C8") == 0xD83C * 31 + 0xDFC8

    def test_staleness(self):
        current = compute_context_hash("BUF @ KC")
        assert is_scan_stale(None, current) is True
        assert is_scan_stale(current, current) is False
        assert is_scan_stale(compute_context_hash("MIA @ NYJ"), current) is True
