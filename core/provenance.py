# core/provenance.py
"""
Provenance Hasher - reproducibility hash-tree for terminal responses.

Every response carries hashes of the prompt, each skill document and the
findings, so the same inputs can be shown to produce the same outputs.
"""
from __future__ import annotations

import hashlib
import json
import re
import secrets
import string
from typing import Any, Dict, Iterable, List, Mapping, Optional

from core.confidence import now_ms
from core.models.finding import Finding
from core.models.provenance import Provenance


# =============================================================================
# Constants
# =============================================================================

HASH_LENGTH = 12
REQUEST_ID_SUFFIX_LENGTH = 6
MAX_REQUEST_ID_LENGTH = 64
# Letters, digits, hyphens and underscores only
SAFE_REQUEST_ID_PATTERN = re.compile(r"[a-zA-Z0-9_-]+")
_BASE36 = string.digits + string.ascii_lowercase


# =============================================================================
# Hashing
# =============================================================================


def hash_content(content: str) -> str:
    """First 12 hex chars of the SHA-256 digest of the UTF-8 text."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:HASH_LENGTH]


def canonicalize(value: Any) -> Any:
    """Recursively sort mapping keys; sequences keep their order."""
    if isinstance(value, Mapping):
        return {str(k): canonicalize(value[k]) for k in sorted(value, key=str)}
    if isinstance(value, (list, tuple)):
        return [canonicalize(v) for v in value]
    return value


def canonical_json(value: Any) -> str:
    return json.dumps(canonicalize(value), separators=(",", ":"), ensure_ascii=False)


def hash_object(value: Any) -> str:
    """Hash the compact canonical JSON of an object. Key order never matters."""
    return hash_content(canonical_json(value))


def hash_findings(findings: Iterable[Finding]) -> str:
    """Hash findings sorted by id so input order never matters."""
    ordered = sorted(findings, key=lambda f: f.id)
    return hash_content(canonical_json([f.to_dict() for f in ordered]))


def hash_skill_mds(skill_mds: Mapping[str, str]) -> Dict[str, str]:
    return {str(agent): hash_content(content) for agent, content in skill_mds.items()}


# =============================================================================
# Provenance
# =============================================================================


def build_provenance(
    request_id: str,
    prompt: str,
    skill_mds: Mapping[str, str],
    findings: List[Finding],
    data_version: str,
    data_timestamp: int,
    llm_model: str,
    llm_temperature: float,
    search_timestamps: Optional[List[int]] = None,
    agents_invoked: Optional[List[str]] = None,
    agents_silent: Optional[List[str]] = None,
    cache_hits: int = 0,
    cache_misses: int = 0,
) -> Provenance:
    return Provenance(
        request_id=request_id,
        prompt_hash=hash_content(prompt),
        skill_md_hashes=hash_skill_mds(skill_mds),
        findings_hash=hash_findings(findings),
        data_version=data_version,
        data_timestamp=data_timestamp,
        search_timestamps=list(search_timestamps or []),
        agents_invoked=list(agents_invoked or []),
        agents_silent=list(agents_silent or []),
        cache_hits=cache_hits,
        cache_misses=cache_misses,
        llm_model=llm_model,
        llm_temperature=llm_temperature,
    )


def verify_provenance(
    provenance: Provenance,
    prompt: str,
    skill_mds: Mapping[str, str],
    findings: List[Finding],
) -> List[str]:
    """
    Recompute hashes for a replay and report every mismatch.

    Returns:
        Human-readable mismatch descriptions; empty when everything matches
    """
    mismatches: List[str] = []

    expected_prompt = hash_content(prompt)
    if provenance.prompt_hash != expected_prompt:
        mismatches.append(
            f"prompt_hash: expected {expected_prompt}, got {provenance.prompt_hash}"
        )

    for agent, content in skill_mds.items():
        expected = hash_content(content)
        actual = provenance.skill_md_hashes.get(str(agent))
        if actual != expected:
            mismatches.append(f"skill_md_hashes.{agent}: expected {expected}, got {actual}")

    expected_findings = hash_findings(findings)
    if provenance.findings_hash != expected_findings:
        mismatches.append(
            f"findings_hash: expected {expected_findings}, got {provenance.findings_hash}"
        )

    return mismatches


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    n = abs(value)
    while n:
        n, rem = divmod(n, 36)
        digits.append(_BASE36[rem])
    sign = "-" if value < 0 else ""
    return sign + "".join(reversed(digits))


def generate_request_id(now: Optional[int] = None) -> str:
    """req-{base36 epoch ms}-{6 random base36 chars}"""
    current = now if now is not None else now_ms()
    suffix = "".join(secrets.choice(_BASE36) for _ in range(REQUEST_ID_SUFFIX_LENGTH))
    return f"req-{to_base36(current)}-{suffix}"


def resolve_request_id(candidate: Optional[str], now: Optional[int] = None) -> str:
    """
    Request id for a scan: the client's id when it is short and uses only
    letters, digits, hyphens and underscores, otherwise a generated one.
    """
    if (
        candidate
        and len(candidate) <= MAX_REQUEST_ID_LENGTH
        and SAFE_REQUEST_ID_PATTERN.fullmatch(candidate)
    ):
        return candidate
    return generate_request_id(now)
