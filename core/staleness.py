# core/staleness.py
"""
Staleness key for scan inputs.

A scan is stale when the hash of its scan-affecting inputs differs from the
hash of the current inputs; there is no time-based expiry. The key must be
bit-identical to the one browser clients compute, so the rolling hash works
on UTF-16 code units with 32-bit signed overflow.
"""
from __future__ import annotations

from typing import Iterable, Mapping, Optional, Sequence


def _sorted_key(values: Optional[Iterable[str]]) -> str:
    return ",".join(sorted(values)) if values else ""


def _overrides_suffix(overrides: Optional[Mapping[str, Sequence[str]]]) -> str:
    if not overrides:
        return ""
    add = list(overrides.get("add") or [])
    remove = list(overrides.get("remove") or [])
    if not add and not remove:
        return ""
    return f"|overrides:add:{_sorted_key(add)};rm:{_sorted_key(remove)}"


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def rolling_hash(payload: str) -> int:
    """h = ((h << 5) - h) + unit over UTF-16 code units, wrapped to int32."""
    encoded = payload.encode("utf-16-le")
    h = 0
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        h = _to_int32((h << 5) - h + unit)
    return h


def build_context_payload(
    matchup: str,
    anchors: Optional[Sequence[str]],
    script_bias: Optional[Sequence[str]],
    signals: Optional[Sequence[str]],
    odds_paste: Optional[str],
    selected_agents: Optional[Sequence[str]],
    overrides: Optional[Mapping[str, Sequence[str]]] = None,
) -> str:
    agent_key = _sorted_key(selected_agents) if selected_agents else "all"
    return (
        f"{matchup}"
        f"|anchors:{_sorted_key(anchors)}"
        f"|bias:{_sorted_key(script_bias)}"
        f"|{_sorted_key(signals)}"
        f"|{odds_paste or ''}"
        f"|agents:{agent_key}"
        f"{_overrides_suffix(overrides)}"
    )


def compute_context_hash(
    matchup: str,
    anchors: Optional[Sequence[str]] = None,
    script_bias: Optional[Sequence[str]] = None,
    signals: Optional[Sequence[str]] = None,
    odds_paste: Optional[str] = None,
    selected_agents: Optional[Sequence[str]] = None,
    overrides: Optional[Mapping[str, Sequence[str]]] = None,
) -> str:
    """Return the staleness key h_<hex> for a set of scan inputs."""
    payload = build_context_payload(
        matchup, anchors, script_bias, signals, odds_paste, selected_agents, overrides
    )
    return f"h_{abs(rolling_hash(payload)):x}"


def is_scan_stale(scan_hash: Optional[str], current_hash: str) -> bool:
    return scan_hash is None or scan_hash != current_hash
