# app/analyst.py
"""
Analyst step - turns findings into alerts through the language model.

    findings → prompt (skills + findings + schema) → guardrails → provider
             → strict parse → drop suppressed → assemble

The analyst only annotates: confidence, evidence and sources are always
computed by the core. Any provider, parse or assembly failure falls back
to alerts built straight from the findings.
"""
from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from app.providers.base import AnalystProvider, AnalystProviderError
from core.alert_assembler import AssemblyError, assemble_alerts, generate_fallback_alerts
from core.confidence import calculate_confidences, now_ms
from core.guardrails import REQUEST_LIMITS, check_request_limits, estimate_cost, estimate_tokens
from core.models.alert import Alert
from core.models.claim import Metric
from core.models.finding import Finding
from core.models.implications import allowed_implications
from core.models.llm_output import LLMOutputError, parse_llm_output
from core.provenance import hash_content

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

SKILLS_DIR = Path(__file__).resolve().parent.parent / "agents" / "skills"

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_TOKENS = REQUEST_LIMITS["max_output_tokens"]
DEFAULT_TIMEOUT_MS = REQUEST_LIMITS["timeout_ms"]

OUTPUT_SCHEMA = """{
  "<finding_id>": {
    "severity": "high" | "medium",
    "claim_parts": {
      "metrics": ["<metric>"],
      "direction": "positive" | "negative" | "neutral",
      "comparator": "ranks" | "exceeds" | "trails" | "matches" | "diverges_from",
      "rank_or_percentile": {"type": "rank" | "percentile", "value": <number>,
                             "scope": "league" | "position" | "conference" | "division",
                             "direction": "top" | "bottom"},
      "comparison_target": "league_average" | "opponent_average" | "position_average" | "season_baseline" | "historical_self",
      "context_qualifier": "in_division" | "at_home" | "as_underdog" | "in_primetime" | "vs_top_10_defense" | "with_current_qb"
    },
    "implications": ["<implication>"],
    "suppressions": []
  }
}"""

RULES = (
    "Return one entry per finding id, keyed by the exact id. No other keys.",
    "Use only the metrics and implications listed above; each agent may only use its own implications.",
    "rank_or_percentile, comparison_target and context_qualifier are optional.",
    "Do not restate numbers that are not in the finding.",
    "Never use edge, value, mispriced, exploit, sharp or lock language.",
    "List a reason in suppressions to drop a finding that should not be shown.",
)


# =============================================================================
# Skills
# =============================================================================


def load_skill_md(agent: str, skills_dir: Path = SKILLS_DIR) -> str:
    """Skill guidance for one agent, or a placeholder when none exists."""
    path = skills_dir / f"{agent}.md"
    if not path.is_file():
        logger.warning(f"No skill file for agent {agent}")
        return f"# {agent.upper()} Agent\n\nNo skill file available."
    return path.read_text(encoding="utf-8")


def load_relevant_skill_mds(findings: Sequence[Finding], skills_dir: Path = SKILLS_DIR) -> Dict[str, str]:
    """Skill files for the agents present in the findings, in first-seen order."""
    skill_mds: Dict[str, str] = {}
    for finding in findings:
        agent = finding.agent.value
        if agent not in skill_mds:
            skill_mds[agent] = load_skill_md(agent, skills_dir)
    return skill_mds


# =============================================================================
# Prompt
# =============================================================================


def build_analyst_prompt(
    findings: Sequence[Finding],
    skill_mds: Mapping[str, str],
    game_notes: Optional[str] = None,
) -> str:
    """Assemble the analyst prompt. Output is deterministic for equal inputs."""
    sections = [
        "You annotate findings produced by deterministic agents. Each finding is "
        "a verified observation; describe it without adding facts."
    ]

    for agent, content in skill_mds.items():
        sections.append(f"## {agent.upper()} Agent Skill\n\n{content.strip()}")

    if game_notes:
        sections.append(f"## Game Notes\n\n{game_notes.strip()}")

    findings_json = json.dumps([f.to_dict() for f in findings], sort_keys=True)
    sections.append(f"## Findings\n\n```json\n{findings_json}\n```")

    sections.append(f"## Output Schema\n\n```json\n{OUTPUT_SCHEMA}\n```")

    sections.append("## Valid Metrics\n\n" + ", ".join(m.value for m in Metric))

    agents = sorted({f.agent.value for f in findings})
    implication_lines = [
        f"- {agent}: {', '.join(sorted(allowed_implications(agent)))}" for agent in agents
    ]
    sections.append("## Valid Implications\n\n" + "\n".join(implication_lines))

    rule_lines = [f"{i}. {rule}" for i, rule in enumerate(RULES, start=1)]
    sections.append("## Rules\n\n" + "\n".join(rule_lines))

    return "\n\n".join(sections)


# =============================================================================
# Response Cache
# =============================================================================

CACHE_TTL_SECONDS = 300


@dataclass
class CacheEntry:
    """Cached analyst response text."""
    raw: str
    created_at: float


# In-memory cache: (provider, model, temperature, prompt_hash) -> CacheEntry
_response_cache: Dict[Tuple[str, str, float, str], CacheEntry] = {}


def _get_cache_key(provider: str, model: str, temperature: float, prompt: str) -> Tuple[str, str, float, str]:
    return (provider, model, temperature, hash_content(prompt))


def get_cached_response(
    provider: str, model: str, temperature: float, prompt: str,
    ttl_seconds: float = CACHE_TTL_SECONDS,
) -> Optional[str]:
    """Cached response text, or None if not cached or expired."""
    key = _get_cache_key(provider, model, temperature, prompt)
    entry = _response_cache.get(key)

    if entry is None:
        return None

    if time.time() - entry.created_at > ttl_seconds:
        del _response_cache[key]
        return None

    return entry.raw


def set_cached_response(provider: str, model: str, temperature: float, prompt: str, raw: str) -> None:
    key = _get_cache_key(provider, model, temperature, prompt)
    _response_cache[key] = CacheEntry(raw=raw, created_at=time.time())


def clear_cache() -> None:
    """Clear all cached responses (for testing)."""
    _response_cache.clear()


# =============================================================================
# Analysis
# =============================================================================


@dataclass
class AnalystResult:
    """Alerts plus everything provenance needs to replay the call."""

    alerts: List[Alert]
    confidences: Dict[str, float]
    prompt: str = ""
    skill_mds: Dict[str, str] = field(default_factory=dict)
    fallback: bool = False
    suppressed: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    cache_hits: int = 0
    cache_misses: int = 0


async def analyze_findings(
    findings: List[Finding],
    data_version: str,
    provider: AnalystProvider,
    model: str = DEFAULT_MODEL,
    temperature: float = DEFAULT_TEMPERATURE,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    game_notes: Optional[str] = None,
    now: Optional[int] = None,
    cache_ttl_seconds: int = 0,
) -> AnalystResult:
    """
    Annotate findings and assemble alerts.

    With cache_ttl_seconds > 0, a response that parsed and assembled cleanly
    is reused for the same provider, model, temperature and prompt until it
    expires. Failed responses are never cached.

    Raises:
        GuardrailError: the prompt exceeds the token or cost limits
    """
    current = now if now is not None else now_ms()
    confidences = calculate_confidences(findings, now=current)

    if not findings:
        return AnalystResult(alerts=[], confidences=confidences)

    skill_mds = load_relevant_skill_mds(findings)
    prompt = build_analyst_prompt(findings, skill_mds, game_notes)

    input_tokens = estimate_tokens(prompt)
    check_request_limits(input_tokens, estimate_cost(input_tokens, max_tokens, model))

    result = AnalystResult(alerts=[], confidences=confidences, prompt=prompt, skill_mds=skill_mds)
    use_cache = cache_ttl_seconds > 0
    cache_args = (provider.source_name, model, temperature, prompt)

    raw = get_cached_response(*cache_args, ttl_seconds=cache_ttl_seconds) if use_cache else None
    if raw is not None:
        result.cache_hits = 1
    elif use_cache:
        result.cache_misses = 1

    try:
        if raw is None:
            raw = await asyncio.wait_for(
                provider.annotate(prompt, model=model, temperature=temperature, max_tokens=max_tokens),
                timeout=timeout_ms / 1000,
            )
        annotations = parse_llm_output(raw, findings)

        result.suppressed = [fid for fid, entry in annotations.items() if entry.suppressions]
        kept = [f for f in findings if f.id not in result.suppressed]
        kept_annotations = {fid: a for fid, a in annotations.items() if fid not in result.suppressed}

        result.alerts = assemble_alerts(kept, kept_annotations, confidences, data_version, current)
    except (AnalystProviderError, LLMOutputError, AssemblyError, asyncio.TimeoutError) as e:
        logger.warning(f"Analyst failed ({type(e).__name__}: {e}); using fallback alerts")
        result.alerts = generate_fallback_alerts(findings, data_version, current)
        result.fallback = True
        result.suppressed = []
        result.warnings.append(f"Analyst unavailable: {type(e).__name__}")
        return result

    if result.cache_misses:
        set_cached_response(*cache_args, raw=raw)

    if result.suppressed:
        logger.info(f"Analyst suppressed {len(result.suppressed)} findings")
    logger.info(
        f"Analyst produced {len(result.alerts)} alerts from {len(findings)} findings "
        f"(cache_hit={bool(result.cache_hits)})"
    )
    return result
