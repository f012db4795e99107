# agents/notes.py
"""
Notes agent - curated game intelligence as context findings.

Emits one finding per key matchup, injury line, weather summary, dated
news item, and each scouting-note sentence that reads like a stat. It
never adds or removes players.
"""
from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple

from agents.context import GameNotes, MatchupContext
from agents.thresholds import ThresholdSet
from core.models.claim import format_number
from core.models.finding import AgentType, Finding, FindingSourceType, ValueType, finding_id


_logger = logging.getLogger(__name__)

AGENT = AgentType.NOTES

KEY_MATCHUP_CONFIDENCE = 0.9
INJURY_CONFIDENCE = 0.95
WEATHER_CONFIDENCE = 0.85
TENDENCY_CONFIDENCE = 0.85
NEWS_CONFIDENCE = 0.9

# Sentences matching any of these read like stats and become tendencies
STAT_PATTERNS = tuple(re.compile(p, re.IGNORECASE) for p in (
    r"%",
    r"\d+\.\d+\s*YPC",
    r"\d+\.\d+\s*YPA",
    r"\d+\.\d+\s*YPP",
    r"\d+(?:st|nd|rd|th)",
    r"\d+\s*pressures?",
    r"\d+\s*sacks?",
    r"\d+\s*targets?",
    r"target share",
    r"pressure rate",
    r"snaps?\s*\(?%?\)?",
    r"passer rating",
    r"\d+/\d+/\d+",
    r"\d+-\d+\s+TD",
    r"allowed\s+\d+",
    r"held.*to\s+\d",
    r"rank",
))

_SENTENCE_SPLIT = re.compile(r"[.!]\s+")
_NAME_PATTERN = re.compile(r"\b([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)\b")

NON_NAME_WORDS = frozenset({
    "The", "This", "That", "When", "Where", "What", "Which", "While",
    "With", "From", "Into", "Over", "Under", "After", "Before",
    "Game", "Total", "Team", "Props", "Spread", "Line", "Week",
    "Wild", "Card", "Round", "Sunday", "Saturday", "Monday", "Thursday",
})


def matches_stat_pattern(text: str) -> bool:
    return any(pattern.search(text) for pattern in STAT_PATTERNS)


def extract_player_names(text: str) -> Tuple[str, ...]:
    """Capitalized one- or two-word runs, minus common non-name words."""
    return tuple(name for name in _NAME_PATTERN.findall(text) if name not in NON_NAME_WORDS)


def notes_source_ref(context: MatchupContext) -> str:
    game = f"{context.away_team}@{context.home_team}"
    if context.year is not None and context.week is not None:
        return f"notes://{context.year}-wk{context.week}/{game}"
    return f"notes://{game}"


def weather_summary(weather: dict) -> str:
    parts = []
    if weather.get("temp_f") is not None:
        parts.append(f"{format_number(weather['temp_f'])}°F")
    if weather.get("wind_mph") is not None:
        parts.append(f"{format_number(weather['wind_mph'])} mph wind")
    if weather.get("snow_chance_pct") is not None:
        parts.append(f"{format_number(weather['snow_chance_pct'])}% snow chance")
    return ", ".join(parts)


def check_notes(notes: GameNotes, context: MatchupContext) -> List[Finding]:
    findings: List[Finding] = []
    source_ref = notes_source_ref(context)

    def emit(kind: str, type: str, stat: str, text: str, threshold_met: str,
             confidence: float, comparison: Optional[str] = None, raw_text: Optional[str] = None,
             with_names: bool = True) -> None:
        findings.append(Finding(
            id=finding_id(AGENT, kind, len(findings), timestamp=context.data_timestamp),
            agent=AGENT,
            type=type,
            stat=stat,
            value_str=text,
            value_type=ValueType.STRING,
            threshold_met=threshold_met,
            comparison_context=comparison or text,
            source_ref=source_ref,
            source_type=FindingSourceType.NOTES,
            source_timestamp=context.data_timestamp,
            confidence=confidence,
            raw_text=raw_text or text,
            players_mentioned=extract_player_names(raw_text or text) if with_names else (),
        ))

    for matchup in notes.key_matchups:
        emit("matchup", "note_key_matchup", "key_matchup", matchup,
             "curated_matchup", KEY_MATCHUP_CONFIDENCE)

    for team, injuries in notes.injuries.items():
        for injury in injuries:
            emit("injury", "note_injury_context", "injury", f"{team}: {injury}",
                 "curated_injury", INJURY_CONFIDENCE, raw_text=injury)

    summary = weather_summary(notes.weather)
    if summary:
        emit("weather", "note_weather_context", "weather", summary,
             "curated_weather", WEATHER_CONFIDENCE, with_names=False)

    if notes.notes:
        sentences = [s.strip() for s in _SENTENCE_SPLIT.split(notes.notes) if s.strip()]
        for sentence in sentences:
            if matches_stat_pattern(sentence):
                emit("tendency", "note_tendency", "tendency", sentence,
                     "stat_pattern_match", TENDENCY_CONFIDENCE)

    for item in notes.news:
        emit("news", "note_tendency", "news", item.text, "curated_news", NEWS_CONFIDENCE,
             comparison=f"[{item.date}] {item.text}")

    return findings


def detect(context: MatchupContext, thresholds: ThresholdSet) -> List[Finding]:
    if not context.has_notes:
        _logger.debug(f"No notes for {context.matchup}")
        return []
    findings = check_notes(context.game_notes, context)
    _logger.info(f"Emitted {len(findings)} notes findings for {context.matchup}")
    return findings
