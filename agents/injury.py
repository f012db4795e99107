# agents/injury.py
"""
Injury agent - material absences from the injury report.

Entries arrive as free text ("Patrick Mahomes (QB) - OUT",
"QB Josh Allen OUT") or as dicts with player / status / position /
designation keys. Only OUT and DOUBTFUL players whose absence changes the
game are reported:
- a QB always
- a starter or rotation player at RB, WR, TE, OL, DL, LB or CB
- a starter whose position could not be read
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Mapping, Optional

from agents.context import InjuryEntry, MatchupContext
from agents.thresholds import ThresholdSet
from core.models.finding import (
    AgentType,
    Finding,
    FindingScope,
    FindingSourceType,
    ValueType,
    finding_id,
)
from core.models.implications import INJURY_IMPLICATIONS


_logger = logging.getLogger(__name__)

AGENT = AgentType.INJURY


class InjuryStatus(str, Enum):
    OUT = "OUT"
    DOUBTFUL = "DOUBTFUL"
    QUESTIONABLE = "QUESTIONABLE"
    PROBABLE = "PROBABLE"
    ACTIVE = "ACTIVE"


class Designation(str, Enum):
    STARTER = "starter"
    ROTATION = "rotation"
    DEPTH = "depth"
    UNKNOWN = "unknown"


# =============================================================================
# Constants
# =============================================================================

MATERIAL_STATUSES = (InjuryStatus.OUT, InjuryStatus.DOUBTFUL)

STATUS_CONFIDENCE = {
    InjuryStatus.OUT: 0.95,
    InjuryStatus.DOUBTFUL: 0.75,
}

# Position groups that matter when the player is a starter or in the rotation
CONDITIONAL_POSITIONS = frozenset({"RB", "WR", "TE", "OL", "DL", "LB", "CB"})

DEFENSIVE_POSITIONS = frozenset({"DL", "LB", "CB", "S"})

POSITION_ALIASES = {
    "HB": "RB",
    "FB": "RB",
    "OT": "OL",
    "OG": "OL",
    "C": "OL",
    "T": "OL",
    "G": "OL",
    "DE": "DL",
    "DT": "DL",
    "NT": "DL",
    "ILB": "LB",
    "OLB": "LB",
    "MLB": "LB",
    "FS": "S",
    "SS": "S",
    "PK": "K",
}

_STATUS_PATTERN = re.compile(r"\b(OUT|DOUBTFUL|QUESTIONABLE|PROBABLE)\b", re.IGNORECASE)
_POSITION_PATTERN = re.compile(
    r"\b(QB|RB|HB|FB|WR|TE|OT|OG|C|OL|DE|DT|NT|DL|LB|ILB|OLB|MLB|CB|S|FS|SS|K|PK|P)\b",
    re.IGNORECASE,
)
_PARENTHETICAL = re.compile(r"\([^)]*\)")
_INJURY_WORDS = re.compile(
    r"\b(knee|ankle|hamstring|back|shoulder|concussion|illness|personal)\b", re.IGNORECASE
)
_EDGE_PUNCTUATION = " \t:;,-"


@dataclass(frozen=True)
class InjuryReport:
    """One parsed injury report entry."""

    player: str
    status: InjuryStatus
    position: Optional[str] = None
    designation: Designation = Designation.UNKNOWN


# =============================================================================
# Parsing
# =============================================================================


def parse_status(text: str) -> InjuryStatus:
    upper = text.upper()
    for status in (
        InjuryStatus.OUT,
        InjuryStatus.DOUBTFUL,
        InjuryStatus.QUESTIONABLE,
        InjuryStatus.PROBABLE,
    ):
        if status.value in upper:
            return status
    return InjuryStatus.ACTIVE


def normalize_position(position: Optional[str]) -> Optional[str]:
    if not position:
        return None
    upper = position.strip().upper()
    return POSITION_ALIASES.get(upper, upper)


def parse_designation(text: Optional[str]) -> Designation:
    lower = (text or "").lower()
    if "start" in lower:
        return Designation.STARTER
    if "rotation" in lower or "rotate" in lower:
        return Designation.ROTATION
    if "depth" in lower or "backup" in lower:
        return Designation.DEPTH
    return Designation.UNKNOWN


def parse_injury_text(text: str) -> Optional[InjuryReport]:
    """
    Parse a free-text entry. Returns None when no status word is present or
    no plausible player name is left after stripping.
    """
    status_match = _STATUS_PATTERN.search(text)
    if status_match is None:
        return None

    # A position in parentheses wins over initials in the name ("C.J.")
    parenthetical = " ".join(_PARENTHETICAL.findall(text))
    position_match = _POSITION_PATTERN.search(parenthetical) or _POSITION_PATTERN.search(text)
    raw_position = position_match.group(1) if position_match else None

    name = _STATUS_PATTERN.sub(" ", text)
    name = _PARENTHETICAL.sub(" ", name)
    name = name.replace(" - ", " ")
    if raw_position:
        name = re.sub(rf"\b{raw_position}\b", " ", name, count=1, flags=re.IGNORECASE)
    name = _INJURY_WORDS.sub(" ", name)
    name = " ".join(name.split()).strip(_EDGE_PUNCTUATION)

    if len(name) < 2:
        return None

    return InjuryReport(
        player=name,
        status=parse_status(status_match.group(1)),
        position=normalize_position(raw_position),
        designation=parse_designation(text),
    )


def parse_injury_entry(entry: InjuryEntry) -> Optional[InjuryReport]:
    if isinstance(entry, str):
        return parse_injury_text(entry)
    if isinstance(entry, Mapping):
        player = str(entry.get("player") or "").strip()
        if len(player) < 2:
            return None
        return InjuryReport(
            player=player,
            status=parse_status(str(entry.get("status") or "")),
            position=normalize_position(entry.get("position")),
            designation=parse_designation(entry.get("designation")),
        )
    return None


# =============================================================================
# Materiality
# =============================================================================


def is_material(report: InjuryReport) -> bool:
    if report.status not in MATERIAL_STATUSES:
        return False
    if report.position is None:
        return report.designation == Designation.STARTER
    if report.position == "QB":
        return True
    if report.position in CONDITIONAL_POSITIONS:
        return report.designation in (Designation.STARTER, Designation.ROTATION)
    return False


def injury_finding_type(position: Optional[str]) -> str:
    if position == "QB":
        return "qb_unavailable"
    if position == "OL":
        return "oline_unavailable"
    if position in DEFENSIVE_POSITIONS:
        return "defensive_playmaker_unavailable"
    return "skill_player_unavailable"


# =============================================================================
# Agent
# =============================================================================


def build_injury_finding(report: InjuryReport, team: str, context: MatchupContext) -> Finding:
    finding_type = injury_finding_type(report.position)
    status = report.status.value
    return Finding(
        id=finding_id(AGENT, team, report.player, timestamp=context.data_timestamp),
        agent=AGENT,
        type=finding_type,
        stat="player_status",
        value_str=status,
        value_type=ValueType.STRING,
        threshold_met="status in [OUT, DOUBTFUL]",
        comparison_context=f"{report.player} ({report.position or 'unknown'}) is {status}",
        source_ref=f"notes://injuries/{team}",
        source_type=FindingSourceType.NOTES,
        source_timestamp=context.data_timestamp,
        scope=FindingScope.PLAYER,
        implication=INJURY_IMPLICATIONS[finding_type][0],
        confidence=STATUS_CONFIDENCE[report.status],
        players_mentioned=(report.player,),
        payload={
            "status": status,
            "player": report.player,
            "team": team,
            "position": report.position or "unknown",
            "designation": report.designation.value,
        },
    )


def detect(context: MatchupContext, thresholds: ThresholdSet) -> List[Finding]:
    findings: List[Finding] = []
    for team, _ in context.team_pairs():
        for entry in context.injuries.get(team, ()):
            report = parse_injury_entry(entry)
            if report is None:
                _logger.debug(f"Skipping unparseable injury entry for {team}: {entry!r}")
                continue
            if not is_material(report):
                _logger.debug(f"Skipping non-material injury: {report.player} ({report.status.value})")
                continue
            findings.append(build_injury_finding(report, team, context))
    return findings
