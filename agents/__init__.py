# agents/__init__.py
"""
Detector agents.

Module structure:
- context.py: MatchupContext input types
- thresholds.py: season-keyed detector thresholds
- one module per agent (epa, pressure, weather, qb, hb, wr, te, injury,
  usage, pace, notes), each exposing detect(context, thresholds)
- runner.py: runs the selected roster and partitions invoked / silent
- skills/: per-agent guidance handed to the analyst
"""

from agents.context import MatchupContext, PlayerData, TeamStats, WeatherData, GameNotes
from agents.runner import ALL_AGENTS, AgentRunResult, run_agents
from agents.thresholds import ThresholdSet, get_thresholds

__all__ = [
    "MatchupContext",
    "PlayerData",
    "TeamStats",
    "WeatherData",
    "GameNotes",
    "ALL_AGENTS",
    "AgentRunResult",
    "run_agents",
    "ThresholdSet",
    "get_thresholds",
]
