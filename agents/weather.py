# agents/weather.py
"""
Weather agent - outdoor wind, cold and precipitation.

Indoor games never produce weather findings.
"""
from __future__ import annotations

from typing import List

from agents.common import rank_finding
from agents.context import MatchupContext, WeatherData
from agents.thresholds import ThresholdSet, WeatherThresholds
from core.models.claim import format_number
from core.models.finding import AgentType, Finding, FindingScope


AGENT = AgentType.WEATHER


def check_weather(
    weather: WeatherData,
    context: MatchupContext,
    thresholds: WeatherThresholds,
) -> List[Finding]:
    findings: List[Finding] = []
    if weather.indoor:
        return findings

    if weather.wind_mph >= thresholds.wind_mph:
        findings.append(rank_finding(
            AGENT, context, ("wind",),
            type="weather_wind",
            stat="wind_mph",
            value=weather.wind_mph,
            threshold_met=f"wind >= {format_number(thresholds.wind_mph)} mph",
            comparison=f"{format_number(weather.wind_mph)} mph wind - affects deep passing",
            scope=FindingScope.GAME,
        ))

    if weather.temperature <= thresholds.cold_temp:
        findings.append(rank_finding(
            AGENT, context, ("cold",),
            type="weather_cold",
            stat="temperature",
            value=weather.temperature,
            threshold_met=f"temp <= {format_number(thresholds.cold_temp)}°F",
            comparison=f"{format_number(weather.temperature)}°F - cold weather game",
            scope=FindingScope.GAME,
        ))

    if weather.precipitation_chance >= thresholds.precipitation_chance:
        kind = weather.precipitation_type or "precipitation"
        findings.append(rank_finding(
            AGENT, context, ("precip",),
            type="weather_rain",
            stat="precipitation_chance",
            value=weather.precipitation_chance,
            threshold_met=f"precipitation >= {format_number(thresholds.precipitation_chance)}%",
            comparison=f"{format_number(weather.precipitation_chance)}% chance of {kind}",
            scope=FindingScope.GAME,
        ))

    return findings


def detect(context: MatchupContext, thresholds: ThresholdSet) -> List[Finding]:
    if context.weather is None:
        return []
    return check_weather(context.weather, context, thresholds.weather)
