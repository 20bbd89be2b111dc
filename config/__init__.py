"""
Configuration module for the Codeforces Match Bot.

This module contains all configuration constants and environment variables.
"""

from config.settings import (
    # Environment variables
    DISCORD_TOKEN,
    DASHBOARD_PASSWORD,
    DASHBOARD_HOST,
    DASHBOARD_PORT,
    DATABASE_PATH,
    # Match constants
    DIVISION_RATINGS,
    MAX_MATCH_PARTICIPANTS,
    POINT_DECAY_PER_TICK,
    PENALTY_PER_MINUTE,
)

__all__ = [
    "DISCORD_TOKEN",
    "DASHBOARD_PASSWORD",
    "DASHBOARD_HOST",
    "DASHBOARD_PORT",
    "DATABASE_PATH",
    "DIVISION_RATINGS",
    "MAX_MATCH_PARTICIPANTS",
    "POINT_DECAY_PER_TICK",
    "PENALTY_PER_MINUTE",
]
