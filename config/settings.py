"""
Configuration settings for the Codeforces Match Bot.

This module contains all configuration constants and environment variables.
Keep all bot configuration centralized here.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# =============================================================================
# ENVIRONMENT VARIABLES
# =============================================================================

# Load environment variables from .env file
load_dotenv()

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Discord bot token - NEVER hardcode this!
DISCORD_TOKEN = os.getenv("DISCORD_TOKEN")

# Dashboard settings (admin-only web view)
DASHBOARD_USERNAME = os.getenv("DASHBOARD_USERNAME", "admin")
DASHBOARD_PASSWORD = os.getenv("DASHBOARD_PASSWORD")
DASHBOARD_HOST = os.getenv("DASHBOARD_HOST", "127.0.0.1")
DASHBOARD_PORT = int(os.getenv("DASHBOARD_PORT", "8080"))

# Storage locations
DATABASE_PATH = Path(os.getenv("DATABASE_PATH", str(PROJECT_ROOT / "bot_data.db")))
EVENT_LOG_PATH = Path(os.getenv("EVENT_LOG_PATH", str(PROJECT_ROOT / "logs" / "events.jsonl")))

# =============================================================================
# EXTERNAL SERVICES
# =============================================================================

CODEFORCES_API_URL = os.getenv("CODEFORCES_API_URL", "https://codeforces.com/api")
CODEFORCES_URL = os.getenv("CODEFORCES_URL", "https://codeforces.com")

# Codeforces asks for roughly one call every two seconds
CODEFORCES_MIN_REQUEST_INTERVAL = float(os.getenv("CODEFORCES_MIN_REQUEST_INTERVAL", "2.0"))
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "15"))

QUICKCHART_CREATE_URL = os.getenv("QUICKCHART_CREATE_URL", "https://quickchart.io/chart/create")

# =============================================================================
# MATCH CONFIGURATION
# =============================================================================

# Problem ratings drawn for each division, in slot order
DIVISION_RATINGS = {
    "1": (1600, 2000, 2400, 2800, 3200),
    "2": (800, 800, 1600, 2000, 2400),
    "3": (800, 800, 1200, 1200, 1600),
}

# Slot points: 100, 200, 300, ...
BASE_POINTS = 100
POINT_STEP = 100

# Points every unsolved problem loses per tick
POINT_DECAY_PER_TICK = 3

# Points deducted from an award per started minute since the match began
PENALTY_PER_MINUTE = 3

# Codeforces verdict for an accepted submission
ACCEPTED_VERDICT = "OK"

MAX_MATCH_PARTICIPANTS = 10

# Most recent submissions fetched per participant on every tick
SUBMISSION_WINDOW = 5

DEFAULT_TICK_INTERVAL_MINUTES = 1

# How many finished matches /cf_matches and the dashboard show
RECENT_MATCHES_LIMIT = 10
