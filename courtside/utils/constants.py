"""
Constants for the Courtside live-scoring application.

This module contains configuration constants used throughout the application.
"""

# Application metadata
APP_TITLE = "Courtside Live"

# Game timing defaults
DEFAULT_QUARTER_LENGTH_SEC = 600
DEFAULT_OVERTIME_LENGTH_SEC = 300
DEFAULT_TOTAL_QUARTERS = 4

# Clock tick configuration
TICK_INTERVAL_SEC = 1
MS_PER_TICK = 1000

# Players on court per team
LINEUP_SIZE = 5

# Remote backend defaults
DEFAULT_API_URL = "http://localhost:4000/api"
DEFAULT_REQUEST_TIMEOUT_SEC = 10

# Web server defaults
DEFAULT_WEB_HOST = "127.0.0.1"
DEFAULT_WEB_PORT = 7122

# Friendly labels for periods (used for UI hints)
PERIOD_LABELS = {
    1: "1st Quarter",
    2: "2nd Quarter",
    3: "3rd Quarter",
    4: "4th Quarter",
}
