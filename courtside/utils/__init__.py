"""
Utilities package for the Courtside live-scoring application.

This package contains utility functions and configuration used throughout the application.
"""
from .time_utils import fmt_mmss, ms_to_minutes, now_ts, period_label
from .constants import (
    APP_TITLE, DEFAULT_QUARTER_LENGTH_SEC, DEFAULT_OVERTIME_LENGTH_SEC,
    DEFAULT_TOTAL_QUARTERS, LINEUP_SIZE, MS_PER_TICK, TICK_INTERVAL_SEC
)
from .settings import Settings
from .logging_config import configure_logging

__all__ = [
    "fmt_mmss", "ms_to_minutes", "now_ts", "period_label", "APP_TITLE",
    "DEFAULT_QUARTER_LENGTH_SEC", "DEFAULT_OVERTIME_LENGTH_SEC", "DEFAULT_TOTAL_QUARTERS",
    "LINEUP_SIZE", "MS_PER_TICK", "TICK_INTERVAL_SEC", "Settings", "configure_logging"
]
