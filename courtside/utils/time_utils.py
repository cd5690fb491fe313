"""
Utility functions for the Courtside live-scoring application.

This module contains common time formatting helpers used throughout the application.
"""
import time

from .constants import PERIOD_LABELS


def fmt_mmss(seconds: int) -> str:
    """
    Format seconds as MM:SS string.
    
    Args:
        seconds: Number of seconds to format
        
    Returns:
        Formatted time string in MM:SS format
        
    Example:
        >>> fmt_mmss(90)
        '01:30'
        >>> fmt_mmss(600)
        '10:00'
    """
    seconds = max(0, int(seconds))
    m = seconds // 60
    s = seconds % 60
    return f"{m:02d}:{s:02d}"


def ms_to_minutes(milliseconds: int) -> float:
    """Convert accumulated on-court milliseconds to minutes (one decimal)."""
    return round(milliseconds / 60000, 1)


def period_label(quarter: int, total_quarters: int) -> str:
    """Return a display label such as ``2nd Quarter`` or ``OT1``."""
    if quarter > total_quarters:
        return f"OT{quarter - total_quarters}"
    return PERIOD_LABELS.get(quarter, f"Q{quarter}")


def now_ts() -> float:
    """
    Get current timestamp in epoch seconds.
    
    Returns:
        Current time as floating point epoch seconds
    """
    return time.time()
