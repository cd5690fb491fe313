"""
Models package for the Courtside live-scoring application.

This package contains the core data models used throughout the application.
"""
from .permissions import (
    Role, PermissionFlag, PermissionSet, User, UserGamePermissions,
    JoinGameResult, GameUser, can_edit_any_stats,
    STAT_EDIT_FLAGS
)
from .player import Player, TeamRoster, TeamSide
from .game_state import (
    GameSession, GameStatus, ClockState, PlayerTimeLedger, PlusMinusLedger,
    SubstitutionRequest
)
from .events import RealtimeEvent, RealtimeEventKind, StatKind, ShotType

__all__ = [
    "Role", "PermissionFlag", "PermissionSet", "User", "UserGamePermissions",
    "JoinGameResult", "GameUser", "can_edit_any_stats",
    "STAT_EDIT_FLAGS",
    "Player", "TeamRoster", "TeamSide",
    "GameSession", "GameStatus", "ClockState", "PlayerTimeLedger", "PlusMinusLedger",
    "SubstitutionRequest",
    "RealtimeEvent", "RealtimeEventKind", "StatKind", "ShotType"
]
