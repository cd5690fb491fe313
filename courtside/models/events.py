"""
Event and stat vocabulary for the Courtside live-scoring application.

This module contains the realtime event envelope exchanged with other
viewers of a game and the stat/shot kinds that can be recorded.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .permissions import PermissionFlag


class RealtimeEventKind(Enum):
    """Realtime channel names."""
    CLOCK_STARTED = "clockStarted"
    CLOCK_PAUSED = "clockPaused"
    CLOCK_RESET = "clockReset"
    STATS_UPDATED = "statsUpdated"
    SUBSTITUTION_MADE = "substitutionMade"


@dataclass(frozen=True)
class RealtimeEvent:
    """A broadcast notification about one game."""
    kind: RealtimeEventKind
    game_id: int
    payload: Dict[str, Any] = field(default_factory=dict)
    origin: Optional[str] = None  # session key of the emitter

    def to_dict(self) -> Dict[str, Any]:
        data = {"gameId": self.game_id, **self.payload}
        if self.origin is not None:
            data["origin"] = self.origin
        return data

    @classmethod
    def from_wire(cls, kind: str, data: Mapping[str, Any]) -> "RealtimeEvent":
        payload = {k: v for k, v in data.items() if k not in ("gameId", "origin")}
        return cls(
            kind=RealtimeEventKind(kind),
            game_id=int(data["gameId"]),
            payload=payload,
            origin=data.get("origin"),
        )


class StatKind(Enum):
    """Non-shot stats, valued with the backend's endpoint suffix."""
    ASSIST = "assist"
    REBOUND = "rebound"
    OFFENSIVE_REBOUND = "offensive-rebound"
    STEAL = "steal"
    BLOCK = "block"
    TURNOVER = "turnover"
    PERSONAL_FOUL = "personal-foul"

    @property
    def required_permission(self) -> PermissionFlag:
        return _STAT_PERMISSIONS[self]


_STAT_PERMISSIONS = {
    StatKind.ASSIST: PermissionFlag.EDIT_ASSISTS,
    StatKind.REBOUND: PermissionFlag.EDIT_REBOUNDS,
    StatKind.OFFENSIVE_REBOUND: PermissionFlag.EDIT_REBOUNDS,
    StatKind.STEAL: PermissionFlag.EDIT_STEALS,
    StatKind.BLOCK: PermissionFlag.EDIT_BLOCKS,
    StatKind.TURNOVER: PermissionFlag.EDIT_TURNOVERS,
    StatKind.PERSONAL_FOUL: PermissionFlag.EDIT_PERSONAL_FOULS,
}


class ShotType(Enum):
    """Shot attempts, valued with the backend's shot type names."""
    TWO_POINT = "2pt"
    THREE_POINT = "3pt"
    FREE_THROW = "ft"

    @property
    def points(self) -> int:
        return {ShotType.TWO_POINT: 2, ShotType.THREE_POINT: 3, ShotType.FREE_THROW: 1}[self]

    @property
    def required_permission(self) -> PermissionFlag:
        if self is ShotType.FREE_THROW:
            return PermissionFlag.EDIT_FREE_THROWS
        return PermissionFlag.EDIT_SHOTS
