"""
Player and roster models for the Courtside live-scoring application.

This module contains the Player dataclass, the per-team roster and the
home/away side enumeration.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional

from ..utils import ms_to_minutes


class TeamSide(Enum):
    """Which side of the scoreboard a team plays on."""
    HOME = "home"
    AWAY = "away"

    @property
    def opponent(self) -> "TeamSide":
        return TeamSide.AWAY if self is TeamSide.HOME else TeamSide.HOME

    @classmethod
    def parse(cls, value: Any) -> "TeamSide":
        if isinstance(value, TeamSide):
            return value
        return cls(str(value).lower())


@dataclass
class Player:
    """
    Represents a basketball player in the open game view.

    Attributes:
        id: Backend player identifier
        team_id: Identifier of the team the player belongs to
        name: Player's first name
        last_name: Player's last name
        number: Jersey number
        position: Playing position (free text from the backend)
        is_on_court: Whether the player is currently playing
        minutes_ms: On-court milliseconds last reported by the backend
        plus_minus: Plus/minus last computed by the backend
    """
    id: int
    team_id: int
    name: str = ""
    last_name: str = ""
    number: Optional[int] = None
    position: str = ""
    is_on_court: bool = False
    minutes_ms: int = 0
    plus_minus: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "team_id": self.team_id,
            "name": self.name,
            "last_name": self.last_name,
            "number": self.number,
            "position": self.position,
            "is_on_court": self.is_on_court,
            "minutes_ms": self.minutes_ms,
            "minutes": ms_to_minutes(self.minutes_ms),
            "plus_minus": self.plus_minus,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], team_id: Optional[int] = None) -> "Player":
        """
        Create from a backend dictionary.

        Accepts both the backend's Spanish keys and the snake_case keys
        produced by :meth:`to_dict`.
        """
        stats = data.get("stats") or {}
        number = data.get("numero", data.get("number"))
        return cls(
            id=int(data["id"]),
            team_id=int(data.get("teamId", data.get("team_id", team_id or 0))),
            name=data.get("nombre", data.get("name", "")) or "",
            last_name=data.get("apellido", data.get("last_name", "")) or "",
            number=int(number) if number is not None else None,
            position=data.get("posicion", data.get("position", "")) or "",
            is_on_court=bool(data.get("isOnCourt", data.get("is_on_court", False))),
            minutes_ms=int(stats.get("minutos", data.get("minutes_ms", 0)) or 0),
            plus_minus=int(stats.get("plusMinus", data.get("plus_minus", 0)) or 0),
        )


@dataclass
class TeamRoster:
    """A team's players and score within one game."""
    team_id: int
    name: str = ""
    players: List[Player] = field(default_factory=list)
    score: int = 0

    def __iter__(self) -> Iterator[Player]:
        return iter(self.players)

    def __contains__(self, player_id: object) -> bool:
        return any(p.id == player_id for p in self.players)

    def get(self, player_id: int) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def player_ids(self) -> List[int]:
        return [p.id for p in self.players]

    def on_court(self) -> List[Player]:
        return [p for p in self.players if p.is_on_court]

    def bench(self) -> List[Player]:
        return [p for p in self.players if not p.is_on_court]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "team_id": self.team_id,
            "name": self.name,
            "score": self.score,
            "players": [p.to_dict() for p in self.players],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], score: int = 0) -> "TeamRoster":
        team_id = int(data.get("id", data.get("team_id", 0)))
        return cls(
            team_id=team_id,
            name=data.get("nombre", data.get("name", "")) or "",
            players=[Player.from_dict(p, team_id) for p in data.get("players", [])],
            score=int(data.get("score", score) or 0),
        )
