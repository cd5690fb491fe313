"""
Collaborator interfaces of the live game core.

The core reads and writes the remote backend only through
:class:`GameRepository` and :class:`PermissionRepository`, and talks to other
viewers of the same game through a :class:`RealtimeNotifier`. Concrete
transports live in :mod:`http_repositories` and :mod:`courtside.ui.realtime`.
"""
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Callable, Dict, List, Mapping, Sequence

from ..models import (
    GameSession, GameUser, JoinGameResult, PermissionFlag, RealtimeEvent,
    ShotType, StatKind, SubstitutionRequest, UserGamePermissions
)

logger = logging.getLogger(__name__)

RealtimeCallback = Callable[[RealtimeEvent], None]
Unsubscribe = Callable[[], None]


class GameRepository(ABC):
    """Game state operations of the scoring backend."""

    @abstractmethod
    def get_game(self, game_id: int) -> GameSession:
        """Fetch the authoritative snapshot of a game."""
        raise NotImplementedError

    @abstractmethod
    def update_game_time(self, game_id: int, elapsed_seconds: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def update_score(self, game_id: int, home_score: int, away_score: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_starters(self, game_id: int, home_ids: Sequence[int], away_ids: Sequence[int]) -> None:
        raise NotImplementedError

    @abstractmethod
    def substitute(self, request: SubstitutionRequest) -> None:
        raise NotImplementedError

    @abstractmethod
    def update_player_minutes(self, game_id: int, minutes_ms: Mapping[int, int]) -> None:
        """Store on-court milliseconds for many players in one request."""
        raise NotImplementedError

    @abstractmethod
    def advance_quarter(self, game_id: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def record_stat(self, game_id: int, player_id: int, stat_kind: StatKind) -> None:
        raise NotImplementedError

    @abstractmethod
    def record_shot(
        self,
        game_id: int,
        player_id: int,
        shot_type: ShotType,
        made: bool,
        game_time: int,
        player_minutes_ms: int,
    ) -> None:
        raise NotImplementedError

    @abstractmethod
    def reset_game_time(self, game_id: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def finish_game(self, game_id: int) -> None:
        raise NotImplementedError


class PermissionRepository(ABC):
    """Per-game permission operations of the scoring backend."""

    @abstractmethod
    def join_game(self, game_id: int) -> JoinGameResult:
        raise NotImplementedError

    @abstractmethod
    def leave_game(self, game_id: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_my_permissions(self, game_id: int) -> UserGamePermissions:
        raise NotImplementedError

    @abstractmethod
    def set_user_permissions(
        self,
        game_id: int,
        user_id: int,
        partial: Mapping[PermissionFlag, bool],
    ) -> UserGamePermissions:
        """Admin/creator only; the backend enforces it."""
        raise NotImplementedError

    @abstractmethod
    def get_game_users(self, game_id: int) -> List[GameUser]:
        raise NotImplementedError

    @abstractmethod
    def get_user_permissions(self, game_id: int, user_id: int) -> UserGamePermissions:
        raise NotImplementedError

    @abstractmethod
    def get_all_game_permissions(self, game_id: int) -> List[UserGamePermissions]:
        raise NotImplementedError

    @abstractmethod
    def remove_user_permissions(self, game_id: int, user_id: int) -> None:
        raise NotImplementedError


class RealtimeNotifier(ABC):
    """Broadcast channel shared by every viewer of a game."""

    @abstractmethod
    def emit(self, event: RealtimeEvent) -> None:
        raise NotImplementedError

    @abstractmethod
    def subscribe(self, game_id: int, callback: RealtimeCallback) -> Unsubscribe:
        """Register ``callback`` for inbound events of ``game_id``."""
        raise NotImplementedError


class LocalRealtimeNotifier(RealtimeNotifier):
    """
    In-process realtime hub.

    Emitted events are delivered synchronously to every subscriber of the
    event's game. A failing subscriber is logged and does not stop delivery
    to the others.
    """

    def __init__(self):
        self._subscribers: Dict[int, List[RealtimeCallback]] = defaultdict(list)
        self.history: List[RealtimeEvent] = []

    def emit(self, event: RealtimeEvent) -> None:
        self.history.append(event)
        self.deliver(event)

    def deliver(self, event: RealtimeEvent) -> None:
        for callback in list(self._subscribers.get(event.game_id, [])):
            try:
                callback(event)
            except Exception:
                logger.exception("Realtime subscriber failed for %s", event.kind.value)

    def subscribe(self, game_id: int, callback: RealtimeCallback) -> Unsubscribe:
        self._subscribers[game_id].append(callback)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(game_id, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def subscriber_count(self, game_id: int) -> int:
        return len(self._subscribers.get(game_id, []))
