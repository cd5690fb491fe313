"""
Socket.IO realtime channel for the Courtside web server.

Every viewer of a game joins that game's room. Commands sent by browser
clients are relayed to the other viewers in the room and handed to local
subscribers (the open game controllers), which answer them by re-fetching
the game from the backend.
"""
import logging
from collections import defaultdict
from typing import Any, Dict, List

from flask import request
from flask_socketio import SocketIO, emit, join_room, leave_room

from ..models import RealtimeEvent, RealtimeEventKind
from ..services.repositories import RealtimeCallback, RealtimeNotifier, Unsubscribe

logger = logging.getLogger(__name__)

# Client command name -> broadcast event kind
CLIENT_COMMANDS = {
    "startClock": RealtimeEventKind.CLOCK_STARTED,
    "pauseClock": RealtimeEventKind.CLOCK_PAUSED,
    "resetClock": RealtimeEventKind.CLOCK_RESET,
    "updateStats": RealtimeEventKind.STATS_UPDATED,
    "substitution": RealtimeEventKind.SUBSTITUTION_MADE,
}


def room_for(game_id: int) -> str:
    return f"game-{game_id}"


class SocketIORealtimeNotifier(RealtimeNotifier):
    """RealtimeNotifier backed by a Flask-SocketIO server."""

    def __init__(self, socketio: SocketIO):
        self.socketio = socketio
        self._subscribers: Dict[int, List[RealtimeCallback]] = defaultdict(list)
        self._register_handlers()

    def emit(self, event: RealtimeEvent) -> None:
        self.socketio.emit(event.kind.value, event.to_dict(), to=room_for(event.game_id))

    def subscribe(self, game_id: int, callback: RealtimeCallback) -> Unsubscribe:
        self._subscribers[game_id].append(callback)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(game_id, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def deliver(self, event: RealtimeEvent) -> None:
        for callback in list(self._subscribers.get(event.game_id, [])):
            try:
                callback(event)
            except Exception:
                logger.exception("Realtime subscriber failed for %s", event.kind.value)

    # ------------------------------------------------------------------
    # Socket handlers
    # ------------------------------------------------------------------
    def _register_handlers(self) -> None:

        @self.socketio.on("joinGame")
        def on_join_game(game_id: Any) -> None:
            join_room(room_for(int(game_id)))
            logger.debug("Socket %s joined game %s", request.sid, game_id)

        @self.socketio.on("leaveGame")
        def on_leave_game(game_id: Any) -> None:
            leave_room(room_for(int(game_id)))

        for command, kind in CLIENT_COMMANDS.items():
            self.socketio.on_event(command, self._make_command_handler(kind))

    def _make_command_handler(self, kind: RealtimeEventKind):

        def handler(data: Any) -> None:
            # Clock commands carry only the game id
            payload = data if isinstance(data, dict) else {"gameId": data}
            try:
                event = RealtimeEvent.from_wire(kind.value, payload)
            except (KeyError, TypeError, ValueError):
                logger.warning("Ignoring malformed %s message: %r", kind.value, data)
                return
            emit(kind.value, event.to_dict(), to=room_for(event.game_id), include_self=False)
            self.deliver(event)

        return handler
