"""
Web application module for the Courtside live-scoring application.

This module contains the Flask server exposing JSON endpoints for open game
views: lineup, substitutions, clock, score and stat recording, and the
per-game permission screen. Realtime updates flow through Flask-SocketIO.
"""
import logging
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request
from flask_socketio import SocketIO

from ..models import PermissionFlag, ShotType, StatKind, TeamSide, User
from ..services import (
    AuthSession, CourtsideError, GameSessionController, NetworkFailure,
    PermissionDenied, RequestRejected, ServiceFactory, ValidationError
)
from ..utils import APP_TITLE, Settings, configure_logging, now_ts
from .realtime import SocketIORealtimeNotifier

logger = logging.getLogger(__name__)


class WebAppState:
    """
    State holder for the web application.

    Owns the process-wide AuthSession and one controller per open game view.
    """

    def __init__(self, factory: ServiceFactory, auth_session: Optional[AuthSession] = None):
        self.factory = factory
        self.auth_session = auth_session or factory.create_auth_session()
        self.controllers: Dict[int, GameSessionController] = {}

    def open_game(self, game_id: int) -> GameSessionController:
        controller = self.controllers.get(game_id)
        if controller is None:
            controller = self.factory.create_game_controller(game_id, self.auth_session)
            try:
                controller.load()
            except Exception:
                controller.close()
                raise
            self.controllers[game_id] = controller
        return controller

    def get_game(self, game_id: int) -> GameSessionController:
        controller = self.controllers.get(game_id)
        if controller is None:
            return self.open_game(game_id)
        return controller

    def close_game(self, game_id: int) -> bool:
        controller = self.controllers.pop(game_id, None)
        if controller is None:
            return False
        controller.close()
        return True

    def shutdown(self) -> None:
        """Close every open game view and sign out."""
        for game_id in list(self.controllers):
            self.close_game(game_id)
        self.auth_session.logout()


def _status_for(error: CourtsideError) -> int:
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, PermissionDenied):
        return 403
    if isinstance(error, RequestRejected):
        return 409
    if isinstance(error, NetworkFailure):
        return 502
    return 500


def _body() -> Dict[str, Any]:
    return request.get_json(silent=True) or {}


def create_app(
    factory: Optional[ServiceFactory] = None,
    auth_session: Optional[AuthSession] = None,
    settings: Optional[Settings] = None,
) -> Flask:
    """
    Create and configure the Flask application with API endpoints.

    Args:
        factory: Service factory (defaults to REST repositories from settings)
        auth_session: Pre-built session; created from the factory otherwise
        settings: Settings used when no factory is given

    Returns:
        Configured Flask application instance; the SocketIO server is
        available as ``app.extensions["socketio"]``
    """
    app = Flask(__name__)
    socketio = SocketIO(app, async_mode="threading")

    factory = factory or ServiceFactory(settings=settings)
    factory.configure_notifier(SocketIORealtimeNotifier(socketio))
    state = WebAppState(factory, auth_session)
    app.extensions["courtside"] = state

    @app.errorhandler(CourtsideError)
    def handle_courtside_error(e: CourtsideError):
        return jsonify({"success": False, "error": str(e)}), _status_for(e)

    def handle_bad_input(e: Exception):
        return jsonify({"success": False, "error": f"Invalid request: {e}"}), 400

    app.register_error_handler(KeyError, handle_bad_input)
    app.register_error_handler(ValueError, handle_bad_input)

    # ==================== Session ==================== #

    @app.route("/api/me", methods=["GET"])
    def get_me():
        user = state.auth_session.user
        return jsonify({
            "success": True,
            "app": APP_TITLE,
            "user": None if user is None else {
                "id": user.id,
                "name": user.name,
                "role": user.role.value if user.role else None,
            },
            "joined_games": state.auth_session.joined_games,
        })

    @app.route("/api/logout", methods=["POST"])
    def logout():
        state.shutdown()
        return jsonify({"success": True})

    # ==================== Game view ==================== #

    @app.route("/api/games/<int:game_id>/open", methods=["POST"])
    def open_game(game_id: int):
        controller = state.open_game(game_id)
        return jsonify({"success": True, "game": controller.state()})

    @app.route("/api/games/<int:game_id>/close", methods=["POST"])
    def close_game(game_id: int):
        return jsonify({"success": state.close_game(game_id)})

    @app.route("/api/games/<int:game_id>/state", methods=["GET"])
    def get_state(game_id: int):
        return jsonify({"success": True, "game": state.get_game(game_id).state(), "server_time": now_ts()})

    @app.route("/api/games/<int:game_id>/reload", methods=["POST"])
    def reload_game(game_id: int):
        controller = state.get_game(game_id)
        controller.reload()
        return jsonify({"success": True, "game": controller.state()})

    @app.route("/api/games/<int:game_id>/starters", methods=["POST"])
    def set_starters(game_id: int):
        data = _body()
        controller = state.get_game(game_id)
        controller.set_starters(
            [int(pid) for pid in data.get("home", [])],
            [int(pid) for pid in data.get("away", [])],
        )
        return jsonify({"success": True, "game": controller.state()})

    @app.route("/api/games/<int:game_id>/substitution", methods=["POST"])
    def make_substitution(game_id: int):
        data = _body()
        controller = state.get_game(game_id)
        sub = controller.substitute(
            TeamSide.parse(data.get("team")),
            int(data["player_out_id"]),
            int(data["player_in_id"]),
        )
        return jsonify({"success": True, "substitution": sub.to_dict(), "game": controller.state()})

    # ==================== Clock ==================== #

    @app.route("/api/games/<int:game_id>/clock/start", methods=["POST"])
    def start_clock(game_id: int):
        started = state.get_game(game_id).start_clock()
        return jsonify({"success": True, "changed": started})

    @app.route("/api/games/<int:game_id>/clock/pause", methods=["POST"])
    def pause_clock(game_id: int):
        paused = state.get_game(game_id).pause_clock()
        return jsonify({"success": True, "changed": paused})

    @app.route("/api/games/<int:game_id>/clock/reset", methods=["POST"])
    def reset_clock(game_id: int):
        state.get_game(game_id).reset_clock()
        return jsonify({"success": True})

    @app.route("/api/games/<int:game_id>/quarter/advance", methods=["POST"])
    def advance_quarter(game_id: int):
        quarter = state.get_game(game_id).advance_quarter()
        return jsonify({"success": True, "quarter": quarter})

    @app.route("/api/games/<int:game_id>/finish", methods=["POST"])
    def finish_game(game_id: int):
        state.get_game(game_id).finish_game()
        return jsonify({"success": True})

    # ==================== Score and stats ==================== #

    @app.route("/api/games/<int:game_id>/score", methods=["POST"])
    def update_score(game_id: int):
        data = _body()
        controller = state.get_game(game_id)
        controller.update_score(int(data["home"]), int(data["away"]))
        return jsonify({"success": True, "game": controller.state()})

    @app.route("/api/games/<int:game_id>/stats", methods=["POST"])
    def record_stat(game_id: int):
        data = _body()
        state.get_game(game_id).record_stat(int(data["player_id"]), StatKind(data["stat"]))
        return jsonify({"success": True})

    @app.route("/api/games/<int:game_id>/shots", methods=["POST"])
    def record_shot(game_id: int):
        data = _body()
        controller = state.get_game(game_id)
        controller.record_shot(int(data["player_id"]), ShotType(data["shot_type"]), bool(data.get("made")))
        return jsonify({"success": True, "game": controller.state()})

    # ==================== Permissions ==================== #

    @app.route("/api/games/<int:game_id>/permissions", methods=["GET"])
    def get_my_permissions(game_id: int):
        controller = state.get_game(game_id)
        return jsonify({
            "success": True,
            "permissions": controller.permissions.effective_permissions().to_dict(),
            "is_game_creator": state.auth_session.is_game_creator(game_id),
            "can_manage_game": state.auth_session.can_manage_game(game_id),
        })

    @app.route("/api/games/<int:game_id>/users", methods=["GET"])
    def list_game_users(game_id: int):
        admin = state.factory.create_permission_admin(state.auth_session)
        users = [
            {
                "id": entry.user.id,
                "name": entry.user.name,
                "role": entry.user.role.value if entry.user.role else None,
                "is_game_creator": entry.is_game_creator,
                "permissions": entry.permissions.to_dict(),
                "joined_at": entry.joined_at.isoformat() if entry.joined_at else None,
            }
            for entry in admin.list_game_users(game_id)
        ]
        return jsonify({"success": True, "users": users})

    @app.route("/api/games/<int:game_id>/users/permissions", methods=["GET"])
    def list_permissions(game_id: int):
        admin = state.factory.create_permission_admin(state.auth_session)
        matrix = admin.permission_matrix(game_id)
        return jsonify({"success": True, "permissions": {str(k): v for k, v in matrix.items()}})

    @app.route("/api/games/<int:game_id>/users/<int:user_id>/permissions", methods=["GET"])
    def get_user_permissions(game_id: int, user_id: int):
        admin = state.factory.create_permission_admin(state.auth_session)
        entry = admin.get_user_permissions(game_id, user_id)
        return jsonify({"success": True, "permissions": entry.permissions.to_dict()})

    @app.route("/api/games/<int:game_id>/users/<int:user_id>/permissions", methods=["POST"])
    def set_user_permissions(game_id: int, user_id: int):
        partial = {PermissionFlag(key): bool(value) for key, value in _body().items()}
        admin = state.factory.create_permission_admin(state.auth_session)
        updated = admin.set_user_permissions(game_id, user_id, partial)
        return jsonify({"success": True, "permissions": updated.permissions.to_dict()})

    @app.route("/api/games/<int:game_id>/users/<int:user_id>/permissions", methods=["DELETE"])
    def remove_user_permissions(game_id: int, user_id: int):
        admin = state.factory.create_permission_admin(state.auth_session)
        admin.remove_user_permissions(game_id, user_id)
        return jsonify({"success": True})

    return app


def run_web_app(settings: Optional[Settings] = None, user: Optional[User] = None) -> None:
    """
    Run the web application.

    Args:
        settings: Server and backend settings (defaults to environment)
        user: Signed-in user; resolved from the configured token when omitted
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    factory = ServiceFactory(settings=settings)
    app = create_app(factory, auth_session=factory.create_auth_session(user))
    state: WebAppState = app.extensions["courtside"]
    socketio: SocketIO = app.extensions["socketio"]
    try:
        # Bind only to localhost by default
        socketio.run(app, host=settings.web_host, port=settings.web_port, allow_unsafe_werkzeug=True)
    finally:
        state.shutdown()
