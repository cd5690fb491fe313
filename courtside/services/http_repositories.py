"""
REST implementations of the backend repositories.

Thin wrappers over the scoring backend's HTTP API built on ``requests``.
Transport problems and 5xx answers become :class:`NetworkFailure`, 401/403
become :class:`PermissionDenied` carrying the server's message verbatim, and
any other 4xx becomes :class:`RequestRejected`.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

import requests

from ..models import (
    GameSession, GameUser, JoinGameResult, PermissionFlag, ShotType, StatKind,
    SubstitutionRequest, User, UserGamePermissions
)
from ..models.permissions import partial_to_wire
from ..utils import Settings
from .errors import NetworkFailure, PermissionDenied, RequestRejected
from .repositories import GameRepository, PermissionRepository

logger = logging.getLogger(__name__)


class RestClient:
    """Shared request plumbing: base URL, bearer token, timeout and error mapping."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    @classmethod
    def from_settings(cls, settings: Settings) -> "RestClient":
        return cls(settings.api_base_url, settings.api_token, settings.request_timeout)

    def request(self, method: str, path: str, payload: Any = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise NetworkFailure(f"{method} {path} failed: {e}") from e

        if response.status_code >= 500:
            raise NetworkFailure(f"{method} {path} returned {response.status_code}")
        if response.status_code in (401, 403):
            raise PermissionDenied(self._error_message(response))
        if response.status_code >= 400:
            logger.info("%s %s rejected with %s", method, path, response.status_code)
            raise RequestRejected(self._error_message(response), status_code=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason or str(response.status_code)
        if isinstance(body, dict):
            for key in ("message", "error"):
                if body.get(key):
                    return str(body[key])
        return str(body)


class HttpGameRepository(GameRepository):
    """Game endpoints (``/games``, ``/teams``, ``/substitutions``)."""

    def __init__(self, client: RestClient):
        self.client = client

    def get_game(self, game_id: int) -> GameSession:
        data = dict(self.client.request("GET", f"/games/{game_id}") or {})
        # The game document may reference teams by id only
        for key, id_key in (("teamHome", "teamHomeId"), ("teamAway", "teamAwayId")):
            team = data.get(key) or {}
            if "players" not in team and data.get(id_key) is not None:
                data[key] = self.client.request("GET", f"/teams/{data[id_key]}")
        return GameSession.from_dict(data)

    def update_game_time(self, game_id: int, elapsed_seconds: int) -> None:
        self.client.request("PUT", f"/games/{game_id}/time", {"gameTime": elapsed_seconds})

    def update_score(self, game_id: int, home_score: int, away_score: int) -> None:
        self.client.request(
            "PUT", f"/games/{game_id}/score",
            {"homeScore": home_score, "awayScore": away_score},
        )

    def set_starters(self, game_id: int, home_ids: Sequence[int], away_ids: Sequence[int]) -> None:
        self.client.request(
            "POST", f"/games/{game_id}/start",
            {"activePlayerIds": list(home_ids) + list(away_ids)},
        )

    def substitute(self, request: SubstitutionRequest) -> None:
        body = request.to_dict()
        body.pop("teamSide")
        self.client.request("POST", f"/substitutions/team/{request.team_side.value}", body)

    def update_player_minutes(self, game_id: int, minutes_ms: Mapping[int, int]) -> None:
        payload = {str(player_id): int(ms) for player_id, ms in minutes_ms.items()}
        self.client.request("PUT", f"/games/{game_id}/player-minutes", payload)

    def advance_quarter(self, game_id: int) -> None:
        self.client.request("POST", f"/games/{game_id}/next-quarter")

    def record_stat(self, game_id: int, player_id: int, stat_kind: StatKind) -> None:
        self.client.request("POST", f"/games/{game_id}/record-{stat_kind.value}", {"playerId": player_id})

    def record_shot(
        self,
        game_id: int,
        player_id: int,
        shot_type: ShotType,
        made: bool,
        game_time: int,
        player_minutes_ms: int,
    ) -> None:
        self.client.request("POST", f"/games/{game_id}/record-shot", {
            "playerId": player_id,
            "shotType": shot_type.value,
            "made": made,
            "gameTime": game_time,
            "playerMinutes": player_minutes_ms,
        })

    def reset_game_time(self, game_id: int) -> None:
        self.client.request("POST", f"/games/{game_id}/reset-time")

    def finish_game(self, game_id: int) -> None:
        self.client.request("PUT", f"/games/{game_id}", {"estado": "finalizado"})


class HttpPermissionRepository(PermissionRepository):
    """Per-game permission endpoints (``/user-game``)."""

    def __init__(self, client: RestClient):
        self.client = client

    @staticmethod
    def _base(game_id: int) -> str:
        return f"/user-game/games/{game_id}"

    def join_game(self, game_id: int) -> JoinGameResult:
        return JoinGameResult.from_dict(self.client.request("POST", f"{self._base(game_id)}/join") or {})

    def leave_game(self, game_id: int) -> None:
        self.client.request("POST", f"{self._base(game_id)}/leave")

    def get_my_permissions(self, game_id: int) -> UserGamePermissions:
        data = self.client.request("GET", f"{self._base(game_id)}/my-permissions") or {}
        return UserGamePermissions.from_dict(data)

    def set_user_permissions(
        self,
        game_id: int,
        user_id: int,
        partial: Mapping[PermissionFlag, bool],
    ) -> UserGamePermissions:
        data = self.client.request(
            "POST", f"{self._base(game_id)}/users/{user_id}/permissions", partial_to_wire(partial),
        )
        return UserGamePermissions.from_dict(data or {})

    def get_game_users(self, game_id: int) -> List[GameUser]:
        data = self.client.request("GET", f"{self._base(game_id)}/users") or []
        return [GameUser.from_dict(item) for item in data]

    def get_user_permissions(self, game_id: int, user_id: int) -> UserGamePermissions:
        data = self.client.request("GET", f"{self._base(game_id)}/users/{user_id}/permissions") or {}
        return UserGamePermissions.from_dict(data)

    def get_all_game_permissions(self, game_id: int) -> List[UserGamePermissions]:
        data = self.client.request("GET", f"{self._base(game_id)}/permissions") or []
        return [UserGamePermissions.from_dict(item) for item in data]

    def remove_user_permissions(self, game_id: int, user_id: int) -> None:
        self.client.request("DELETE", f"{self._base(game_id)}/users/{user_id}/permissions")


class HttpAuthClient:
    """Resolves the signed-in user from the configured token."""

    def __init__(self, client: RestClient):
        self.client = client

    def get_profile(self) -> User:
        return User.from_dict(self.client.request("GET", "/auth/profile"))

    def verify_token(self) -> Optional[User]:
        """Return the token's user, or None if the backend does not accept it."""
        try:
            data: Dict[str, Any] = self.client.request("POST", "/auth/verify-token") or {}
        except PermissionDenied:
            return None
        if data.get("valid") and data.get("user"):
            return User.from_dict(data["user"])
        return None
