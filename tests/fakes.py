"""In-memory collaborators and builders shared by the test modules."""
from typing import Dict, List, Mapping, Optional, Sequence

from courtside.models import (
    GameSession, GameStatus, GameUser, JoinGameResult, PermissionFlag,
    PermissionSet, Player, Role, ShotType, StatKind, SubstitutionRequest,
    TeamRoster, User, UserGamePermissions
)
from courtside.services import GameRepository, PermissionRepository

HOME_TEAM_ID = 10
AWAY_TEAM_ID = 20
GAME_ID = 7


def build_roster(team_id: int, first_player_id: int, size: int = 8) -> TeamRoster:
    players = [
        Player(id=first_player_id + i, team_id=team_id, name=f"P{first_player_id + i}", number=i + 1)
        for i in range(size)
    ]
    return TeamRoster(team_id=team_id, name=f"Team {team_id}", players=players)


def build_session(game_id: int = GAME_ID, in_progress: bool = False) -> GameSession:
    """
    Two 8-player rosters: home ids 1-8, away ids 101-108.

    With ``in_progress`` the first five of each team are on court.
    """
    gs = GameSession(
        game_id=game_id,
        home=build_roster(HOME_TEAM_ID, 1),
        away=build_roster(AWAY_TEAM_ID, 101),
    )
    if in_progress:
        gs.status = GameStatus.IN_PROGRESS
        for roster in (gs.home, gs.away):
            for player in roster.players[:5]:
                player.is_on_court = True
    return gs


def user(role: Role = Role.USER, user_id: int = 1) -> User:
    return User(id=user_id, email=f"user{user_id}@example.com", name=f"User {user_id}", role=role)


class RecordingGameRepository(GameRepository):
    """
    Stores every call in ``calls``; returns copies of ``snapshot`` on reads.

    Set ``fail_with`` to make every write raise that error.
    """

    def __init__(self, snapshot_factory=None):
        self.snapshot_factory = snapshot_factory or build_session
        self.calls: List[tuple] = []
        self.fail_with: Optional[Exception] = None

    def _record(self, *call) -> None:
        self.calls.append(call)
        if self.fail_with is not None:
            raise self.fail_with

    def calls_to(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]

    def get_game(self, game_id: int) -> GameSession:
        self.calls.append(("get_game", game_id))
        return self.snapshot_factory()

    def update_game_time(self, game_id: int, elapsed_seconds: int) -> None:
        self._record("update_game_time", game_id, elapsed_seconds)

    def update_score(self, game_id: int, home_score: int, away_score: int) -> None:
        self._record("update_score", game_id, home_score, away_score)

    def set_starters(self, game_id: int, home_ids: Sequence[int], away_ids: Sequence[int]) -> None:
        self._record("set_starters", game_id, list(home_ids), list(away_ids))

    def substitute(self, request: SubstitutionRequest) -> None:
        self._record("substitute", request)

    def update_player_minutes(self, game_id: int, minutes_ms: Mapping[int, int]) -> None:
        self._record("update_player_minutes", game_id, dict(minutes_ms))

    def advance_quarter(self, game_id: int) -> None:
        self._record("advance_quarter", game_id)

    def record_stat(self, game_id: int, player_id: int, stat_kind: StatKind) -> None:
        self._record("record_stat", game_id, player_id, stat_kind)

    def record_shot(self, game_id, player_id, shot_type: ShotType, made, game_time, player_minutes_ms) -> None:
        self._record("record_shot", game_id, player_id, shot_type, made, game_time, player_minutes_ms)

    def reset_game_time(self, game_id: int) -> None:
        self._record("reset_game_time", game_id)

    def finish_game(self, game_id: int) -> None:
        self._record("finish_game", game_id)


class FakePermissionRepository(PermissionRepository):
    """Holds per-user permission entries for one or more games in memory."""

    def __init__(self, join_result: Optional[JoinGameResult] = None, join_error: Optional[Exception] = None):
        self.join_result = join_result or JoinGameResult(permissions=PermissionSet())
        self.join_error = join_error
        self.join_results: Dict[int, JoinGameResult] = {}
        self.entries: Dict[tuple, UserGamePermissions] = {}
        self.users: Dict[int, List[GameUser]] = {}
        self.joined: List[int] = []
        self.left: List[int] = []

    def join_game(self, game_id: int) -> JoinGameResult:
        if self.join_error is not None:
            raise self.join_error
        self.joined.append(game_id)
        return self.join_results.get(game_id, self.join_result)

    def leave_game(self, game_id: int) -> None:
        self.left.append(game_id)

    def get_my_permissions(self, game_id: int) -> UserGamePermissions:
        result = self.join_results.get(game_id, self.join_result)
        return UserGamePermissions(
            user_id=0, game_id=game_id,
            permissions=result.permissions,
            is_game_creator=result.is_game_creator,
        )

    def set_user_permissions(self, game_id: int, user_id: int, partial: Mapping[PermissionFlag, bool]) -> UserGamePermissions:
        current = self.entries.get((game_id, user_id)) or UserGamePermissions(user_id=user_id, game_id=game_id)
        updated = UserGamePermissions(
            user_id=user_id, game_id=game_id,
            permissions=current.permissions.merged(partial),
            is_game_creator=current.is_game_creator,
        )
        self.entries[(game_id, user_id)] = updated
        return updated

    def get_game_users(self, game_id: int) -> List[GameUser]:
        return list(self.users.get(game_id, []))

    def get_user_permissions(self, game_id: int, user_id: int) -> UserGamePermissions:
        return self.entries.get((game_id, user_id)) or UserGamePermissions(user_id=user_id, game_id=game_id)

    def get_all_game_permissions(self, game_id: int) -> List[UserGamePermissions]:
        return [entry for (gid, _), entry in self.entries.items() if gid == game_id]

    def remove_user_permissions(self, game_id: int, user_id: int) -> None:
        self.entries.pop((game_id, user_id), None)
