"""
Permission resolution for the Courtside live-scoring application.

This module resolves a user's effective in-game capabilities with a
three-tier precedence chain:

1. Game creators and ADMIN users hold every capability.
2. Otherwise server-issued permissions for the game are authoritative.
3. Otherwise the role's default table entry applies.

Tiers are never merged. The signed-in user and their per-game
permissions live in an explicit :class:`AuthSession` owned by the
application entry point and handed to every consumer.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from ..models import (
    GameUser, PermissionFlag, PermissionSet, Role, User, UserGamePermissions
)
from .errors import CourtsideError, PermissionDenied
from .repositories import PermissionRepository
from .role_defaults import defaults_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PermissionContext:
    """
    Inputs of one permission evaluation.

    Attributes:
        user: The signed-in user, or None when nobody is signed in
        is_game_creator: Whether the user created the current game
        server_permissions: Permissions issued by the backend for this game, if loaded
    """
    user: Optional[User]
    is_game_creator: bool = False
    server_permissions: Optional[PermissionSet] = None


def resolve_permissions(ctx: PermissionContext) -> PermissionSet:
    """Compute the effective permission set for ``ctx``."""
    if ctx.is_game_creator:
        return PermissionSet.all_granted()
    if ctx.user is not None and ctx.user.role is Role.ADMIN:
        return PermissionSet.all_granted()
    if ctx.server_permissions is not None:
        return ctx.server_permissions
    if ctx.user is None:
        return PermissionSet.none_granted()
    return defaults_for(ctx.user.role)


def has_permission(ctx: PermissionContext, flag: PermissionFlag) -> bool:
    """Answer a single capability query; short-circuits in precedence order."""
    if ctx.is_game_creator:
        return True
    if ctx.user is not None and ctx.user.role is Role.ADMIN:
        return True
    if ctx.server_permissions is not None:
        return ctx.server_permissions[flag]
    if ctx.user is None:
        return False
    return defaults_for(ctx.user.role)[flag]


class AuthSession:
    """
    Signed-in user plus the permissions of every game they have joined.

    One instance exists per process; it is created at sign-in, passed to
    every consumer explicitly and cleared by :meth:`logout`. Server
    permissions and the creator flag are kept per game, so several game
    views can be open side by side.
    """

    def __init__(self, permission_repository: PermissionRepository, user: Optional[User] = None):
        self._repository = permission_repository
        self.user = user
        self._games: Dict[int, UserGamePermissions] = {}

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def joined_games(self) -> List[int]:
        return sorted(self._games)

    def login(self, user: User) -> None:
        self.logout()
        self.user = user

    def logout(self) -> None:
        """Forget the user and every game-scoped permission."""
        self.user = None
        self._games.clear()

    # ------------------------------------------------------------------
    # Game membership
    # ------------------------------------------------------------------
    def join_game(self, game_id: int) -> None:
        """
        Join a game and adopt the permissions the backend grants for it.

        Raises:
            CourtsideError: If the backend refuses or cannot be reached
        """
        result = self._repository.join_game(game_id)
        self._store(game_id, result.permissions, result.is_game_creator)
        logger.info("Joined game %s (creator=%s)", game_id, result.is_game_creator)

    def leave_game(self, game_id: int) -> None:
        """Leave ``game_id``; permissions held for other games are kept."""
        try:
            self._repository.leave_game(game_id)
        except CourtsideError as e:
            logger.warning("Leaving game %s failed: %s", game_id, e)
        self._games.pop(game_id, None)

    def load_game_permissions(self, game_id: int) -> bool:
        """
        Refresh the permissions for ``game_id``.

        A failure is logged and the previous state kept, so queries keep
        falling back as before.

        Returns:
            True if fresh permissions were loaded
        """
        try:
            loaded = self._repository.get_my_permissions(game_id)
        except CourtsideError as e:
            logger.warning("Could not load permissions for game %s: %s", game_id, e)
            return False
        self._store(game_id, loaded.permissions, loaded.is_game_creator)
        return True

    def apply_permission_update(self, game_id: int, partial: Mapping[PermissionFlag, bool]) -> None:
        """Merge a partial update of the user's own flags into a joined game."""
        entry = self._games.get(game_id)
        if entry is None:
            return
        self._store(game_id, entry.permissions.merged(partial), entry.is_game_creator)

    def _store(self, game_id: int, permissions: PermissionSet, is_game_creator: bool) -> None:
        self._games[game_id] = UserGamePermissions(
            user_id=self.user.id if self.user is not None else 0,
            game_id=game_id,
            permissions=permissions,
            is_game_creator=is_game_creator,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def game_permissions(self, game_id: Optional[int]) -> Optional[PermissionSet]:
        entry = self._games.get(game_id)
        return None if entry is None else entry.permissions

    def is_game_creator(self, game_id: Optional[int]) -> bool:
        entry = self._games.get(game_id)
        return entry is not None and entry.is_game_creator

    def context(self, game_id: Optional[int] = None) -> PermissionContext:
        """Evaluation inputs for ``game_id``; no game means role defaults only."""
        return PermissionContext(
            user=self.user,
            is_game_creator=self.is_game_creator(game_id),
            server_permissions=self.game_permissions(game_id),
        )

    def has_permission(self, flag: PermissionFlag, game_id: Optional[int] = None) -> bool:
        return has_permission(self.context(game_id), flag)

    def is_admin(self) -> bool:
        return self.user is not None and self.user.role is Role.ADMIN

    def can_manage_game(self, game_id: int) -> bool:
        return self.is_admin() or self.is_game_creator(game_id)


class PermissionResolver:
    """
    Answers capability queries for one game against an :class:`AuthSession`.

    A fresh :class:`PermissionContext` is taken on every call, so a change of
    server permissions (for example after joining the game) is seen
    immediately. Permissions held for other games never apply.
    """

    def __init__(self, session: AuthSession, game_id: Optional[int] = None):
        self.session = session
        self.game_id = game_id

    def has_permission(self, flag: PermissionFlag) -> bool:
        return has_permission(self.session.context(self.game_id), flag)

    def effective_permissions(self) -> PermissionSet:
        return resolve_permissions(self.session.context(self.game_id))

    def require(self, flag: PermissionFlag) -> None:
        """
        Raises:
            PermissionDenied: If ``flag`` is not granted
        """
        if not self.has_permission(flag):
            raise PermissionDenied.missing(flag)


class PermissionAdminService:
    """Permission screen operations for admins and game creators."""

    def __init__(self, session: AuthSession, repository: PermissionRepository):
        self.session = session
        self.repository = repository

    def _require_manage(self, game_id: int) -> None:
        PermissionResolver(self.session, game_id).require(PermissionFlag.MANAGE_PERMISSIONS)

    def list_game_users(self, game_id: int) -> List[GameUser]:
        return self.repository.get_game_users(game_id)

    def list_game_permissions(self, game_id: int) -> List[UserGamePermissions]:
        self._require_manage(game_id)
        return self.repository.get_all_game_permissions(game_id)

    def get_user_permissions(self, game_id: int, user_id: int) -> UserGamePermissions:
        self._require_manage(game_id)
        return self.repository.get_user_permissions(game_id, user_id)

    def set_user_permissions(
        self,
        game_id: int,
        user_id: int,
        partial: Mapping[PermissionFlag, bool],
    ) -> UserGamePermissions:
        """
        Grant or revoke individual flags for another user.

        The backend enforces authorization; this only keeps the affordance
        away from users who lack it. Updating one's own entry also updates
        the session's permissions for that game.
        """
        self._require_manage(game_id)
        updated = self.repository.set_user_permissions(game_id, user_id, dict(partial))
        if self.session.user is not None and self.session.user.id == user_id:
            self.session.apply_permission_update(game_id, partial)
        return updated

    def remove_user_permissions(self, game_id: int, user_id: int) -> None:
        self._require_manage(game_id)
        self.repository.remove_user_permissions(game_id, user_id)

    def permission_matrix(self, game_id: int) -> Dict[int, Dict[str, bool]]:
        """Flags per user id, in the backend's wire naming."""
        return {
            entry.user_id: entry.permissions.to_dict()
            for entry in self.list_game_permissions(game_id)
        }
