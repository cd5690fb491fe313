"""
Permission models for the Courtside live-scoring application.

This module contains the user role enumeration, the fixed 15-flag in-game
capability record and the value objects exchanged with the permission backend.
"""
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class Role(Enum):
    """Coarse user role assigned at registration."""
    USER = "USER"
    ADMIN = "ADMIN"
    SCORER = "SCORER"
    REBOUNDER_ASSISTS = "REBOUNDER_ASSISTS"
    STEALS_BLOCKS = "STEALS_BLOCKS"
    ALL_AROUND = "ALL_AROUND"

    @classmethod
    def parse(cls, value: Any) -> Optional["Role"]:
        """Return the matching role, or None for unknown/future role names."""
        if isinstance(value, Role):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            return None


class PermissionFlag(Enum):
    """Capability names, valued with the backend's wire keys."""
    # Stats permissions
    EDIT_POINTS = "canEditPoints"
    EDIT_REBOUNDS = "canEditRebounds"
    EDIT_ASSISTS = "canEditAssists"
    EDIT_STEALS = "canEditSteals"
    EDIT_BLOCKS = "canEditBlocks"
    EDIT_TURNOVERS = "canEditTurnovers"
    EDIT_SHOTS = "canEditShots"
    EDIT_FREE_THROWS = "canEditFreeThrows"
    EDIT_PERSONAL_FOULS = "canEditPersonalFouls"
    # Game control permissions
    CONTROL_TIME = "canControlTime"
    MAKE_SUBSTITUTIONS = "canMakeSubstitutions"
    END_QUARTER = "canEndQuarter"
    SET_STARTERS = "canSetStarters"
    # Admin permissions
    MANAGE_PERMISSIONS = "canManagePermissions"
    VIEW_ALL_STATS = "canViewAllStats"

    @property
    def attribute(self) -> str:
        """Name of the matching :class:`PermissionSet` field."""
        return self.name.lower()


STAT_EDIT_FLAGS = (
    PermissionFlag.EDIT_POINTS,
    PermissionFlag.EDIT_REBOUNDS,
    PermissionFlag.EDIT_ASSISTS,
    PermissionFlag.EDIT_STEALS,
    PermissionFlag.EDIT_BLOCKS,
    PermissionFlag.EDIT_TURNOVERS,
    PermissionFlag.EDIT_SHOTS,
    PermissionFlag.EDIT_FREE_THROWS,
    PermissionFlag.EDIT_PERSONAL_FOULS,
)


@dataclass(frozen=True)
class PermissionSet:
    """
    Fixed record of the 15 in-game capabilities.

    Every flag is always a plain boolean and defaults to False; there is no
    partial or unknown state.
    """
    edit_points: bool = False
    edit_rebounds: bool = False
    edit_assists: bool = False
    edit_steals: bool = False
    edit_blocks: bool = False
    edit_turnovers: bool = False
    edit_shots: bool = False
    edit_free_throws: bool = False
    edit_personal_fouls: bool = False
    control_time: bool = False
    make_substitutions: bool = False
    end_quarter: bool = False
    set_starters: bool = False
    manage_permissions: bool = False
    view_all_stats: bool = False

    def __getitem__(self, flag: PermissionFlag) -> bool:
        return getattr(self, flag.attribute)

    @classmethod
    def all_granted(cls) -> "PermissionSet":
        return cls(**{f.name: True for f in fields(cls)})

    @classmethod
    def none_granted(cls) -> "PermissionSet":
        return cls()

    @classmethod
    def of(cls, *flags: PermissionFlag) -> "PermissionSet":
        """Build a set where exactly ``flags`` are granted."""
        return cls(**{flag.attribute: True for flag in flags})

    def granted(self) -> List[PermissionFlag]:
        return [flag for flag in PermissionFlag if self[flag]]

    def merged(self, partial: Mapping[PermissionFlag, bool]) -> "PermissionSet":
        """Return a copy with the flags in ``partial`` replaced."""
        return replace(self, **{flag.attribute: bool(value) for flag, value in partial.items()})

    def to_dict(self) -> Dict[str, bool]:
        """Convert to the backend's camelCase dictionary."""
        return {flag.value: self[flag] for flag in PermissionFlag}

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "PermissionSet":
        """
        Create from a backend dictionary.

        Unknown keys are ignored and missing keys resolve to False.
        """
        if not data:
            return cls()
        values = {}
        for flag in PermissionFlag:
            raw = data.get(flag.value, data.get(flag.attribute, False))
            values[flag.attribute] = raw is True
        return cls(**values)


def can_edit_any_stats(permissions: Optional[PermissionSet]) -> bool:
    """Check whether any stat-edit capability is granted."""
    if permissions is None:
        return False
    return any(permissions[flag] for flag in STAT_EDIT_FLAGS)


def partial_to_wire(partial: Mapping[PermissionFlag, bool]) -> Dict[str, bool]:
    """Encode a partial permission update with the backend's key names."""
    return {flag.value: bool(value) for flag, value in partial.items()}


@dataclass
class User:
    """Authenticated user as returned by the backend."""
    id: int
    email: str
    name: str
    role: Optional[Role] = Role.USER
    last_name: Optional[str] = None
    is_active: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "User":
        return cls(
            id=int(data["id"]),
            email=data.get("email", ""),
            name=data.get("nombre", data.get("name", "")),
            role=Role.parse(data.get("rol", data.get("role", "USER"))),
            last_name=data.get("apellido", data.get("last_name")),
            is_active=bool(data.get("isActive", True)),
        )


@dataclass
class UserGamePermissions:
    """Server-issued permissions of one user in one game."""
    user_id: int
    game_id: int
    permissions: PermissionSet = field(default_factory=PermissionSet)
    is_game_creator: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserGamePermissions":
        return cls(
            user_id=int(data.get("userId", 0)),
            game_id=int(data.get("gameId", 0)),
            permissions=PermissionSet.from_dict(data.get("permissions")),
            is_game_creator=bool(data.get("isGameCreator", False)),
        )


@dataclass
class JoinGameResult:
    """Response of joining a game."""
    permissions: PermissionSet
    is_game_creator: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "JoinGameResult":
        return cls(
            permissions=PermissionSet.from_dict(data.get("permissions")),
            is_game_creator=bool(data.get("isGameCreator", False)),
        )


@dataclass
class GameUser:
    """A user connected to a game, as listed for the permission screen."""
    user: User
    permissions: PermissionSet
    is_game_creator: bool = False
    joined_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GameUser":
        joined_at = None
        if data.get("joinedAt"):
            try:
                joined_at = datetime.fromisoformat(str(data["joinedAt"]).replace("Z", "+00:00"))
            except ValueError:
                joined_at = None
        return cls(
            user=User.from_dict(data["user"]),
            permissions=PermissionSet.from_dict(data.get("permissions")),
            is_game_creator=bool(data.get("isGameCreator", False)),
            joined_at=joined_at,
        )
