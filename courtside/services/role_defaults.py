"""
Role default permissions for the Courtside live-scoring application.

Baseline capability sets used while no server-issued permissions are loaded
for the current game.
"""
from types import MappingProxyType
from typing import Any, Mapping

from ..models import PermissionFlag as F, PermissionSet, Role, STAT_EDIT_FLAGS


ROLE_DEFAULTS: Mapping[Role, PermissionSet] = MappingProxyType({
    Role.ADMIN: PermissionSet.all_granted(),
    # Points, field goals, threes and free throws
    Role.SCORER: PermissionSet.of(
        F.EDIT_POINTS, F.EDIT_SHOTS, F.EDIT_FREE_THROWS, F.VIEW_ALL_STATS,
    ),
    Role.REBOUNDER_ASSISTS: PermissionSet.of(
        F.EDIT_REBOUNDS, F.EDIT_ASSISTS, F.EDIT_TURNOVERS, F.VIEW_ALL_STATS,
    ),
    Role.STEALS_BLOCKS: PermissionSet.of(
        F.EDIT_STEALS, F.EDIT_BLOCKS, F.VIEW_ALL_STATS,
    ),
    # Every stat, but no clock control
    Role.ALL_AROUND: PermissionSet.of(*STAT_EDIT_FLAGS, F.VIEW_ALL_STATS),
    Role.USER: PermissionSet.none_granted(),
})

# Import-time exhaustiveness check: a new Role must get an explicit entry.
_missing = set(Role) - set(ROLE_DEFAULTS)
if _missing:
    raise RuntimeError(f"No default permissions for roles: {sorted(r.value for r in _missing)}")


def defaults_for(role: Any) -> PermissionSet:
    """
    Return the baseline permission set of a role.

    Args:
        role: A :class:`Role` or a role name; unknown names are accepted

    Returns:
        The role's defaults, or an all-false set for unrecognized roles
    """
    parsed = Role.parse(role) if role is not None else None
    if parsed is None:
        return PermissionSet.none_granted()
    return ROLE_DEFAULTS[parsed]
