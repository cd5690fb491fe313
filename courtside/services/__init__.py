"""
Services package for the Courtside live-scoring application.

This package contains the permission engine, the live game trackers and the
backend collaborators they use, plus a factory for dependency injection.
"""
from .errors import (
    CourtsideError, ValidationError, InvalidLineupSize, CrossTeamPlayer,
    PlayerNotOnCourt, PlayerAlreadyOnCourt, TeamMismatch, GameStateError,
    PermissionDenied, NetworkFailure, RequestRejected
)
from .role_defaults import defaults_for, ROLE_DEFAULTS
from .permission_service import (
    AuthSession, PermissionContext, PermissionResolver, PermissionAdminService,
    has_permission, resolve_permissions
)
from .lineup_service import LineupManager, ValidationResult
from .timer_service import (
    GameClock, TickScheduler, ThreadTickScheduler, ManualTickScheduler,
    Dispatcher, InlineDispatcher, ThreadPoolDispatcher
)
from .plus_minus_service import PlusMinusAttributor
from .repositories import (
    GameRepository, PermissionRepository, RealtimeNotifier, LocalRealtimeNotifier
)
from .http_repositories import (
    RestClient, HttpGameRepository, HttpPermissionRepository, HttpAuthClient
)
from .game_session_service import GameSessionController
from .service_factory import ServiceFactory

__all__ = [
    "CourtsideError", "ValidationError", "InvalidLineupSize", "CrossTeamPlayer",
    "PlayerNotOnCourt", "PlayerAlreadyOnCourt", "TeamMismatch", "GameStateError",
    "PermissionDenied", "NetworkFailure", "RequestRejected",
    "defaults_for", "ROLE_DEFAULTS",
    "AuthSession", "PermissionContext", "PermissionResolver", "PermissionAdminService",
    "has_permission", "resolve_permissions",
    "LineupManager", "ValidationResult",
    "GameClock", "TickScheduler", "ThreadTickScheduler", "ManualTickScheduler",
    "Dispatcher", "InlineDispatcher", "ThreadPoolDispatcher",
    "PlusMinusAttributor",
    "GameRepository", "PermissionRepository", "RealtimeNotifier", "LocalRealtimeNotifier",
    "RestClient", "HttpGameRepository", "HttpPermissionRepository", "HttpAuthClient",
    "GameSessionController", "ServiceFactory"
]
