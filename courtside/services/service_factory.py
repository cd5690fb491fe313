"""
Service Factory for dependency injection.

This module provides a factory for creating properly configured service
instances with their collaborators injected, so that the web layer and tests
depend on abstractions rather than on concrete transports.
"""
from typing import Optional

from ..models import User
from ..utils import Settings
from .game_session_service import GameSessionController
from .http_repositories import (
    HttpAuthClient, HttpGameRepository, HttpPermissionRepository, RestClient
)
from .permission_service import AuthSession, PermissionAdminService
from .repositories import (
    GameRepository, LocalRealtimeNotifier, PermissionRepository, RealtimeNotifier
)
from .timer_service import Dispatcher, TickScheduler


class ServiceFactory:
    """
    Factory for creating service instances with proper dependency injection.

    Repositories default to the REST implementations configured from
    :class:`Settings`; every collaborator can be replaced.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        game_repository: Optional[GameRepository] = None,
        permission_repository: Optional[PermissionRepository] = None,
        notifier: Optional[RealtimeNotifier] = None,
        scheduler: Optional[TickScheduler] = None,
        dispatcher_factory=None,
    ):
        """
        Initialize factory.

        Args:
            settings: Connection settings (defaults to environment)
            game_repository: Optional custom game repository
            permission_repository: Optional custom permission repository
            notifier: Optional realtime notifier shared by all sessions
            scheduler: Optional tick scheduler for game clocks
            dispatcher_factory: Optional callable returning a fresh Dispatcher
        """
        self.settings = settings or Settings.from_env()
        self._client: Optional[RestClient] = None
        self._game_repository = game_repository
        self._permission_repository = permission_repository
        self._notifier = notifier
        self._scheduler = scheduler
        self._dispatcher_factory = dispatcher_factory

    def create_auth_session(self, user: Optional[User] = None) -> AuthSession:
        """
        Create the process-wide AuthSession.

        Without an explicit user the configured token's profile is fetched.
        """
        if user is None and self.settings.api_token:
            user = HttpAuthClient(self._get_client()).verify_token()
        return AuthSession(self.get_permission_repository(), user)

    def create_game_controller(self, game_id: int, auth_session: AuthSession) -> GameSessionController:
        """
        Create an (unloaded) controller for one game view.

        Args:
            game_id: Game to open
            auth_session: The process-wide session

        Returns:
            Configured GameSessionController instance
        """
        dispatcher: Optional[Dispatcher] = self._dispatcher_factory() if self._dispatcher_factory else None
        return GameSessionController(
            game_id,
            self.get_game_repository(),
            auth_session,
            notifier=self.get_notifier(),
            scheduler=self._scheduler,
            dispatcher=dispatcher,
        )

    def create_permission_admin(self, auth_session: AuthSession) -> PermissionAdminService:
        return PermissionAdminService(auth_session, self.get_permission_repository())

    def get_game_repository(self) -> GameRepository:
        """Get singleton game repository."""
        if self._game_repository is None:
            self._game_repository = HttpGameRepository(self._get_client())
        return self._game_repository

    def get_permission_repository(self) -> PermissionRepository:
        """Get singleton permission repository."""
        if self._permission_repository is None:
            self._permission_repository = HttpPermissionRepository(self._get_client())
        return self._permission_repository

    def get_notifier(self) -> RealtimeNotifier:
        """Get singleton realtime notifier."""
        if self._notifier is None:
            self._notifier = LocalRealtimeNotifier()
        return self._notifier

    def configure_notifier(self, notifier: RealtimeNotifier) -> None:
        self._notifier = notifier

    def _get_client(self) -> RestClient:
        if self._client is None:
            self._client = RestClient.from_settings(self.settings)
        return self._client
