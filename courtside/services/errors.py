"""
Error taxonomy for the Courtside live-scoring application.

Validation errors are raised before anything reaches the backend. The
remaining errors describe how a backend request failed.
"""
from typing import Optional

from ..models import PermissionFlag


class CourtsideError(Exception):
    """Base class for all application errors."""
    pass


class ValidationError(CourtsideError):
    """A lineup or substitution is not legal against the local state."""
    pass


class InvalidLineupSize(ValidationError):
    pass


class CrossTeamPlayer(ValidationError):
    pass


class PlayerNotOnCourt(ValidationError):
    pass


class PlayerAlreadyOnCourt(ValidationError):
    pass


class TeamMismatch(ValidationError):
    pass


class GameStateError(ValidationError):
    """The action is not allowed in the game's current lifecycle or clock state."""
    pass


class PermissionDenied(CourtsideError):
    """
    The current user may not perform the action.

    Raised locally with the missing flag, or by a repository with the
    backend's authorization message verbatim.
    """

    def __init__(self, message: str, flag: Optional[PermissionFlag] = None):
        super().__init__(message)
        self.flag = flag

    @classmethod
    def missing(cls, flag: PermissionFlag) -> "PermissionDenied":
        return cls(f"Missing permission: {flag.value}", flag=flag)


class NetworkFailure(CourtsideError):
    """The backend could not be reached or failed to answer."""
    pass


class RequestRejected(CourtsideError):
    """The backend refused the request for a reason other than authorization."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
