"""
Domain-specific exceptions for teams app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class TeamsServiceError(Exception):
    """Base exception for all teams service errors."""
    pass


class TeamNotFoundError(TeamsServiceError):
    """Raised when a team does not exist or is inaccessible."""
    pass


class InvalidJoinTokenError(TeamsServiceError):
    """Raised when a join token doesn't match any team."""
    pass


class MembershipClosedError(TeamsServiceError):
    """Raised when a player with a canceled membership tries to rejoin."""
    pass


class InvalidScheduleError(TeamsServiceError):
    """Raised when a billing interval and anchor don't fit together."""

    def __init__(self, message, field=None):
        super().__init__(message)
        self.field = field


class InsufficientPermissionsError(TeamsServiceError):
    """Raised when a user lacks required permissions for an action."""
    pass
