"""
Domain-specific exceptions for billing app.

These exceptions represent scheduling and membership state violations and
should be caught in views and converted to appropriate HTTP responses.
"""
from rest_framework.exceptions import APIException


class BillingServiceError(Exception):
    """Base exception for all billing service errors."""
    pass


class AnchorError(BillingServiceError):
    """Base for billing anchor configuration errors."""

    def __init__(self, message, field=None):
        super().__init__(message)
        self.field = field


class MissingAnchorFieldError(AnchorError):
    """Raised when a scheduling field required by the interval is absent."""
    pass


class InvalidAnchorError(AnchorError):
    """Raised when a billing anchor field is outside its valid domain."""
    pass


class StaleWriteError(BillingServiceError):
    """Raised when a conditional membership update lost a race."""
    pass


class MembershipNotFoundError(BillingServiceError):
    """Raised when a membership does not exist."""
    pass


class MembershipCanceledError(BillingServiceError):
    """Raised when acting on a canceled membership."""
    pass


class InvalidDueDateOverrideError(BillingServiceError):
    """Raised when a manager-set due date is not a future calendar date."""
    pass


class InsufficientPermissionsError(BillingServiceError):
    """Raised when a user lacks required permissions for an action."""
    pass


# =============================================================================
# API exceptions
# =============================================================================

class TeamScheduleMisconfigured(APIException):
    """Team billing anchor cannot produce a due date."""
    status_code = 409
    default_detail = 'Team billing schedule is misconfigured.'
    default_code = 'team_schedule_misconfigured'


class MembershipConflict(APIException):
    """Membership changed concurrently or is in a state that forbids the action."""
    status_code = 409
    default_detail = 'Membership changed while processing the request. Try again.'
    default_code = 'membership_conflict'
