"""
Billing app services layer.

Services hold the membership billing rules: payment-triggered transitions,
the time-based status sweep and manager actions. Scheduling arithmetic
lives in ``apps.billing.scheduling`` and has no database access.
"""

from apps.billing.exceptions import (
    BillingServiceError,
    AnchorError,
    MissingAnchorFieldError,
    InvalidAnchorError,
    StaleWriteError,
    MembershipNotFoundError,
    MembershipCanceledError,
    InvalidDueDateOverrideError,
    InsufficientPermissionsError,
)

from .payment_confirmation import (
    confirm_payment,
    validate_due_date_override,
)

from .status_sweep import (
    SweepResult,
    sweep_memberships,
)

from .membership_management import (
    get_membership_for_manager,
    update_membership_plan,
    record_manual_payment,
    cancel_membership,
    get_team_memberships,
    get_due_soon_memberships,
)


__all__ = [
    # Exceptions
    'BillingServiceError',
    'AnchorError',
    'MissingAnchorFieldError',
    'InvalidAnchorError',
    'StaleWriteError',
    'MembershipNotFoundError',
    'MembershipCanceledError',
    'InvalidDueDateOverrideError',
    'InsufficientPermissionsError',

    # Payment confirmation
    'confirm_payment',
    'validate_due_date_override',

    # Status sweep
    'SweepResult',
    'sweep_memberships',

    # Membership management
    'get_membership_for_manager',
    'update_membership_plan',
    'record_manual_payment',
    'cancel_membership',
    'get_team_memberships',
    'get_due_soon_memberships',
]
