"""
Membership management service.

Manager-driven operations on memberships: plan changes, manual payments,
cancellation and due-soon lookups for reminder logic.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Union
from uuid import UUID

from django.conf import settings
from django.db.models import QuerySet
from django.utils import timezone

from apps.accounts.models import User
from apps.billing.models import Membership, MembershipStatus, PaymentMethod
from apps.teams.models import Team

from apps.billing.exceptions import (
    InsufficientPermissionsError,
    MembershipCanceledError,
    MembershipNotFoundError,
    StaleWriteError,
)

from .payment_confirmation import confirm_payment


logger = logging.getLogger(__name__)

# Distinguishes "not provided" from None, which clears a plan field
UNSET = object()


def get_membership_for_manager(*, membership_id: UUID, user: User) -> Membership:
    """
    Get a membership the user manages.

    Raises:
        MembershipNotFoundError: If membership doesn't exist
        InsufficientPermissionsError: If user doesn't manage its team
    """
    try:
        membership = (
            Membership.objects
            .select_related('team', 'player')
            .get(id=membership_id)
        )
    except Membership.DoesNotExist:
        raise MembershipNotFoundError(f"Membership with ID {membership_id} not found")

    if not membership.team.is_manager(user):
        raise InsufficientPermissionsError("Only the team manager can manage memberships")

    return membership


def update_membership_plan(
    *,
    membership_id: UUID,
    updated_by: User,
    plan_interval=UNSET,
    billing_type=UNSET,
    custom_amount=UNSET
) -> Membership:
    """
    Change how a single membership is billed.

    Only the arguments that are passed are written. A ``None``
    ``plan_interval`` falls back to the team interval, and a ``None``
    ``custom_amount`` falls back to the team amount. The current
    ``next_due_at`` is kept; the new plan applies from the next payment.

    Raises:
        MembershipNotFoundError: If membership doesn't exist
        InsufficientPermissionsError: If user doesn't manage the team
        MembershipCanceledError: If the membership is canceled
    """
    membership = get_membership_for_manager(membership_id=membership_id, user=updated_by)
    if membership.is_canceled:
        raise MembershipCanceledError("Cannot change the plan of a canceled membership")

    changes = {}
    if plan_interval is not UNSET:
        changes['plan_interval'] = plan_interval or None
    if billing_type is not UNSET:
        changes['billing_type'] = billing_type
    if custom_amount is not UNSET:
        changes['custom_amount'] = custom_amount

    if not changes:
        return membership

    for field, value in changes.items():
        setattr(membership, field, value)
    membership.save(update_fields=[*changes, 'updated_at'])

    logger.info(
        "Membership %s plan updated by %s: %s",
        membership.id, updated_by.id, ', '.join(sorted(changes))
    )
    return membership


def record_manual_payment(
    *,
    membership_id: UUID,
    recorded_by: User,
    amount: Optional[int] = None,
    currency: Optional[str] = None,
    method: str = PaymentMethod.MANUAL,
    note: str = '',
    due_date_override: Optional[Union[date, datetime, str]] = None,
    now: Optional[datetime] = None
) -> Membership:
    """
    Record a cash or bank transfer payment taken by the manager.

    Args:
        membership_id: UUID of the membership
        recorded_by: Manager recording the payment
        amount: Amount in minor units, defaults to the team plan amount
        currency: Defaults to the team currency
        method: ``manual`` or ``bank_transfer``
        note: Optional note
        due_date_override: Optional manager-set next due date
        now: Payment time, defaults to now

    Returns:
        Updated Membership

    Raises:
        MembershipNotFoundError, InsufficientPermissionsError,
        plus everything confirm_payment raises.
    """
    membership = get_membership_for_manager(membership_id=membership_id, user=recorded_by)
    now = now or timezone.now()

    return confirm_payment(
        membership_id=membership.id,
        paid_at=now,
        amount=amount,
        currency=currency,
        method=method,
        note=note,
        due_date_override=due_date_override,
        now=now,
    )


def cancel_membership(
    *,
    membership_id: UUID,
    canceled_by: User,
    now: Optional[datetime] = None
) -> Membership:
    """
    Cancel a membership. Terminal; the row is kept for history.

    Raises:
        MembershipNotFoundError: If membership doesn't exist
        InsufficientPermissionsError: If user doesn't manage the team
        MembershipCanceledError: If already canceled
        StaleWriteError: If the row kept changing underneath
    """
    now = now or timezone.now()
    attempts = settings.BILLING_STALE_WRITE_RETRIES

    for _ in range(attempts):
        membership = get_membership_for_manager(membership_id=membership_id, user=canceled_by)
        if membership.is_canceled:
            raise MembershipCanceledError("Membership is already canceled")

        updated = (
            Membership.objects
            .filter(id=membership.id, status=membership.status)
            .update(
                status=MembershipStatus.CANCELED,
                canceled_at=now,
                next_due_at=None,
                updated_at=now,
            )
        )
        if updated:
            logger.info("Membership %s canceled by %s", membership.id, canceled_by.id)
            membership.refresh_from_db()
            return membership

    raise StaleWriteError(f"Membership {membership_id} changed while canceling")


def get_team_memberships(*, team: Team, status: Optional[str] = None) -> QuerySet[Membership]:
    """List a team's memberships, canceled ones included unless filtered."""
    queryset = (
        Membership.objects
        .filter(team=team)
        .select_related('player')
        .order_by('player__name')
    )
    if status:
        queryset = queryset.filter(status=status)
    return queryset


def get_due_soon_memberships(
    *,
    team: Team,
    now: Optional[datetime] = None,
    days: Optional[int] = None
) -> QuerySet[Membership]:
    """Active memberships falling due within the next ``days`` days."""
    now = now or timezone.now()
    if days is None:
        days = settings.BILLING_DUE_SOON_DAYS

    return (
        Membership.objects
        .filter(
            team=team,
            status=MembershipStatus.ACTIVE,
            next_due_at__isnull=False,
            next_due_at__gte=now,
            next_due_at__lte=now + timedelta(days=days),
        )
        .select_related('player')
        .order_by('next_due_at')
    )
