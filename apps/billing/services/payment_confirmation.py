"""
Payment-triggered membership transitions.

A confirmed payment moves a pending, active, due or overdue membership to
active and pins a fresh next due date. The write is a compare-and-swap on
the state that was read, so a concurrent sweep or second payment forces a
re-read instead of being silently overwritten.
"""

import logging
from datetime import date, datetime, timezone as dt_timezone
from typing import Optional, Union
from uuid import UUID

from django.conf import settings
from django.db import transaction, IntegrityError
from django.utils import timezone
from django.utils.dateparse import parse_date

from apps.billing.exceptions import (
    InvalidDueDateOverrideError,
    MembershipCanceledError,
    MembershipNotFoundError,
    StaleWriteError,
)
from apps.billing.models import Membership, MembershipStatus, Payment, PaymentMethod
from apps.billing.scheduling import compute_next_due_date, start_of_day_utc, to_utc


logger = logging.getLogger(__name__)


def validate_due_date_override(
    value: Union[date, datetime, str],
    *,
    now: datetime
) -> datetime:
    """
    Turn a manager-set due date into a UTC midnight strictly after ``now``.

    Args:
        value: Calendar date, datetime or ISO ``YYYY-MM-DD`` string.
        now: Reference instant.

    Returns:
        Aware UTC datetime at midnight of the override date.

    Raises:
        InvalidDueDateOverrideError: Malformed, not a real calendar date,
            or not in the future.
    """
    if isinstance(value, str):
        try:
            parsed = parse_date(value.strip())
        except ValueError:
            raise InvalidDueDateOverrideError(f"'{value}' is not a real calendar date")
        if parsed is None:
            raise InvalidDueDateOverrideError(f"'{value}' is not a date in YYYY-MM-DD format")
        value = parsed

    if isinstance(value, datetime):
        due_at = start_of_day_utc(value)
    elif isinstance(value, date):
        due_at = datetime(value.year, value.month, value.day, tzinfo=dt_timezone.utc)
    else:
        raise InvalidDueDateOverrideError("Due date override must be a date")

    if due_at <= to_utc(now):
        raise InvalidDueDateOverrideError(
            f"Due date override {due_at.date().isoformat()} must be in the future"
        )
    return due_at


def _apply_payment(
    *,
    membership_id: UUID,
    paid_at: datetime,
    amount: Optional[int],
    currency: Optional[str],
    method: str,
    provider_reference: Optional[str],
    note: str,
    override_at: Optional[datetime],
    interval_override: Optional[str],
    billing_type: Optional[str],
) -> Membership:
    membership = _get_membership(membership_id)

    if membership.is_canceled:
        raise MembershipCanceledError("Cannot take a payment on a canceled membership")

    team = membership.team

    # Precedence: manager override, then payment metadata, then stored plan
    if override_at is not None:
        next_due_at = override_at
    else:
        interval = interval_override or membership.effective_interval()
        next_due_at = compute_next_due_date(paid_at, interval, team.billing_anchor)

    changes = {
        'status': MembershipStatus.ACTIVE,
        'next_due_at': next_due_at,
        'last_paid_at': paid_at,
        'updated_at': timezone.now(),
    }
    if billing_type:
        changes['billing_type'] = billing_type

    updated = (
        Membership.objects
        .filter(
            id=membership.id,
            status=membership.status,
            next_due_at=membership.next_due_at,
        )
        .update(**changes)
    )
    if not updated:
        raise StaleWriteError(f"Membership {membership.id} changed while confirming payment")

    if amount is None:
        amount = membership.custom_amount if membership.custom_amount is not None else team.amount

    Payment.objects.create(
        membership=membership,
        team=team,
        amount=amount,
        currency=currency or team.currency,
        method=method,
        provider_reference=provider_reference or None,
        note=note,
        paid_at=paid_at,
    )

    logger.info(
        "Membership %s %s -> active, next due %s",
        membership.id, membership.status, next_due_at.date().isoformat()
    )

    membership.refresh_from_db()
    return membership


def confirm_payment(
    *,
    membership_id: UUID,
    paid_at: datetime,
    amount: Optional[int] = None,
    currency: Optional[str] = None,
    method: str = PaymentMethod.CARD,
    provider_reference: Optional[str] = None,
    note: str = '',
    due_date_override: Optional[Union[date, datetime, str]] = None,
    interval_override: Optional[str] = None,
    billing_type: Optional[str] = None,
    now: Optional[datetime] = None,
    max_attempts: Optional[int] = None
) -> Membership:
    """
    Apply a confirmed payment to a membership.

    Sets ``status=active``, ``last_paid_at=paid_at`` and a new
    ``next_due_at``, then records a Payment row, all in one transaction.

    The next due date is taken from the first of:
        1. ``due_date_override`` (validated as a future calendar date)
        2. ``interval_override`` from payment metadata, scheduled on the
           team's anchor
        3. the membership's stored plan interval, or the team's interval

    Args:
        membership_id: UUID of the membership being paid.
        paid_at: When the payment succeeded.
        amount: Amount in minor units. Defaults to the membership's custom
            amount, then the team plan amount.
        currency: Defaults to the team currency.
        method: PaymentMethod value.
        provider_reference: Gateway id. A reference seen before is
            treated as already processed.
        note: Optional note stored on the payment.
        due_date_override: Manager-set next due date.
        interval_override: Interval carried in payment metadata.
        billing_type: BillingType the payment was taken under. Stored on
            the membership when given.
        now: Reference instant for override validation, defaults to now.
            Naive values for ``now`` and ``paid_at`` are treated as UTC.
        max_attempts: Compare-and-swap attempts before giving up.

    Returns:
        The updated Membership.

    Raises:
        MembershipNotFoundError: If the membership doesn't exist.
        MembershipCanceledError: If the membership is canceled.
        InvalidDueDateOverrideError: If the override is malformed or not
            in the future. Nothing is written.
        MissingAnchorFieldError, InvalidAnchorError: If the team's anchor
            cannot produce a due date. Nothing is written.
        StaleWriteError: If every attempt lost a race.
    """
    now = to_utc(now or timezone.now())
    paid_at = to_utc(paid_at)
    attempts = max_attempts or settings.BILLING_STALE_WRITE_RETRIES

    if provider_reference and Payment.objects.filter(provider_reference=provider_reference).exists():
        logger.info("Payment %s already processed, skipping", provider_reference)
        return _get_membership(membership_id)

    # The override must also land after the payment itself
    override_at = None
    if due_date_override is not None:
        override_at = validate_due_date_override(due_date_override, now=max(now, paid_at))

    for attempt in range(1, attempts + 1):
        try:
            with transaction.atomic():
                return _apply_payment(
                    membership_id=membership_id,
                    paid_at=paid_at,
                    amount=amount,
                    currency=currency,
                    method=method,
                    provider_reference=provider_reference,
                    note=note,
                    override_at=override_at,
                    interval_override=interval_override,
                    billing_type=billing_type,
                )
        except StaleWriteError:
            logger.warning(
                "Stale write confirming payment for membership %s (attempt %d/%d)",
                membership_id, attempt, attempts
            )
            if attempt == attempts:
                raise
        except IntegrityError:
            # Concurrent confirmation with the same provider reference won
            if provider_reference and Payment.objects.filter(
                provider_reference=provider_reference
            ).exists():
                logger.info("Payment %s processed concurrently, skipping", provider_reference)
                return _get_membership(membership_id)
            raise

    # Should never reach here
    raise StaleWriteError(f"Membership {membership_id} could not be updated")


def _get_membership(membership_id: UUID) -> Membership:
    try:
        return Membership.objects.select_related('team', 'player').get(id=membership_id)
    except Membership.DoesNotExist:
        raise MembershipNotFoundError(f"Membership with ID {membership_id} not found")
