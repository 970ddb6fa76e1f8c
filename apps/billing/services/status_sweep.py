"""
Time-based membership status sweep.

Promotes ``active -> due`` once ``next_due_at`` has passed and
``due -> overdue`` once the grace period has also passed. The overdue set is
snapshotted before anything is promoted, so a row never goes
``active -> due -> overdue`` within one pass.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from django.conf import settings
from django.utils import timezone

from apps.billing.models import Membership, MembershipStatus


logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    """Outcome of one sweep pass."""

    evaluated_at: datetime
    grace_period_days: int
    due_ids: List[UUID] = field(default_factory=list)
    overdue_ids: List[UUID] = field(default_factory=list)
    dry_run: bool = False

    @property
    def promoted_to_due(self) -> int:
        return len(self.due_ids)

    @property
    def promoted_to_overdue(self) -> int:
        return len(self.overdue_ids)


def _promote(
    *,
    membership_id: UUID,
    seen_next_due_at: datetime,
    from_status: str,
    to_status: str,
    cutoff: datetime,
    attempts: int
) -> bool:
    """
    Conditionally move one membership from ``from_status`` to ``to_status``.

    The update only lands if status and ``next_due_at`` still match what was
    read. On a miss the row is re-read and the condition re-evaluated; a
    payment that advanced the due date or changed the status wins.
    """
    for _ in range(attempts):
        updated = (
            Membership.objects
            .filter(id=membership_id, status=from_status, next_due_at=seen_next_due_at)
            .update(status=to_status, updated_at=timezone.now())
        )
        if updated:
            return True

        current = (
            Membership.objects
            .filter(id=membership_id)
            .values_list('status', 'next_due_at')
            .first()
        )
        if current is None:
            return False

        status, seen_next_due_at = current
        if status != from_status or seen_next_due_at is None or seen_next_due_at > cutoff:
            logger.debug("Membership %s no longer eligible for %s", membership_id, to_status)
            return False

    logger.warning(
        "Gave up promoting membership %s to %s after %d attempts",
        membership_id, to_status, attempts
    )
    return False


def sweep_memberships(
    *,
    now: Optional[datetime] = None,
    grace_period_days: Optional[int] = None,
    dry_run: bool = False
) -> SweepResult:
    """
    Advance membership statuses based on elapsed time.

    Canceled and pending memberships are never touched. Running the sweep
    twice for the same ``now`` leaves the same statuses as running it once.

    Args:
        now: Evaluation instant, defaults to the current time.
        grace_period_days: Days between due and overdue, defaults to
            ``settings.BILLING_GRACE_PERIOD_DAYS``.
        dry_run: Report the candidates without writing.

    Returns:
        SweepResult listing the promoted membership ids.
    """
    now = now or timezone.now()
    if grace_period_days is None:
        grace_period_days = settings.BILLING_GRACE_PERIOD_DAYS
    attempts = settings.BILLING_STALE_WRITE_RETRIES
    overdue_cutoff = now - timedelta(days=grace_period_days)

    # Snapshot both candidate sets before any write
    overdue_candidates = list(
        Membership.objects
        .filter(status=MembershipStatus.DUE, next_due_at__lte=overdue_cutoff)
        .values_list('id', 'next_due_at')
    )
    due_candidates = list(
        Membership.objects
        .filter(status=MembershipStatus.ACTIVE, next_due_at__lte=now)
        .values_list('id', 'next_due_at')
    )

    result = SweepResult(evaluated_at=now, grace_period_days=grace_period_days, dry_run=dry_run)

    if dry_run:
        result.due_ids = [membership_id for membership_id, _ in due_candidates]
        result.overdue_ids = [membership_id for membership_id, _ in overdue_candidates]
        return result

    for membership_id, next_due_at in due_candidates:
        if _promote(
            membership_id=membership_id,
            seen_next_due_at=next_due_at,
            from_status=MembershipStatus.ACTIVE,
            to_status=MembershipStatus.DUE,
            cutoff=now,
            attempts=attempts,
        ):
            result.due_ids.append(membership_id)

    for membership_id, next_due_at in overdue_candidates:
        if _promote(
            membership_id=membership_id,
            seen_next_due_at=next_due_at,
            from_status=MembershipStatus.DUE,
            to_status=MembershipStatus.OVERDUE,
            cutoff=overdue_cutoff,
            attempts=attempts,
        ):
            result.overdue_ids.append(membership_id)

    logger.info(
        "Sweep at %s: %d active -> due, %d due -> overdue (grace %d days)",
        now.isoformat(), result.promoted_to_due, result.promoted_to_overdue, grace_period_days
    )
    return result
