"""
Team management service.

Handles team creation, billing schedule changes and join token rotation.
"""

import logging
from typing import Optional
from uuid import UUID

from django.db import transaction, IntegrityError

from apps.accounts.models import User
from apps.billing.exceptions import AnchorError
from apps.billing.scheduling import anchor_for_interval, validate_anchor
from apps.teams.models import Team, generate_join_token

from .exceptions import (
    TeamNotFoundError,
    InvalidScheduleError,
    InsufficientPermissionsError,
)


logger = logging.getLogger(__name__)


def build_schedule(
    *,
    billing_interval: str,
    due_weekday: Optional[int] = None,
    due_day_of_month: Optional[int] = None,
    due_month_in_quarter: Optional[int] = None
) -> dict:
    """
    Validate a billing schedule and return the team fields to store.

    Fields the interval doesn't use are returned as None.

    Raises:
        InvalidScheduleError: If a required field is missing or out of range
    """
    anchor = anchor_for_interval(
        billing_interval,
        weekday=due_weekday,
        day_of_month=due_day_of_month,
        month_in_quarter=due_month_in_quarter,
    )
    try:
        validate_anchor(billing_interval, anchor)
    except AnchorError as e:
        raise InvalidScheduleError(str(e), field=e.field)

    return {
        'billing_interval': billing_interval,
        'due_weekday': anchor.weekday,
        'due_day_of_month': anchor.day_of_month,
        'due_month_in_quarter': anchor.month_in_quarter,
    }


def create_team(
    *,
    name: str,
    owner: User,
    amount: int,
    currency: str,
    billing_interval: str,
    due_weekday: Optional[int] = None,
    due_day_of_month: Optional[int] = None,
    due_month_in_quarter: Optional[int] = None,
    expected_players: int = 0,
    bank_instructions: str = '',
    max_retries: int = 5
) -> Team:
    """
    Create a new team managed by ``owner``.

    Args:
        name: Team name
        owner: Manager of the team
        amount: Plan amount in minor units
        currency: Currency code
        billing_interval: week, month or quarter
        due_weekday: 0..6 (Sunday=0) for weekly plans
        due_day_of_month: 1..31 for monthly and quarterly plans
        due_month_in_quarter: 1..3 for quarterly plans
        expected_players: Roster size hint
        bank_instructions: Shown to players paying by bank transfer
        max_retries: Maximum attempts to generate a unique join token

    Returns:
        Created Team instance

    Raises:
        InvalidScheduleError: If the billing schedule is invalid
        RuntimeError: If cannot generate unique join token after retries
    """
    schedule = build_schedule(
        billing_interval=billing_interval,
        due_weekday=due_weekday,
        due_day_of_month=due_day_of_month,
        due_month_in_quarter=due_month_in_quarter,
    )

    for attempt in range(max_retries):
        try:
            with transaction.atomic():
                team = Team.objects.create(
                    name=name,
                    owner=owner,
                    amount=amount,
                    currency=currency,
                    expected_players=expected_players,
                    bank_instructions=bank_instructions,
                    join_token=generate_join_token(),
                    **schedule
                )
                logger.info("Team %s created by %s", team.id, owner.id)
                return team
        except IntegrityError:
            # Join token collision (very rare)
            if attempt == max_retries - 1:
                raise RuntimeError(
                    f"Failed to generate unique join token after {max_retries} attempts"
                )
            continue

    # Should never reach here
    raise RuntimeError("Unexpected error in team creation")


def get_team_for_manager(*, team_id: UUID, user: User, lock: bool = False) -> Team:
    """
    Get a team the user manages.

    Raises:
        TeamNotFoundError: If team doesn't exist
        InsufficientPermissionsError: If user is not the manager
    """
    queryset = Team.objects.select_related('owner')
    if lock:
        queryset = queryset.select_for_update()

    try:
        team = queryset.get(id=team_id)
    except Team.DoesNotExist:
        raise TeamNotFoundError(f"Team with ID {team_id} not found")

    if not team.is_manager(user):
        raise InsufficientPermissionsError("Only the team manager can do that")

    return team


@transaction.atomic
def update_team(
    *,
    team_id: UUID,
    user: User,
    name: Optional[str] = None,
    amount: Optional[int] = None,
    currency: Optional[str] = None,
    expected_players: Optional[int] = None,
    bank_instructions: Optional[str] = None,
    schedule: Optional[dict] = None
) -> Team:
    """
    Update team details and, optionally, its billing schedule (manager only).

    Existing ``next_due_at`` values are left alone; the new schedule applies
    from each membership's next payment.

    Args:
        team_id: UUID of the team
        user: User performing the update
        schedule: Keyword arguments for build_schedule()

    Returns:
        Updated Team instance

    Raises:
        TeamNotFoundError: If team doesn't exist
        InsufficientPermissionsError: If user is not the manager
        InvalidScheduleError: If the new schedule is invalid
    """
    team = get_team_for_manager(team_id=team_id, user=user, lock=True)

    update_fields = ['updated_at']

    for field, value in (
        ('name', name),
        ('amount', amount),
        ('currency', currency),
        ('expected_players', expected_players),
        ('bank_instructions', bank_instructions),
    ):
        if value is not None:
            setattr(team, field, value)
            update_fields.append(field)

    if schedule is not None:
        for field, value in build_schedule(**schedule).items():
            setattr(team, field, value)
            update_fields.append(field)
        logger.info("Team %s billing schedule changed to %s", team.id, team.billing_interval)

    team.save(update_fields=update_fields)
    return team


@transaction.atomic
def rotate_join_token(*, team_id: UUID, user: User, max_retries: int = 5) -> str:
    """
    Replace a team's join token, invalidating the old link (manager only).

    Returns:
        New join token

    Raises:
        TeamNotFoundError: If team doesn't exist
        InsufficientPermissionsError: If user is not the manager
        RuntimeError: If cannot generate unique token after retries
    """
    team = get_team_for_manager(team_id=team_id, user=user, lock=True)

    for attempt in range(max_retries):
        new_token = generate_join_token()

        try:
            with transaction.atomic():
                team.join_token = new_token
                team.save(update_fields=['join_token', 'updated_at'])
            return new_token
        except IntegrityError:
            if attempt == max_retries - 1:
                raise RuntimeError(
                    f"Failed to generate unique join token after {max_retries} attempts"
                )
            continue

    # Should never reach here
    raise RuntimeError("Unexpected error in join token rotation")
