"""
Join-link service.

Players open a team's join link, leave their details and get a pending
membership. Paying for it is what makes the membership active.
"""

import logging
from typing import Optional, Tuple

from django.db import transaction, IntegrityError

from apps.billing.models import Membership, MembershipStatus
from apps.teams.models import Team, Player

from .exceptions import (
    InvalidJoinTokenError,
    MembershipClosedError,
)


logger = logging.getLogger(__name__)


def get_team_by_join_token(*, join_token: str) -> Team:
    """
    Resolve a join token to its team.

    Raises:
        InvalidJoinTokenError: If no team uses this token
    """
    try:
        return Team.objects.get(join_token=join_token)
    except Team.DoesNotExist:
        raise InvalidJoinTokenError("This join link is invalid or has been rotated")


@transaction.atomic
def join_team(
    *,
    join_token: str,
    name: str,
    email: str,
    phone: Optional[str] = None
) -> Tuple[Membership, bool]:
    """
    Add a player to a team through its join link.

    The player is matched on (team, email). An existing player gets their
    name and phone refreshed; a new one is created. The membership starts
    as ``pending`` with no due date.

    Args:
        join_token: Token from the team's join link
        name: Player name
        email: Player email, matched case-insensitively
        phone: Optional phone number

    Returns:
        Tuple of (membership, created). ``created`` is False when the
        player already had an open membership

    Raises:
        InvalidJoinTokenError: If the token doesn't match a team
        MembershipClosedError: If the player's membership was canceled
    """
    team = get_team_by_join_token(join_token=join_token)

    clean_email = email.strip().lower()
    clean_name = name.strip()
    clean_phone = (phone or '').strip()

    try:
        with transaction.atomic():
            player, created = Player.objects.get_or_create(
                team=team,
                email=clean_email,
                defaults={'name': clean_name, 'phone': clean_phone},
            )
    except IntegrityError:
        # Concurrent join with the same email
        player, created = Player.objects.get(team=team, email=clean_email), False

    if not created and (player.name != clean_name or player.phone != clean_phone):
        player.name = clean_name
        player.phone = clean_phone
        player.save(update_fields=['name', 'phone', 'updated_at'])

    membership, membership_created = Membership.objects.get_or_create(
        team=team,
        player=player,
        defaults={'status': MembershipStatus.PENDING},
    )

    if membership.status == MembershipStatus.CANCELED:
        raise MembershipClosedError(
            "Your membership for this team was canceled. Ask the team manager to re-add you."
        )

    if membership_created:
        logger.info("Player %s joined team %s", player.id, team.id)

    return membership, membership_created
