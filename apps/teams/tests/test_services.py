"""
Service layer unit tests for teams app.

Tests cover:
- Team creation and billing schedule validation
- Schedule updates and join token rotation
- Joining through a team link
"""

import pytest
from unittest.mock import patch
from uuid import uuid4

from apps.teams.models import Team, Player
from apps.billing.models import Membership, MembershipStatus
from apps.teams.services import (
    build_schedule,
    create_team,
    get_team_for_manager,
    update_team,
    rotate_join_token,
    get_team_by_join_token,
    join_team,
)
from apps.teams.services.exceptions import (
    TeamNotFoundError,
    InvalidJoinTokenError,
    MembershipClosedError,
    InvalidScheduleError,
    InsufficientPermissionsError,
)


# =============================================================================
# Schedule validation
# =============================================================================

class TestBuildSchedule:
    """Tests for build_schedule()."""

    def test_weekly_keeps_only_weekday(self):
        schedule = build_schedule(billing_interval='week', due_weekday=0, due_day_of_month=15)

        assert schedule == {
            'billing_interval': 'week',
            'due_weekday': 0,
            'due_day_of_month': None,
            'due_month_in_quarter': None,
        }

    def test_quarterly_requires_month_in_quarter(self):
        with pytest.raises(InvalidScheduleError) as exc_info:
            build_schedule(billing_interval='quarter', due_day_of_month=15)

        assert exc_info.value.field == 'month_in_quarter'

    def test_monthly_requires_day(self):
        with pytest.raises(InvalidScheduleError) as exc_info:
            build_schedule(billing_interval='month', due_weekday=2)

        assert exc_info.value.field == 'day_of_month'

    def test_out_of_range_day(self):
        with pytest.raises(InvalidScheduleError):
            build_schedule(billing_interval='month', due_day_of_month=32)


# =============================================================================
# Team management
# =============================================================================

@pytest.mark.django_db
class TestTeamManagement:
    """Tests for team_management.py service functions."""

    def test_create_team(self, manager):
        team = create_team(
            name='Thursday Hockey',
            owner=manager,
            amount=1500,
            currency='usd',
            billing_interval='quarter',
            due_weekday=4,
            due_day_of_month=5,
            due_month_in_quarter=1,
        )

        assert team.owner == manager
        assert team.amount == 1500
        assert team.due_weekday is None
        assert team.due_day_of_month == 5
        assert team.due_month_in_quarter == 1
        assert team.join_token
        assert len(team.join_token) <= 40

    def test_create_team_invalid_schedule_creates_nothing(self, manager):
        with pytest.raises(InvalidScheduleError):
            create_team(
                name='No Day FC',
                owner=manager,
                amount=1500,
                currency='gbp',
                billing_interval='month',
            )

        assert not Team.objects.filter(name='No Day FC').exists()

    def test_create_team_retries_token_collision(self, manager, team):
        tokens = iter([team.join_token, 'fresh-token'])

        with patch(
            'apps.teams.services.team_management.generate_join_token',
            side_effect=lambda: next(tokens),
        ):
            new_team = create_team(
                name='Second Team',
                owner=manager,
                amount=1000,
                currency='gbp',
                billing_interval='week',
                due_weekday=6,
            )

        assert new_team.join_token == 'fresh-token'

    def test_create_team_gives_up_on_token_collisions(self, manager, team):
        with patch(
            'apps.teams.services.team_management.generate_join_token',
            return_value=team.join_token,
        ):
            with pytest.raises(RuntimeError, match='Failed to generate unique join token'):
                create_team(
                    name='Unlucky',
                    owner=manager,
                    amount=1000,
                    currency='gbp',
                    billing_interval='week',
                    due_weekday=6,
                    max_retries=3,
                )

    def test_get_team_for_manager(self, manager, other_manager, team):
        assert get_team_for_manager(team_id=team.id, user=manager) == team

        with pytest.raises(InsufficientPermissionsError):
            get_team_for_manager(team_id=team.id, user=other_manager)

        with pytest.raises(TeamNotFoundError):
            get_team_for_manager(team_id=uuid4(), user=manager)

    def test_update_details(self, manager, team):
        updated = update_team(team_id=team.id, user=manager, name='Sunday League B', amount=2500)

        assert updated.name == 'Sunday League B'
        assert updated.amount == 2500
        assert updated.billing_interval == 'month'

    def test_update_schedule_clears_unused_fields(self, manager, team):
        updated = update_team(
            team_id=team.id,
            user=manager,
            schedule={'billing_interval': 'week', 'due_weekday': 2},
        )

        team.refresh_from_db()
        assert updated.billing_interval == 'week'
        assert team.due_weekday == 2
        assert team.due_day_of_month is None

    def test_update_schedule_leaves_due_dates_alone(self, manager, team, player):
        membership = player.membership
        membership.status = MembershipStatus.ACTIVE
        membership.save()
        before = Membership.objects.get(id=membership.id).next_due_at

        update_team(
            team_id=team.id,
            user=manager,
            schedule={'billing_interval': 'week', 'due_weekday': 2},
        )

        assert Membership.objects.get(id=membership.id).next_due_at == before

    def test_update_by_other_manager(self, other_manager, team):
        with pytest.raises(InsufficientPermissionsError):
            update_team(team_id=team.id, user=other_manager, name='Hijacked')

        team.refresh_from_db()
        assert team.name == 'Sunday League'

    def test_rotate_join_token(self, manager, team):
        old_token = team.join_token

        new_token = rotate_join_token(team_id=team.id, user=manager)

        team.refresh_from_db()
        assert new_token != old_token
        assert team.join_token == new_token
        with pytest.raises(InvalidJoinTokenError):
            get_team_by_join_token(join_token=old_token)


# =============================================================================
# Joining
# =============================================================================

@pytest.mark.django_db
class TestJoinTeam:
    """Tests for joining.py service functions."""

    def test_join_creates_pending_membership(self, team):
        membership, created = join_team(
            join_token=team.join_token,
            name='Sam Jones',
            email='Sam@Example.com',
            phone='+447700900123',
        )

        assert created is True
        assert membership.status == MembershipStatus.PENDING
        assert membership.next_due_at is None
        assert membership.player.email == 'sam@example.com'
        assert membership.player.phone == '+447700900123'
        assert membership.team == team

    def test_rejoin_updates_player_details(self, team, player):
        membership, created = join_team(
            join_token=team.join_token,
            name='Alex J. Smith',
            email='ALEX@example.com',
            phone='+447700900999',
        )

        assert Player.objects.filter(team=team).count() == 1
        player.refresh_from_db()
        assert player.name == 'Alex J. Smith'
        assert player.phone == '+447700900999'
        assert membership == player.membership
        assert created is False

    def test_rejoin_keeps_existing_status(self, team, player):
        membership = player.membership
        membership.status = MembershipStatus.OVERDUE
        membership.save()

        result, created = join_team(
            join_token=team.join_token, name='Alex Smith', email='alex@example.com'
        )

        assert not created
        assert result.status == MembershipStatus.OVERDUE

    def test_canceled_player_cannot_rejoin(self, team, player):
        membership = player.membership
        membership.status = MembershipStatus.CANCELED
        membership.save()

        with pytest.raises(MembershipClosedError):
            join_team(join_token=team.join_token, name='Alex', email='alex@example.com')

    def test_invalid_token(self, team):
        with pytest.raises(InvalidJoinTokenError):
            join_team(join_token='not-a-token', name='Sam', email='sam@example.com')

        assert not Player.objects.filter(email='sam@example.com').exists()
