import pytest
from datetime import datetime, timezone
from itertools import count
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.teams.models import Team, Player, BillingInterval
from apps.billing.models import Membership, MembershipStatus


# Monday 2024-01-15 09:30 UTC
NOW = datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc)

CRON_SECRET = 'test-cron-secret'
WEBHOOK_SECRET = 'test-webhook-secret'


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def manager(db):
    """Create and return a team manager."""
    return User.objects.create_user(
        email='manager@example.com',
        password='TestPass123!',
        display_name='Team Manager',
    )


@pytest.fixture
def other_manager(db):
    """Create and return a manager of unrelated teams."""
    return User.objects.create_user(
        email='othermanager@example.com',
        password='TestPass123!',
        display_name='Other Manager',
    )


@pytest.fixture
def manager_client(manager):
    """Return an API client authenticated as the team manager."""
    client = APIClient()
    refresh = RefreshToken.for_user(manager)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def other_client(other_manager):
    """Return an API client authenticated as another manager."""
    client = APIClient()
    refresh = RefreshToken.for_user(other_manager)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def cron_client(settings):
    """Return a client carrying the cron bearer secret."""
    settings.CRON_SECRET = CRON_SECRET
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {CRON_SECRET}')
    return client


@pytest.fixture
def webhook_client(settings):
    """Return a client carrying the payment webhook bearer secret."""
    settings.PAYMENT_WEBHOOK_SECRET = WEBHOOK_SECRET
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {WEBHOOK_SECRET}')
    return client


@pytest.fixture
def monthly_team(manager):
    """Monthly team due on the 31st (clamped in short months)."""
    return Team.objects.create(
        name='Sunday League',
        owner=manager,
        amount=2000,
        currency='gbp',
        billing_interval=BillingInterval.MONTH,
        due_day_of_month=31,
    )


@pytest.fixture
def weekly_team(manager):
    """Weekly team due on Wednesdays."""
    return Team.objects.create(
        name='Five-a-side',
        owner=manager,
        amount=500,
        currency='gbp',
        billing_interval=BillingInterval.WEEK,
        due_weekday=3,
    )


@pytest.fixture
def quarterly_team(manager):
    """Quarterly team due on the 10th of each quarter's second month."""
    return Team.objects.create(
        name='Netball Club',
        owner=manager,
        amount=6000,
        currency='eur',
        billing_interval=BillingInterval.QUARTER,
        due_day_of_month=10,
        due_month_in_quarter=2,
    )


@pytest.fixture
def misconfigured_team(manager):
    """Monthly team saved without a due day, bypassing input validation."""
    return Team.objects.create(
        name='Broken FC',
        owner=manager,
        amount=1500,
        currency='gbp',
        billing_interval=BillingInterval.MONTH,
        due_day_of_month=None,
    )


@pytest.fixture
def make_membership(db):
    """Factory creating a player plus membership in a given state."""
    sequence = count(1)

    def _make(team, status=MembershipStatus.ACTIVE, next_due_at=None, plan_interval=None):
        n = next(sequence)
        player = Player.objects.create(
            team=team,
            name=f'Player {n}',
            email=f'player{n}@example.com',
        )
        return Membership.objects.create(
            team=team,
            player=player,
            status=status,
            next_due_at=next_due_at,
            plan_interval=plan_interval,
        )

    return _make


@pytest.fixture
def pending_membership(monthly_team, make_membership):
    """Freshly joined membership with no due date yet."""
    return make_membership(monthly_team, status=MembershipStatus.PENDING)


@pytest.fixture
def active_membership(monthly_team, make_membership):
    """Active membership due at the end of January 2024."""
    return make_membership(
        monthly_team,
        status=MembershipStatus.ACTIVE,
        next_due_at=datetime(2024, 1, 31, tzinfo=timezone.utc),
    )


@pytest.fixture
def canceled_membership(monthly_team, make_membership):
    """Canceled membership."""
    return make_membership(monthly_team, status=MembershipStatus.CANCELED)
