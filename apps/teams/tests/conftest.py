import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.teams.models import Team, Player, BillingInterval
from apps.billing.models import Membership, MembershipStatus


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
def team(manager):
    """Monthly team due on the 1st."""
    return Team.objects.create(
        name='Sunday League',
        owner=manager,
        amount=2000,
        currency='gbp',
        billing_interval=BillingInterval.MONTH,
        due_day_of_month=1,
        bank_instructions='Sort code 00-00-00, account 12345678',
    )


@pytest.fixture
def player(team):
    """Player already on the team with a pending membership."""
    player = Player.objects.create(team=team, name='Alex Smith', email='alex@example.com')
    Membership.objects.create(team=team, player=player, status=MembershipStatus.PENDING)
    return player
