import pytest
from django.urls import reverse
from rest_framework import status
from apps.accounts.models import User


# =============================================================================
# User Model Tests
# =============================================================================

@pytest.mark.django_db
class TestUserManager:
    """Tests for the email-based user manager."""

    def test_create_user_normalizes_email(self):
        user = User.objects.create_user(email='Manager@EXAMPLE.com', password='TestPass123!')

        assert user.email == 'Manager@example.com'
        assert user.check_password('TestPass123!')
        assert user.is_staff is False

    def test_create_user_requires_email(self):
        with pytest.raises(ValueError):
            User.objects.create_user(email='', password='TestPass123!')

    def test_create_superuser(self):
        user = User.objects.create_superuser(email='root@example.com', password='TestPass123!')

        assert user.is_staff is True
        assert user.is_superuser is True

    def test_display_name_falls_back_to_email(self):
        user = User.objects.create_user(email='coach.kim@example.com', password='TestPass123!')

        assert user.get_display_name() == 'coach.kim'


# =============================================================================
# Token Tests
# =============================================================================

@pytest.mark.django_db
class TestTokenObtain:
    """Tests for POST /api/auth/token/"""

    def test_obtain_token_pair(self, api_client, user):
        url = reverse('token_obtain_pair')
        response = api_client.post(url, {'email': user.email, 'password': 'TestPass123!'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert 'access' in response.data
        assert 'refresh' in response.data

    def test_wrong_password(self, api_client, user):
        url = reverse('token_obtain_pair')
        response = api_client.post(url, {'email': user.email, 'password': 'nope'}, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_inactive_user(self, api_client, user_inactive):
        url = reverse('token_obtain_pair')
        response = api_client.post(
            url, {'email': user_inactive.email, 'password': 'TestPass123!'}, format='json'
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_refresh(self, api_client, user):
        obtain = api_client.post(
            reverse('token_obtain_pair'),
            {'email': user.email, 'password': 'TestPass123!'},
            format='json',
        )

        response = api_client.post(reverse('token_refresh'), {'refresh': obtain.data['refresh']}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert 'access' in response.data


@pytest.mark.django_db
class TestHealthCheck:
    """Tests for GET /api/health/"""

    def test_health(self, api_client):
        response = api_client.get(reverse('health-check'))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()['status'] == 'ok'
