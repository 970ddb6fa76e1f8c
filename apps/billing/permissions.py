"""
Custom permission classes for billing app.

Membership access is limited to the team manager. Machine-to-machine
endpoints (payment gateway events, sweep trigger) authenticate with a
shared bearer secret from settings instead of a user.
"""
import hmac

from django.conf import settings
from rest_framework.permissions import BasePermission


class IsTeamManagerForMembership(BasePermission):
    """
    Permission to act on a membership.

    Allows access if the user manages the membership's team.

    Usage:
        class MembershipViewSet(viewsets.ReadOnlyModelViewSet):
            permission_classes = [IsAuthenticated, IsTeamManagerForMembership]
    """

    message = 'Only the team manager can manage this membership.'

    def has_object_permission(self, request, view, obj):
        return obj.team.is_manager(request.user)


class BearerSecretPermission(BasePermission):
    """
    Base permission comparing ``Authorization: Bearer <secret>`` to a setting.

    An empty setting denies every request.
    """

    setting_name = None
    message = 'Invalid or missing bearer secret.'

    def has_permission(self, request, view):
        expected = getattr(settings, self.setting_name, '') or ''
        if not expected:
            return False

        header = request.META.get('HTTP_AUTHORIZATION', '')
        scheme, _, provided = header.partition(' ')
        if scheme.lower() != 'bearer' or not provided:
            return False

        return hmac.compare_digest(provided.strip().encode(), expected.encode())


class HasCronSecret(BearerSecretPermission):
    """Permission for the periodic sweep trigger."""

    setting_name = 'CRON_SECRET'


class HasPaymentWebhookSecret(BearerSecretPermission):
    """Permission for payment gateway events."""

    setting_name = 'PAYMENT_WEBHOOK_SECRET'
