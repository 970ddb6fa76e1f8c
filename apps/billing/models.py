from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
import uuid

from apps.teams.models import BillingInterval, Currency


class MembershipStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    ACTIVE = 'active', 'Active'
    DUE = 'due', 'Due'
    OVERDUE = 'overdue', 'Overdue'
    CANCELED = 'canceled', 'Canceled'


class BillingType(models.TextChoices):
    SUBSCRIPTION = 'subscription', 'Subscription'
    ONE_OFF = 'one_off', 'One-off'
    BANK_TRANSFER = 'bank_transfer', 'Bank transfer'
    MANUAL = 'manual', 'Manual'


class PaymentMethod(models.TextChoices):
    CARD = 'card', 'Card'
    BANK_TRANSFER = 'bank_transfer', 'Bank transfer'
    MANUAL = 'manual', 'Manual'


class Membership(models.Model):
    """Billing relationship between one player and one team."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    team = models.ForeignKey('teams.Team', on_delete=models.CASCADE, related_name='memberships')
    player = models.OneToOneField('teams.Player', on_delete=models.CASCADE, related_name='membership')

    status = models.CharField(
        max_length=20,
        choices=MembershipStatus.choices,
        default=MembershipStatus.PENDING
    )
    billing_type = models.CharField(
        max_length=20,
        choices=BillingType.choices,
        default=BillingType.SUBSCRIPTION
    )
    # Falls back to team.billing_interval when empty
    plan_interval = models.CharField(
        max_length=10,
        choices=BillingInterval.choices,
        null=True,
        blank=True
    )
    # Per-player price in minor units, overrides team.amount when set
    custom_amount = models.PositiveIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(100), MaxValueValidator(1_000_000)]
    )

    next_due_at = models.DateTimeField(null=True, blank=True)
    last_paid_at = models.DateTimeField(null=True, blank=True)
    canceled_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'memberships'
        indexes = [
            models.Index(fields=['status', 'next_due_at'], name='memberships_status_due_idx'),
            models.Index(fields=['team', 'status'], name='memberships_team_status_idx'),
        ]
        ordering = ['created_at']

    def __str__(self):
        return f"{self.player.name} in {self.team.name} ({self.status})"

    @property
    def is_canceled(self):
        return self.status == MembershipStatus.CANCELED

    def effective_interval(self):
        return self.plan_interval or self.team.billing_interval


class Payment(models.Model):
    """Confirmed payment against a membership."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    membership = models.ForeignKey(Membership, on_delete=models.CASCADE, related_name='payments')
    team = models.ForeignKey('teams.Team', on_delete=models.CASCADE, related_name='payments')

    amount = models.PositiveIntegerField()
    currency = models.CharField(max_length=3, choices=Currency.choices, default=Currency.GBP)
    method = models.CharField(max_length=20, choices=PaymentMethod.choices, default=PaymentMethod.CARD)

    # Gateway session/charge id, used to drop repeated confirmations
    provider_reference = models.CharField(max_length=255, null=True, blank=True, unique=True)
    note = models.CharField(max_length=200, blank=True)

    paid_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'payments'
        indexes = [
            models.Index(fields=['team', 'paid_at'], name='payments_team_paid_idx'),
            models.Index(fields=['membership', 'paid_at'], name='payments_membership_paid_idx'),
        ]
        ordering = ['-paid_at']

    def __str__(self):
        return f"{self.amount} {self.currency.upper()} for {self.membership_id} ({self.method})"
