# ==========================================
# apps/teams/models.py
# ==========================================

from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
import uuid
import secrets


def generate_join_token():
    return secrets.token_urlsafe(30)[:40]


class BillingInterval(models.TextChoices):
    WEEK = 'week', 'Weekly'
    MONTH = 'month', 'Monthly'
    QUARTER = 'quarter', 'Quarterly'


class Currency(models.TextChoices):
    GBP = 'gbp', 'GBP'
    USD = 'usd', 'USD'
    EUR = 'eur', 'EUR'


class Team(models.Model):
    """Team collecting recurring subs from its players."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    owner = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='managed_teams')
    join_token = models.CharField(max_length=40, unique=True, db_index=True, editable=False)
    expected_players = models.PositiveIntegerField(default=0)

    # Plan, amount in minor units (pence/cents)
    amount = models.PositiveIntegerField(
        validators=[MinValueValidator(100), MaxValueValidator(1_000_000)]
    )
    currency = models.CharField(max_length=3, choices=Currency.choices, default=Currency.GBP)
    billing_interval = models.CharField(
        max_length=10,
        choices=BillingInterval.choices,
        default=BillingInterval.MONTH
    )

    # Billing anchor, only the fields relevant to billing_interval are set
    due_weekday = models.PositiveSmallIntegerField(null=True, blank=True)
    due_day_of_month = models.PositiveSmallIntegerField(null=True, blank=True)
    due_month_in_quarter = models.PositiveSmallIntegerField(null=True, blank=True)

    bank_instructions = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'teams'
        indexes = [
            models.Index(fields=['owner', 'created_at'], name='teams_owner_created_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.join_token:
            self.join_token = generate_join_token()
        super().save(*args, **kwargs)

    @property
    def billing_anchor(self):
        from apps.billing.scheduling import BillingAnchor

        return BillingAnchor(
            weekday=self.due_weekday,
            day_of_month=self.due_day_of_month,
            month_in_quarter=self.due_month_in_quarter,
        )

    def is_manager(self, user):
        return user.is_authenticated and self.owner_id == user.id


class Player(models.Model):
    """Player on a team's roster, identified by email within the team."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name='players')
    name = models.CharField(max_length=100)
    email = models.EmailField(max_length=255)
    phone = models.CharField(max_length=32, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'players'
        unique_together = [['team', 'email']]
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.team.name})"
