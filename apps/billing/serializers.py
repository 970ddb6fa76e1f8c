from rest_framework import serializers
from .models import BillingType, Membership, Payment, PaymentMethod, MembershipStatus
from apps.teams.models import BillingInterval, Currency, Player


# =============================================================================
# Input Serializers
# =============================================================================

class MembershipFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for membership filtering.

    Query Parameters:
        team (UUID): Filter by team ID
        status (str): Filter by membership status
    """

    team = serializers.UUIDField(required=False)
    status = serializers.ChoiceField(choices=MembershipStatus.choices, required=False)


class MarkPaidInputSerializer(serializers.Serializer):
    """
    Validate input for recording a manual payment.

    Fields:
        amount (int): Amount in minor units, defaults to the team plan
        currency (str): Defaults to the team currency
        method (str): manual or bank_transfer
        note (str): Optional note
        due_date_override (date): Optional manager-set next due date
    """

    amount = serializers.IntegerField(required=False, min_value=100, max_value=1_000_000)
    currency = serializers.ChoiceField(choices=Currency.choices, required=False)
    method = serializers.ChoiceField(
        choices=[PaymentMethod.MANUAL, PaymentMethod.BANK_TRANSFER],
        default=PaymentMethod.MANUAL
    )
    note = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    due_date_override = serializers.DateField(required=False, allow_null=True)


class MembershipPlanInputSerializer(serializers.Serializer):
    """
    Validate a change to how one membership is billed.

    Fields:
        plan_interval (str): week, month or quarter. Null falls back to the
            team interval
        billing_type (str): How the player pays
        custom_amount (int): Per-player price in minor units. Null falls
            back to the team amount
    """

    plan_interval = serializers.ChoiceField(
        choices=BillingInterval.choices,
        required=False,
        allow_null=True
    )
    billing_type = serializers.ChoiceField(choices=BillingType.choices, required=False)
    custom_amount = serializers.IntegerField(
        required=False,
        allow_null=True,
        min_value=100,
        max_value=1_000_000
    )

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError(
                "Provide at least one of plan_interval, billing_type or custom_amount"
            )
        return attrs


class PaymentConfirmedEventSerializer(serializers.Serializer):
    """
    Validate a payment-confirmed event from the payment gateway.

    Fields:
        membership_id (UUID): Membership being paid
        paid_at (datetime): When the payment succeeded
        amount (int): Amount charged in minor units
        currency (str): Currency charged
        provider_reference (str): Gateway session/charge id
        due_date_override (date): Optional manager-set next due date
        interval_override (str): Optional interval from payment metadata
        billing_type (str): subscription or one_off, from payment metadata
    """

    membership_id = serializers.UUIDField()
    paid_at = serializers.DateTimeField()
    amount = serializers.IntegerField(required=False, min_value=0)
    currency = serializers.ChoiceField(choices=Currency.choices, required=False)
    provider_reference = serializers.CharField(max_length=255, required=False, allow_blank=True)
    due_date_override = serializers.DateField(required=False, allow_null=True)
    interval_override = serializers.ChoiceField(
        choices=BillingInterval.choices,
        required=False,
        allow_null=True,
        allow_blank=True
    )
    billing_type = serializers.ChoiceField(
        choices=[BillingType.SUBSCRIPTION, BillingType.ONE_OFF],
        required=False
    )


class SweepInputSerializer(serializers.Serializer):
    """Validate input for a sweep trigger."""

    now = serializers.DateTimeField(required=False)
    grace_period_days = serializers.IntegerField(required=False, min_value=0, max_value=365)
    dry_run = serializers.BooleanField(required=False, default=False)


# =============================================================================
# Output Serializers
# =============================================================================


class PlayerMinimalSerializer(serializers.ModelSerializer):
    """Minimal player info for nested serialization."""

    class Meta:
        model = Player
        fields = ['id', 'name', 'email', 'phone']
        read_only_fields = fields


class MembershipSerializer(serializers.ModelSerializer):
    """Serializer for memberships."""

    player = PlayerMinimalSerializer(read_only=True)
    interval = serializers.SerializerMethodField()

    class Meta:
        model = Membership
        fields = [
            'id',
            'team',
            'player',
            'status',
            'billing_type',
            'plan_interval',
            'interval',
            'custom_amount',
            'next_due_at',
            'last_paid_at',
            'canceled_at',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_interval(self, obj):
        """Interval actually used for scheduling."""
        return obj.effective_interval()


class PaymentSerializer(serializers.ModelSerializer):
    """Serializer for payments."""

    class Meta:
        model = Payment
        fields = [
            'id',
            'membership',
            'team',
            'amount',
            'currency',
            'method',
            'provider_reference',
            'note',
            'paid_at',
            'created_at',
        ]
        read_only_fields = fields


class SweepResultSerializer(serializers.Serializer):
    """Serializer for a sweep outcome."""

    evaluated_at = serializers.DateTimeField()
    grace_period_days = serializers.IntegerField()
    dry_run = serializers.BooleanField()
    promoted_to_due = serializers.IntegerField()
    promoted_to_overdue = serializers.IntegerField()
    due_ids = serializers.ListField(child=serializers.UUIDField())
    overdue_ids = serializers.ListField(child=serializers.UUIDField())
