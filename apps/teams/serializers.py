from rest_framework import serializers
from .models import Team, Player, BillingInterval, Currency
from .services import build_schedule, InvalidScheduleError
from apps.billing.models import MembershipStatus
from apps.accounts.models import User


def schedule_validation_error(error):
    """Map an InvalidScheduleError onto the offending input field."""
    if error.field and error.field != 'interval':
        return serializers.ValidationError({f'due_{error.field}': str(error)})
    return serializers.ValidationError({'billing_interval': str(error)})


class UserMinimalSerializer(serializers.ModelSerializer):
    """Minimal user info for nested serialization."""

    display_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'email', 'display_name']
        read_only_fields = fields

    def get_display_name(self, obj):
        return obj.get_display_name()


class PlayerSerializer(serializers.ModelSerializer):
    """Player details."""

    class Meta:
        model = Player
        fields = ['id', 'name', 'email', 'phone', 'created_at']
        read_only_fields = fields


class TeamSerializer(serializers.ModelSerializer):
    """Main serializer for teams (manager view)."""

    owner = UserMinimalSerializer(read_only=True)
    member_count = serializers.SerializerMethodField()

    class Meta:
        model = Team
        fields = [
            'id',
            'name',
            'owner',
            'join_token',
            'expected_players',
            'amount',
            'currency',
            'billing_interval',
            'due_weekday',
            'due_day_of_month',
            'due_month_in_quarter',
            'bank_instructions',
            'member_count',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_member_count(self, obj):
        """Memberships that aren't canceled."""
        # Annotated by TeamViewSet.get_queryset
        if hasattr(obj, 'active_member_count'):
            return obj.active_member_count
        return obj.memberships.exclude(status=MembershipStatus.CANCELED).count()


class ScheduleFieldsMixin(serializers.Serializer):
    """Billing interval and anchor fields, validated together."""

    billing_interval = serializers.ChoiceField(choices=BillingInterval.choices)
    due_weekday = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=6)
    due_day_of_month = serializers.IntegerField(required=False, allow_null=True, min_value=1, max_value=31)
    due_month_in_quarter = serializers.IntegerField(required=False, allow_null=True, min_value=1, max_value=3)

    def validate_schedule(self, attrs):
        """Return normalized schedule fields, or raise ValidationError."""
        try:
            return build_schedule(
                billing_interval=attrs['billing_interval'],
                due_weekday=attrs.get('due_weekday'),
                due_day_of_month=attrs.get('due_day_of_month'),
                due_month_in_quarter=attrs.get('due_month_in_quarter'),
            )
        except InvalidScheduleError as e:
            raise schedule_validation_error(e)


class TeamCreateSerializer(ScheduleFieldsMixin):
    """Input for creating a team."""

    name = serializers.CharField(min_length=2, max_length=100, trim_whitespace=True)
    amount = serializers.IntegerField(
        min_value=100,
        max_value=1_000_000,
        error_messages={
            'min_value': 'Amount must be at least 1.00',
            'max_value': 'Amount cannot exceed 10,000.00',
        }
    )
    currency = serializers.ChoiceField(choices=Currency.choices, default=Currency.GBP)
    expected_players = serializers.IntegerField(required=False, default=0, min_value=0)
    bank_instructions = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        attrs.update(self.validate_schedule(attrs))
        return attrs


class TeamUpdateSerializer(serializers.Serializer):
    """
    Input for updating a team.

    Schedule fields are all-or-nothing: sending ``billing_interval``
    replaces the whole anchor.
    """

    name = serializers.CharField(required=False, min_length=2, max_length=100)
    amount = serializers.IntegerField(required=False, min_value=100, max_value=1_000_000)
    currency = serializers.ChoiceField(required=False, choices=Currency.choices)
    expected_players = serializers.IntegerField(required=False, min_value=0)
    bank_instructions = serializers.CharField(required=False, allow_blank=True)
    billing_interval = serializers.ChoiceField(required=False, choices=BillingInterval.choices)
    due_weekday = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=6)
    due_day_of_month = serializers.IntegerField(required=False, allow_null=True, min_value=1, max_value=31)
    due_month_in_quarter = serializers.IntegerField(required=False, allow_null=True, min_value=1, max_value=3)

    def validate(self, attrs):
        anchor_fields = {'due_weekday', 'due_day_of_month', 'due_month_in_quarter'}
        if 'billing_interval' not in attrs:
            if anchor_fields & set(attrs):
                raise serializers.ValidationError({
                    'billing_interval': 'Send billing_interval together with the due date fields'
                })
            return attrs

        try:
            attrs['schedule'] = build_schedule(
                billing_interval=attrs.pop('billing_interval'),
                due_weekday=attrs.pop('due_weekday', None),
                due_day_of_month=attrs.pop('due_day_of_month', None),
                due_month_in_quarter=attrs.pop('due_month_in_quarter', None),
            )
        except InvalidScheduleError as e:
            raise schedule_validation_error(e)
        return attrs


class TeamJoinInfoSerializer(serializers.ModelSerializer):
    """Public team info shown on the join page."""

    class Meta:
        model = Team
        fields = [
            'name',
            'amount',
            'currency',
            'billing_interval',
            'due_weekday',
            'due_day_of_month',
            'due_month_in_quarter',
            'bank_instructions',
        ]
        read_only_fields = fields


class JoinTeamSerializer(serializers.Serializer):
    """Input for joining a team through its link."""

    name = serializers.CharField(min_length=1, max_length=100)
    email = serializers.EmailField(max_length=255)
    phone = serializers.RegexField(
        r'^\+[1-9]\d{1,14}$',
        required=False,
        allow_blank=True,
        error_messages={'invalid': 'Phone must be in international format (e.g., +447700900123)'}
    )


class DueSoonQuerySerializer(serializers.Serializer):
    """Query parameters for due-soon listing."""

    days = serializers.IntegerField(required=False, min_value=1, max_value=30)
