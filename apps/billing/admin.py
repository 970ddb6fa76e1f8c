# ==========================================
# apps/billing/admin.py
# ==========================================

from django.contrib import admin
from apps.billing.models import Membership, Payment


class PaymentInline(admin.TabularInline):
    """Read-only payment history on a membership."""
    model = Payment
    extra = 0
    fields = ['paid_at', 'amount', 'currency', 'method', 'provider_reference', 'note']
    readonly_fields = fields
    can_delete = False


@admin.register(Membership)
class MembershipAdmin(admin.ModelAdmin):
    """
    Admin interface for Memberships.

    Status and dates are read-only here; they only change through payments,
    the status sweep and cancellation.
    """

    list_display = [
        'player',
        'team',
        'status',
        'billing_type',
        'custom_amount',
        'next_due_at',
        'last_paid_at',
    ]
    list_filter = ['status', 'billing_type', 'plan_interval']
    search_fields = ['player__name', 'player__email', 'team__name']
    readonly_fields = [
        'status',
        'next_due_at',
        'last_paid_at',
        'canceled_at',
        'created_at',
        'updated_at',
    ]
    list_select_related = ['player', 'team']
    inlines = [PaymentInline]
    ordering = ['team', 'next_due_at']


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    """Admin interface for Payments."""

    list_display = ['membership', 'team', 'amount', 'currency', 'method', 'paid_at']
    list_filter = ['method', 'currency', 'paid_at']
    search_fields = ['provider_reference', 'membership__player__email', 'team__name']
    readonly_fields = ['created_at']
    date_hierarchy = 'paid_at'
    list_select_related = ['membership__player', 'team']
