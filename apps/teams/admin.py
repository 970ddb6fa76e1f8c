# ==========================================
# apps/teams/admin.py
# ==========================================

from django.contrib import admin
from apps.teams.models import Team, Player, generate_join_token


class PlayerInline(admin.TabularInline):
    """Inline admin for a team's roster."""
    model = Player
    extra = 0
    fields = ['name', 'email', 'phone', 'created_at']
    readonly_fields = ['created_at']


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    """Admin interface for Teams."""

    list_display = [
        'name',
        'owner',
        'player_count',
        'amount',
        'currency',
        'billing_interval',
        'created_at'
    ]
    list_filter = ['billing_interval', 'currency', 'created_at']
    search_fields = ['name', 'owner__email', 'join_token']
    readonly_fields = ['join_token', 'created_at', 'updated_at']
    inlines = [PlayerInline]
    date_hierarchy = 'created_at'
    ordering = ['-created_at']

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'owner', 'expected_players', 'bank_instructions')
        }),
        ('Plan', {
            'fields': ('amount', 'currency', 'billing_interval')
        }),
        ('Due Date', {
            'fields': ('due_weekday', 'due_day_of_month', 'due_month_in_quarter'),
            'description': 'Weekday uses Sunday=0. Only the fields for the billing interval are used.'
        }),
        ('Join Link', {
            'fields': ('join_token',)
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def player_count(self, obj):
        """Show number of players."""
        return obj.players.count()
    player_count.short_description = 'Players'

    actions = ['rotate_join_tokens']

    def rotate_join_tokens(self, request, queryset):
        """Replace join tokens for selected teams."""
        for team in queryset:
            team.join_token = generate_join_token()
            team.save(update_fields=['join_token', 'updated_at'])
        self.message_user(request, f"Rotated join links for {queryset.count()} teams")
    rotate_join_tokens.short_description = "Rotate join links"


@admin.register(Player)
class PlayerAdmin(admin.ModelAdmin):
    """Admin interface for Players."""

    list_display = ['name', 'email', 'team', 'created_at']
    search_fields = ['name', 'email', 'team__name']
    readonly_fields = ['created_at', 'updated_at']
    ordering = ['team', 'name']
