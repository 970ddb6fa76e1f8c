"""
Management command to advance membership statuses.

Meant to be run periodically (cron, scheduler). Promotes active memberships
past their due date to due, and due memberships past the grace period to
overdue.

Usage:
    python manage.py sweep_memberships
    python manage.py sweep_memberships --now 2025-03-01T00:00:00Z --dry-run
"""

from datetime import timezone as dt_timezone

from django.core.management.base import BaseCommand, CommandError
from django.utils.dateparse import parse_datetime
from django.utils import timezone

from apps.billing.services import sweep_memberships


class Command(BaseCommand):
    help = 'Promote memberships active -> due -> overdue based on their due dates'

    def add_arguments(self, parser):
        parser.add_argument(
            '--now',
            help='Evaluate as of this ISO 8601 instant instead of the current time',
        )
        parser.add_argument(
            '--grace-days',
            type=int,
            help='Days between due and overdue (defaults to BILLING_GRACE_PERIOD_DAYS)',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be updated without making changes',
        )

    def handle(self, *args, **options):
        now = None
        if options['now']:
            try:
                now = parse_datetime(options['now'])
            except ValueError:
                now = None
            if now is None:
                raise CommandError(f"--now must be an ISO 8601 datetime, got '{options['now']}'")
            if timezone.is_naive(now):
                now = timezone.make_aware(now, dt_timezone.utc)

        grace_days = options['grace_days']
        if grace_days is not None and grace_days < 0:
            raise CommandError('--grace-days cannot be negative')

        result = sweep_memberships(
            now=now,
            grace_period_days=grace_days,
            dry_run=options['dry_run'],
        )

        self.stdout.write(
            f'Evaluated at {result.evaluated_at.isoformat()} '
            f'(grace period {result.grace_period_days} days)'
        )

        if result.dry_run:
            self.stdout.write(
                self.style.WARNING(
                    f'--dry-run mode: {result.promoted_to_due} would become due, '
                    f'{result.promoted_to_overdue} would become overdue. No changes made.'
                )
            )
            return

        self.stdout.write(
            self.style.SUCCESS(
                f'{result.promoted_to_due} membership(s) now due, '
                f'{result.promoted_to_overdue} membership(s) now overdue.'
            )
        )
