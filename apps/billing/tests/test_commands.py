import pytest
from datetime import timedelta
from io import StringIO
from django.core.management import call_command
from django.core.management.base import CommandError
from apps.billing.models import MembershipStatus
from apps.billing.tests.conftest import NOW


@pytest.mark.django_db
class TestSweepMembershipsCommand:
    """Tests for manage.py sweep_memberships"""

    def test_promotes_memberships(self, monthly_team, make_membership):
        due = make_membership(monthly_team, next_due_at=NOW - timedelta(days=1))
        overdue = make_membership(
            monthly_team,
            status=MembershipStatus.DUE,
            next_due_at=NOW - timedelta(days=8),
        )
        out = StringIO()

        call_command('sweep_memberships', '--now', '2024-01-15T09:30:00Z', '--grace-days', '7', stdout=out)

        due.refresh_from_db()
        overdue.refresh_from_db()
        assert due.status == MembershipStatus.DUE
        assert overdue.status == MembershipStatus.OVERDUE
        assert '1 membership(s) now due, 1 membership(s) now overdue' in out.getvalue()

    def test_dry_run(self, monthly_team, make_membership):
        membership = make_membership(monthly_team, next_due_at=NOW - timedelta(days=1))
        out = StringIO()

        call_command('sweep_memberships', '--now', '2024-01-15T09:30:00', '--dry-run', stdout=out)

        membership.refresh_from_db()
        assert membership.status == MembershipStatus.ACTIVE
        assert 'No changes made' in out.getvalue()

    def test_invalid_now(self, db):
        with pytest.raises(CommandError):
            call_command('sweep_memberships', '--now', 'yesterday', stdout=StringIO())

    def test_negative_grace(self, db):
        with pytest.raises(CommandError):
            call_command('sweep_memberships', '--grace-days', '-1', stdout=StringIO())
