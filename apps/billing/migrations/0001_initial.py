# Generated manually for billing app

import uuid
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('teams', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Membership',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('active', 'Active'), ('due', 'Due'), ('overdue', 'Overdue'), ('canceled', 'Canceled')], default='pending', max_length=20)),
                ('billing_type', models.CharField(choices=[('subscription', 'Subscription'), ('one_off', 'One-off'), ('bank_transfer', 'Bank transfer'), ('manual', 'Manual')], default='subscription', max_length=20)),
                ('plan_interval', models.CharField(blank=True, choices=[('week', 'Weekly'), ('month', 'Monthly'), ('quarter', 'Quarterly')], max_length=10, null=True)),
                ('next_due_at', models.DateTimeField(blank=True, null=True)),
                ('last_paid_at', models.DateTimeField(blank=True, null=True)),
                ('canceled_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('player', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='membership', to='teams.player')),
                ('team', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='memberships', to='teams.team')),
            ],
            options={
                'db_table': 'memberships',
                'ordering': ['created_at'],
                'indexes': [
                    models.Index(fields=['status', 'next_due_at'], name='memberships_status_due_idx'),
                    models.Index(fields=['team', 'status'], name='memberships_team_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('amount', models.PositiveIntegerField()),
                ('currency', models.CharField(choices=[('gbp', 'GBP'), ('usd', 'USD'), ('eur', 'EUR')], default='gbp', max_length=3)),
                ('method', models.CharField(choices=[('card', 'Card'), ('bank_transfer', 'Bank transfer'), ('manual', 'Manual')], default='card', max_length=20)),
                ('provider_reference', models.CharField(blank=True, max_length=255, null=True, unique=True)),
                ('note', models.CharField(blank=True, max_length=200)),
                ('paid_at', models.DateTimeField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('membership', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payments', to='billing.membership')),
                ('team', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payments', to='teams.team')),
            ],
            options={
                'db_table': 'payments',
                'ordering': ['-paid_at'],
                'indexes': [
                    models.Index(fields=['team', 'paid_at'], name='payments_team_paid_idx'),
                    models.Index(fields=['membership', 'paid_at'], name='payments_membership_paid_idx'),
                ],
            },
        ),
    ]
