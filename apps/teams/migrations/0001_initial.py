# Generated manually for teams app

import uuid
from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Team',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=100)),
                ('join_token', models.CharField(db_index=True, editable=False, max_length=40, unique=True)),
                ('expected_players', models.PositiveIntegerField(default=0)),
                ('amount', models.PositiveIntegerField(validators=[MinValueValidator(100), MaxValueValidator(1000000)])),
                ('currency', models.CharField(choices=[('gbp', 'GBP'), ('usd', 'USD'), ('eur', 'EUR')], default='gbp', max_length=3)),
                ('billing_interval', models.CharField(choices=[('week', 'Weekly'), ('month', 'Monthly'), ('quarter', 'Quarterly')], default='month', max_length=10)),
                ('due_weekday', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('due_day_of_month', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('due_month_in_quarter', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('bank_instructions', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='managed_teams', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'teams',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['owner', 'created_at'], name='teams_owner_created_idx')],
            },
        ),
        migrations.CreateModel(
            name='Player',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=100)),
                ('email', models.EmailField(max_length=255)),
                ('phone', models.CharField(blank=True, max_length=32)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('team', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='players', to='teams.team')),
            ],
            options={
                'db_table': 'players',
                'ordering': ['name'],
                'unique_together': {('team', 'email')},
            },
        ),
    ]
