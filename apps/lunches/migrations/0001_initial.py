# Generated manually for the lunches app

import uuid
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Member',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=100)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'members',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='LunchEntry',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('date', models.DateField()),
                ('quantity', models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])),
                ('price', models.PositiveIntegerField(blank=True, null=True)),
                ('note', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('member', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lunch_entries', to='lunches.member')),
            ],
            options={
                'db_table': 'lunch_entries',
                'ordering': ['date', 'created_at'],
                'unique_together': {('member', 'date')},
            },
        ),
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('start_date', models.DateField()),
                ('end_date', models.DateField()),
                ('amount', models.PositiveIntegerField(validators=[MinValueValidator(1)])),
                ('note', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('member', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payments', to='lunches.member')),
            ],
            options={
                'db_table': 'payments',
                'ordering': ['-created_at'],
            },
        ),
        # Indexes for Member
        migrations.AddIndex(
            model_name='member',
            index=models.Index(fields=['is_active'], name='members_is_active_idx'),
        ),
        # Indexes for LunchEntry
        migrations.AddIndex(
            model_name='lunchentry',
            index=models.Index(fields=['date'], name='lunch_entries_date_idx'),
        ),
        migrations.AddIndex(
            model_name='lunchentry',
            index=models.Index(fields=['member', 'date'], name='lunch_entries_member_date_idx'),
        ),
        # Indexes for Payment
        migrations.AddIndex(
            model_name='payment',
            index=models.Index(fields=['member', 'end_date'], name='payments_member_end_idx'),
        ),
        migrations.AddIndex(
            model_name='payment',
            index=models.Index(fields=['member', 'start_date', 'end_date'], name='payments_member_range_idx'),
        ),
        migrations.AddIndex(
            model_name='payment',
            index=models.Index(fields=['created_at'], name='payments_created_at_idx'),
        ),
    ]
