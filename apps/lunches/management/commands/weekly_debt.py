"""
Management command to print who owes what for a date range.

Uses the same reconciliation service as the API, so the numbers match
``GET /api/weekly-debt/``.

Usage:
    python manage.py weekly_debt --start 2024-01-01 --end 2024-01-07
    python manage.py weekly_debt --start 2024-01-01 --end 2024-01-07 --meal-price 35000
"""

from django.core.management.base import BaseCommand, CommandError
from apps.lunches.services import compute_weekly_debt, LunchesServiceError


class Command(BaseCommand):
    help = 'Print unpaid meals and amounts per member for a date range'

    def add_arguments(self, parser):
        parser.add_argument(
            '--start',
            required=True,
            help='Inclusive start date (YYYY-MM-DD)',
        )
        parser.add_argument(
            '--end',
            required=True,
            help='Inclusive end date (YYYY-MM-DD)',
        )
        parser.add_argument(
            '--meal-price',
            type=int,
            default=None,
            help='Default unit price in minor units (defaults to LUNCH_DEFAULT_MEAL_PRICE)',
        )

    def handle(self, *args, **options):
        try:
            summary = compute_weekly_debt(
                start_date=options['start'],
                end_date=options['end'],
                meal_price=options['meal_price'],
            )
        except LunchesServiceError as e:
            raise CommandError(str(e))

        self.stdout.write(
            f'\nDebt from {summary.start_date} to {summary.end_date} '
            f'(meal price {summary.meal_price}, {summary.policy} policy):\n'
        )

        if not summary.debts:
            self.stdout.write(
                self.style.SUCCESS('Nobody owes anything. All good!')
            )
            return

        for debt in summary.debts:
            self.stdout.write(
                f'  - {debt.member_name} | {debt.total_meals} meal(s) | {debt.total_amount}'
            )

        self.stdout.write(
            self.style.WARNING(f'\nTotal outstanding: {summary.total_amount}')
        )
