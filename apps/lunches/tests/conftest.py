import pytest
from datetime import date
from rest_framework.test import APIClient
from apps.lunches.models import Member, LunchEntry, Payment, PaidPolicy


@pytest.fixture
def api_client():
    """Return an API client (the API has no authentication)."""
    return APIClient()


@pytest.fixture
def milestone_policy(settings):
    """Switch paid-status resolution to the milestone policy."""
    settings.LUNCH_PAID_POLICY = PaidPolicy.MILESTONE.value
    return PaidPolicy.MILESTONE


@pytest.fixture
def overlap_policy(settings):
    """Switch paid-status resolution to the overlap policy."""
    settings.LUNCH_PAID_POLICY = PaidPolicy.OVERLAP.value
    return PaidPolicy.OVERLAP


@pytest.fixture
def default_meal_price(settings):
    """Pin the default meal price used when a query supplies none."""
    settings.LUNCH_DEFAULT_MEAL_PRICE = 30000
    return 30000


@pytest.fixture
def member_an(db):
    """Create and return a member named An."""
    return Member.objects.create(name='An')


@pytest.fixture
def member_binh(db):
    """Create and return a member named Bình."""
    return Member.objects.create(name='Bình')


@pytest.fixture
def inactive_member(db):
    """Create and return a member who no longer logs lunches."""
    return Member.objects.create(name='Cuong', is_active=False)


@pytest.fixture
def entry_default_price(db, member_an):
    """An's lunch on 2024-01-01 without its own price."""
    return LunchEntry.objects.create(
        member=member_an,
        date=date(2024, 1, 1),
        quantity=1,
        price=None,
    )


@pytest.fixture
def entry_own_price(db, member_an):
    """An's double portion on 2024-01-08 at 50000 each."""
    return LunchEntry.objects.create(
        member=member_an,
        date=date(2024, 1, 8),
        quantity=2,
        price=50000,
        note='Team outing',
    )


@pytest.fixture
def an_entries(entry_default_price, entry_own_price):
    """Both of An's entries for the worked example."""
    return [entry_default_price, entry_own_price]


@pytest.fixture
def binh_week(db, member_binh):
    """Bình's lunches on 2024-01-01 through 2024-01-05, default price."""
    return [
        LunchEntry.objects.create(member=member_binh, date=date(2024, 1, day))
        for day in range(1, 6)
    ]


@pytest.fixture
def an_first_day_payment(db, member_an):
    """Payment covering exactly An's 2024-01-01 lunch."""
    return Payment.objects.create(
        member=member_an,
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 1),
        amount=30000,
    )
