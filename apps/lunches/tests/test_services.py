"""
Service layer unit tests for lunches app.

Tests cover:
- Member and entry CRUD with input coercion
- One entry per member per day
- Payment validation and filtering
- Debt computation against the database under both policies
- Settlement and member statements
- Error handling
"""

import pytest
from datetime import date
from uuid import uuid4
from django.db import DatabaseError

from apps.lunches.models import Member, LunchEntry, Payment
from apps.lunches.services import (
    list_members,
    get_member,
    create_member,
    update_member,
    delete_member,
    list_entries,
    get_entry,
    create_entry,
    update_entry,
    delete_entry,
    create_payment,
    list_payments,
    compute_weekly_debt,
    compute_member_debt,
    is_entry_paid,
    settle_debt,
    get_member_report,
)
from apps.lunches.services.exceptions import (
    MemberNotFoundError,
    EntryNotFoundError,
    DuplicateEntryError,
    InvalidRangeError,
    InvalidAmountError,
    MissingParameterError,
    StorageError,
)
from apps.lunches.services.validation import translate_storage_errors


# =============================================================================
# Member Management Service Tests
# =============================================================================

@pytest.mark.django_db
class TestMemberManagement:
    """Tests for member_management.py service functions."""

    def test_create_member_strips_name(self):
        """Names are stored without surrounding whitespace."""
        member = create_member(name='  An  ')

        assert member.name == 'An'
        assert member.is_active is True

    def test_create_member_blank_name(self):
        """A blank name is rejected."""
        with pytest.raises(MissingParameterError):
            create_member(name='   ')

    def test_list_members_ordered_by_name(self, member_binh, member_an, inactive_member):
        """Members come back alphabetically."""
        names = [m.name for m in list_members()]

        assert names == ['An', 'Bình', 'Cuong']

    def test_list_members_active_only(self, member_an, inactive_member):
        """Inactive members can be filtered out."""
        members = list(list_members(active_only=True))

        assert members == [member_an]

    def test_update_member_partial(self, member_an):
        """Only supplied fields change."""
        member = update_member(member_id=member_an.id, is_active=False)

        assert member.name == 'An'
        assert member.is_active is False

    def test_get_member_not_found(self):
        """Unknown IDs raise MemberNotFoundError."""
        with pytest.raises(MemberNotFoundError):
            get_member(member_id=uuid4())

    def test_get_member_malformed_id(self):
        """A malformed ID is treated as not found."""
        with pytest.raises(MemberNotFoundError):
            get_member(member_id='not-a-uuid')

    def test_delete_member_removes_history(self, member_an, entry_default_price, an_first_day_payment):
        """Deleting a member deletes their entries and payments."""
        delete_member(member_id=member_an.id)

        assert not Member.objects.filter(id=member_an.id).exists()
        assert LunchEntry.objects.count() == 0
        assert Payment.objects.count() == 0


# =============================================================================
# Entry Store Service Tests
# =============================================================================

@pytest.mark.django_db
class TestEntryManagement:
    """Tests for entry_management.py service functions."""

    def test_create_entry_defaults(self, member_an):
        """Quantity defaults to 1 and price stays unset."""
        entry = create_entry(member_id=member_an.id, date='2024-01-03')

        assert entry.date == date(2024, 1, 3)
        assert entry.quantity == 1
        assert entry.price is None
        assert entry.note == ''

    @pytest.mark.parametrize('quantity', [0, -2, None, 'lots'])
    def test_create_entry_coerces_quantity(self, member_an, quantity):
        """Missing or non-positive quantities become 1."""
        entry = create_entry(member_id=member_an.id, date='2024-01-03', quantity=quantity)

        assert entry.quantity == 1

    def test_create_entry_rejects_negative_price(self, member_an):
        """Negative prices are invalid amounts."""
        with pytest.raises(InvalidAmountError):
            create_entry(member_id=member_an.id, date='2024-01-03', price=-1)

    def test_create_entry_requires_date(self, member_an):
        """Date is mandatory."""
        with pytest.raises(MissingParameterError):
            create_entry(member_id=member_an.id, date=None)

    def test_create_entry_requires_member(self):
        """member_id is mandatory."""
        with pytest.raises(MissingParameterError):
            create_entry(member_id=None, date='2024-01-03')

    def test_create_entry_unknown_member(self):
        """Entries cannot be logged for unknown members."""
        with pytest.raises(MemberNotFoundError):
            create_entry(member_id=uuid4(), date='2024-01-03')

    def test_second_entry_same_day_rejected(self, member_an, entry_default_price):
        """Only one entry per member per day."""
        with pytest.raises(DuplicateEntryError):
            create_entry(member_id=member_an.id, date=entry_default_price.date, quantity=2)

        assert LunchEntry.objects.filter(member=member_an, date=entry_default_price.date).count() == 1

    def test_same_day_different_members_allowed(self, member_binh, entry_default_price):
        """The uniqueness is per member."""
        entry = create_entry(member_id=member_binh.id, date=entry_default_price.date)

        assert entry.member == member_binh

    def test_update_entry_collision_rejected(self, an_entries):
        """Moving an entry onto an occupied day is a conflict."""
        first, second = an_entries

        with pytest.raises(DuplicateEntryError):
            update_entry(entry_id=second.id, date=first.date)

        second.refresh_from_db()
        assert second.date == date(2024, 1, 8)

    def test_update_entry_keeps_own_day(self, entry_own_price):
        """Re-saving an entry on its own day is not a collision."""
        entry = update_entry(entry_id=entry_own_price.id, date=entry_own_price.date, quantity=3)

        assert entry.quantity == 3
        assert entry.price == 50000

    def test_update_entry_clears_price(self, entry_own_price):
        """price=None returns the entry to the default price."""
        entry = update_entry(entry_id=entry_own_price.id, price=None)

        assert entry.price is None
        assert entry.note == 'Team outing'

    def test_update_entry_not_found(self):
        """Updating a missing entry raises EntryNotFoundError."""
        with pytest.raises(EntryNotFoundError):
            update_entry(entry_id=uuid4(), quantity=2)

    def test_delete_entry(self, entry_default_price):
        """Deleted entries are gone."""
        delete_entry(entry_id=entry_default_price.id)

        with pytest.raises(EntryNotFoundError):
            get_entry(entry_id=entry_default_price.id)

    def test_delete_entry_not_found(self):
        """Deleting a missing entry raises EntryNotFoundError."""
        with pytest.raises(EntryNotFoundError):
            delete_entry(entry_id=uuid4())

    def test_list_entries_range_is_inclusive(self, binh_week):
        """Both bounds of the filter are included."""
        entries = list(list_entries(start_date='2024-01-02', end_date='2024-01-04'))

        assert [e.date.day for e in entries] == [2, 3, 4]

    def test_list_entries_inverted_range(self):
        """start_date after end_date is rejected."""
        with pytest.raises(InvalidRangeError):
            list_entries(start_date='2024-01-05', end_date='2024-01-01')


# =============================================================================
# Payment Store Service Tests
# =============================================================================

@pytest.mark.django_db
class TestPaymentManagement:
    """Tests for payment_management.py service functions."""

    def test_create_payment(self, member_an):
        """A valid payment is stored as given."""
        payment = create_payment(
            member_id=member_an.id,
            start_date='2024-01-01',
            end_date='2024-01-07',
            amount='90000',
            note='Cash',
        )

        assert payment.amount == 90000
        assert payment.start_date == date(2024, 1, 1)
        assert payment.end_date == date(2024, 1, 7)
        assert payment.note == 'Cash'

    def test_create_payment_single_day(self, member_an):
        """start_date equal to end_date is a valid one-day payment."""
        payment = create_payment(
            member_id=member_an.id,
            start_date='2024-01-01',
            end_date='2024-01-01',
            amount=30000,
        )

        assert payment.start_date == payment.end_date == date(2024, 1, 1)

    def test_create_payment_inverted_range(self, member_an):
        """start_date after end_date is rejected."""
        with pytest.raises(InvalidRangeError):
            create_payment(
                member_id=member_an.id,
                start_date='2024-01-07',
                end_date='2024-01-01',
                amount=30000,
            )

    @pytest.mark.parametrize('amount', [0, -5, None, 'abc'])
    def test_create_payment_invalid_amount(self, member_an, amount):
        """Amounts must be positive integers."""
        with pytest.raises(InvalidAmountError):
            create_payment(
                member_id=member_an.id,
                start_date='2024-01-01',
                end_date='2024-01-07',
                amount=amount,
            )

        assert Payment.objects.count() == 0

    def test_create_payment_requires_member(self):
        """member_id is mandatory."""
        with pytest.raises(MissingParameterError):
            create_payment(member_id='', start_date='2024-01-01', end_date='2024-01-01', amount=1)

    def test_create_payment_requires_dates(self, member_an):
        """Both dates are mandatory."""
        with pytest.raises(MissingParameterError):
            create_payment(member_id=member_an.id, start_date=None, end_date='2024-01-01', amount=1)

    def test_list_payments_newest_first(self, member_an):
        """Payments are listed by creation time, newest first."""
        older = create_payment(member_id=member_an.id, start_date='2024-01-01', end_date='2024-01-01', amount=1)
        newer = create_payment(member_id=member_an.id, start_date='2024-01-02', end_date='2024-01-02', amount=1)

        assert list(list_payments()) == [newer, older]

    def test_list_payments_filters(self, member_an, member_binh):
        """Filters narrow by member, start_date >= and end_date <=."""
        inside = create_payment(member_id=member_an.id, start_date='2024-01-02', end_date='2024-01-05', amount=1)
        create_payment(member_id=member_an.id, start_date='2024-01-01', end_date='2024-01-05', amount=1)
        create_payment(member_id=member_an.id, start_date='2024-01-02', end_date='2024-01-09', amount=1)
        create_payment(member_id=member_binh.id, start_date='2024-01-02', end_date='2024-01-05', amount=1)

        payments = list(list_payments(
            member_id=str(member_an.id),
            start_date='2024-01-02',
            end_date='2024-01-05',
        ))

        assert payments == [inside]


# =============================================================================
# Reconciliation Service Tests
# =============================================================================

@pytest.mark.django_db
class TestComputeWeeklyDebt:
    """Tests for compute_weekly_debt against stored data."""

    def test_worked_example(self, milestone_policy, default_meal_price, member_an, an_entries):
        """An owes 130000 for three meals, then 100000 after paying for the first day."""
        summary = compute_weekly_debt(start_date='2024-01-01', end_date='2024-01-08')

        assert len(summary.debts) == 1
        assert summary.debts[0].member_id == member_an.id
        assert summary.debts[0].total_meals == 3
        assert summary.debts[0].total_amount == 130000

        create_payment(member_id=member_an.id, start_date='2024-01-01', end_date='2024-01-01', amount=30000)
        summary = compute_weekly_debt(start_date='2024-01-01', end_date='2024-01-08')

        assert summary.debts[0].total_meals == 2
        assert summary.debts[0].total_amount == 100000
        assert summary.total_amount == 100000

    def test_empty_range(self, default_meal_price):
        """A range without entries returns no debts and a zero total."""
        summary = compute_weekly_debt(start_date='2030-01-01', end_date='2030-01-07')

        assert summary.debts == ()
        assert summary.total_amount == 0
        assert summary.meal_price == 30000

    def test_explicit_meal_price(self, binh_week):
        """The meal_price argument overrides the configured default."""
        summary = compute_weekly_debt(start_date='2024-01-01', end_date='2024-01-05', meal_price='1000')

        assert summary.debts[0].total_amount == 5000

    def test_payment_outside_range_counts_under_milestone(self, milestone_policy, member_an, entry_default_price):
        """A later payment pays earlier entries under milestone, even outside the query range."""
        create_payment(member_id=member_an.id, start_date='2024-02-01', end_date='2024-02-01', amount=1)

        summary = compute_weekly_debt(start_date='2024-01-01', end_date='2024-01-07')

        assert summary.debts == ()
        assert summary.policy == 'milestone'

    def test_payment_outside_range_ignored_under_overlap(self, overlap_policy, member_an, entry_default_price):
        """Under overlap only a payment containing the day matters."""
        create_payment(member_id=member_an.id, start_date='2024-02-01', end_date='2024-02-01', amount=1)

        summary = compute_weekly_debt(start_date='2024-01-01', end_date='2024-01-07')

        assert summary.debts[0].total_meals == 1
        assert summary.policy == 'overlap'

    def test_missing_bound(self):
        """Both bounds are required."""
        with pytest.raises(MissingParameterError):
            compute_weekly_debt(start_date='2024-01-01', end_date=None)

    def test_invalid_date(self):
        """Malformed dates are reported as missing parameters."""
        with pytest.raises(MissingParameterError):
            compute_weekly_debt(start_date='2024-13-01', end_date='2024-01-07')

    def test_inverted_range(self):
        """start_date after end_date is rejected."""
        with pytest.raises(InvalidRangeError):
            compute_weekly_debt(start_date='2024-01-08', end_date='2024-01-01')

    def test_negative_meal_price(self):
        """A negative default price is rejected."""
        with pytest.raises(InvalidAmountError):
            compute_weekly_debt(start_date='2024-01-01', end_date='2024-01-07', meal_price=-1)


@pytest.mark.django_db
class TestComputeMemberDebt:
    """Tests for compute_member_debt."""

    def test_only_the_member(self, default_meal_price, member_an, an_entries, binh_week):
        """Other members' meals in the range are left out."""
        summary = compute_member_debt(member_id=member_an.id, start_date='2024-01-01', end_date='2024-01-08')

        assert [d.member_id for d in summary.debts] == [member_an.id]
        assert summary.debts[0].total_amount == 130000
        assert summary.total_amount == 130000

    def test_matches_weekly_debt_row(self, default_meal_price, member_binh, an_entries, binh_week, an_first_day_payment):
        """The member's row agrees with the full summary."""
        full = compute_weekly_debt(start_date='2024-01-01', end_date='2024-01-08')
        own = compute_member_debt(member_id=member_binh.id, start_date='2024-01-01', end_date='2024-01-08')

        binh_row = next(d for d in full.debts if d.member_id == member_binh.id)
        assert own.debts == (binh_row,)

    def test_member_without_entries(self, default_meal_price, member_binh, an_entries):
        """A member with no meals in the range owes nothing."""
        summary = compute_member_debt(member_id=member_binh.id, start_date='2024-01-01', end_date='2024-01-08')

        assert summary.debts == ()
        assert summary.total_amount == 0


@pytest.mark.django_db
class TestIsEntryPaid:
    """Tests for the single-entry paid check."""

    def test_unpaid_without_payments(self, entry_default_price):
        """Nothing is paid before any payment exists."""
        assert is_entry_paid(entry_id=entry_default_price.id) is False

    def test_paid_when_covered(self, entry_default_price, an_first_day_payment):
        """An entry inside a payment interval is paid."""
        assert is_entry_paid(entry_id=entry_default_price.id) is True

    def test_policy_divergence(self, settings, member_binh, binh_week):
        """The check follows the configured policy, like the debt summary."""
        gap_entry = binh_week[2]  # 2024-01-03
        Payment.objects.create(member=member_binh, start_date=date(2024, 1, 1), end_date=date(2024, 1, 2), amount=1)
        Payment.objects.create(member=member_binh, start_date=date(2024, 1, 5), end_date=date(2024, 1, 5), amount=1)

        settings.LUNCH_PAID_POLICY = 'milestone'
        assert is_entry_paid(entry_id=gap_entry.id) is True

        settings.LUNCH_PAID_POLICY = 'overlap'
        assert is_entry_paid(entry_id=gap_entry.id) is False

    def test_missing_entry_id(self):
        """entry_id is mandatory."""
        with pytest.raises(MissingParameterError):
            is_entry_paid(entry_id='')

    def test_unknown_entry(self):
        """Unknown entries raise EntryNotFoundError."""
        with pytest.raises(EntryNotFoundError):
            is_entry_paid(entry_id=uuid4())


# =============================================================================
# Settlement Service Tests
# =============================================================================

@pytest.mark.django_db
class TestSettleDebt:
    """Tests for settle_debt."""

    @pytest.mark.parametrize('policy', ['milestone', 'overlap'])
    def test_settlement_clears_range(self, settings, default_meal_price, policy, member_an, member_binh, an_entries, binh_week):
        """After settling, the member owes nothing in the same range."""
        settings.LUNCH_PAID_POLICY = policy

        payment = settle_debt(member_id=member_an.id, start_date='2024-01-01', end_date='2024-01-08')

        assert payment.amount == 130000
        assert payment.start_date == date(2024, 1, 1)
        assert payment.end_date == date(2024, 1, 8)
        summary = compute_weekly_debt(start_date='2024-01-01', end_date='2024-01-08')
        assert [d.member_id for d in summary.debts] == [member_binh.id]

    def test_settlement_note(self, default_meal_price, member_an, an_entries):
        """The generated note describes the settlement and keeps the caller's text."""
        payment = settle_debt(
            member_id=member_an.id,
            start_date='2024-01-01',
            end_date='2024-01-08',
            note='Bank transfer',
        )

        assert payment.note == 'Settled 3 meal(s) from 2024-01-01 to 2024-01-08. Bank transfer'

    def test_payment_end_date_extends_coverage(self, overlap_policy, default_meal_price, member_an, an_entries):
        """payment_end_date sets the end of the written payment."""
        payment = settle_debt(
            member_id=member_an.id,
            start_date='2024-01-01',
            end_date='2024-01-08',
            payment_end_date='2024-01-14',
        )

        assert payment.end_date == date(2024, 1, 14)

    def test_payment_end_date_before_start(self, member_an, an_entries):
        """A settlement cannot end before it starts."""
        with pytest.raises(InvalidRangeError):
            settle_debt(
                member_id=member_an.id,
                start_date='2024-01-01',
                end_date='2024-01-08',
                payment_end_date='2023-12-31',
            )

        assert Payment.objects.count() == 0

    def test_nothing_to_settle(self, member_an, entry_default_price, an_first_day_payment):
        """A member with no unpaid meals cannot settle."""
        with pytest.raises(InvalidAmountError):
            settle_debt(member_id=member_an.id, start_date='2024-01-01', end_date='2024-01-01')

    def test_requires_member(self, member_an, an_entries):
        """member_id is mandatory."""
        with pytest.raises(MissingParameterError):
            settle_debt(member_id=None, start_date='2024-01-01', end_date='2024-01-08')

        assert Payment.objects.count() == 0

    def test_unknown_member(self):
        """Settling for an unknown member raises MemberNotFoundError."""
        with pytest.raises(MemberNotFoundError):
            settle_debt(member_id=uuid4(), start_date='2024-01-01', end_date='2024-01-07')


# =============================================================================
# Reporting Service Tests
# =============================================================================

@pytest.mark.django_db
class TestMemberReport:
    """Tests for get_member_report."""

    def test_report_lines_and_totals(self, overlap_policy, default_meal_price, member_an, an_entries, an_first_day_payment, binh_week):
        """Lines carry paid flags and amounts; totals split paid from unpaid."""
        report = get_member_report(member_id=member_an.id, start_date='2024-01-01', end_date='2024-01-31')

        assert report['member'] == member_an
        assert [line.entry.date for line in report['lines']] == [date(2024, 1, 1), date(2024, 1, 8)]
        assert [line.is_paid for line in report['lines']] == [True, False]
        assert [line.amount for line in report['lines']] == [30000, 100000]
        assert report['total_amount'] == 130000
        assert report['unpaid_amount'] == 100000
        assert report['policy'] == 'overlap'

    def test_report_agrees_with_debt_summary(self, settings, member_binh, binh_week):
        """The unpaid total matches the debt computation under both policies."""
        Payment.objects.create(member=member_binh, start_date=date(2024, 1, 1), end_date=date(2024, 1, 2), amount=1)
        Payment.objects.create(member=member_binh, start_date=date(2024, 1, 5), end_date=date(2024, 1, 5), amount=1)

        for policy in ('milestone', 'overlap'):
            settings.LUNCH_PAID_POLICY = policy
            report = get_member_report(member_id=member_binh.id, start_date='2024-01-01', end_date='2024-01-05')
            summary = compute_weekly_debt(start_date='2024-01-01', end_date='2024-01-05')
            assert report['unpaid_amount'] == summary.total_amount

    def test_report_empty_range(self, member_an):
        """A member without lunches gets an empty statement."""
        report = get_member_report(member_id=member_an.id, start_date='2024-01-01', end_date='2024-01-07')

        assert report['lines'] == []
        assert report['total_amount'] == 0

    def test_report_unknown_member(self):
        """Unknown members raise MemberNotFoundError."""
        with pytest.raises(MemberNotFoundError):
            get_member_report(member_id=uuid4(), start_date='2024-01-01', end_date='2024-01-07')

    def test_report_requires_member(self):
        """member_id is mandatory."""
        with pytest.raises(MissingParameterError):
            get_member_report(member_id=None, start_date='2024-01-01', end_date='2024-01-07')


# =============================================================================
# Error Translation Tests
# =============================================================================

class TestTranslateStorageErrors:
    """Tests for the storage error decorator."""

    def test_database_error_becomes_storage_error(self):
        """Unexpected database failures surface as StorageError."""
        @translate_storage_errors
        def failing():
            raise DatabaseError('connection lost')

        with pytest.raises(StorageError):
            failing()

    def test_domain_errors_pass_through(self):
        """Domain errors are not rewrapped."""
        @translate_storage_errors
        def failing():
            raise DuplicateEntryError('taken')

        with pytest.raises(DuplicateEntryError):
            failing()
