"""
Reconciliation Module
=====================

Decides which lunch entries are paid and how much each member still owes.

The functions in the first half of this module are pure: they take plain
entries and payments (model instances or anything exposing the same
attributes) and never touch the database. The service functions at the
bottom fetch a point-in-time snapshot and hand it to them.

Paid status is decided by one policy for the whole process, chosen by
``settings.LUNCH_PAID_POLICY``:

    milestone
        Each member has a single "paid through" date, the latest
        ``end_date`` among their payments. An entry is paid when its date
        is on or before that watermark. ``start_date`` is informational.

    overlap
        An entry is paid when at least one of the member's payments has
        ``start_date <= entry.date <= end_date``. Gaps between payments
        stay unpaid.

Debt computation, the single-entry check and the member report all ask
the same ``PaidStatusResolver``, so they cannot disagree.

Example:
    Computing debt for one week::

        from apps.lunches.services import compute_weekly_debt

        summary = compute_weekly_debt(
            start_date='2024-01-01',
            end_date='2024-01-07',
        )
        for debt in summary.debts:
            print(f"{debt.member_name}: {debt.total_meals} meals, {debt.total_amount}")
"""

import locale
import logging
import unicodedata
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Iterable, Optional

from django.conf import settings

from apps.lunches.models import LunchEntry, Payment, PaidPolicy
from .exceptions import (
    InvalidAmountError,
    InvalidRangeError,
    MissingParameterError,
)
from .validation import require_date, resolve_meal_price, translate_storage_errors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeeklyDebt:
    """Unpaid meals and amount for one member over a date range."""
    member_id: Any
    member_name: str
    total_meals: int
    total_amount: int


@dataclass(frozen=True)
class DebtSummary:
    """Result of a debt computation over ``[start_date, end_date]``."""
    start_date: date
    end_date: date
    meal_price: int
    policy: str
    debts: tuple
    total_amount: int


def get_active_policy() -> PaidPolicy:
    """
    Return the paid-status policy configured for this process.

    Raises:
        ValueError: If ``LUNCH_PAID_POLICY`` is not a known policy
    """
    return PaidPolicy(getattr(settings, 'LUNCH_PAID_POLICY', PaidPolicy.OVERLAP))


def effective_price(price: Optional[int], default_price: int) -> int:
    """The entry's own price if set, else the default supplied for the query."""
    return price if price is not None else default_price


class PaidStatusResolver:
    """
    Answers "is this member's lunch on this day paid?" for one snapshot
    of payments under one policy.

    Build it once per request from every relevant payment, then query it
    for as many entries as needed.

    Example:
        >>> resolver = PaidStatusResolver(payments, PaidPolicy.OVERLAP)
        >>> resolver.is_paid(member.id, date(2024, 1, 3))
        True
    """

    def __init__(self, payments: Iterable[Any], policy: PaidPolicy):
        self.policy = PaidPolicy(policy)
        self._paid_through = {}
        self._intervals = {}

        for payment in payments:
            member_id = payment.member_id
            latest = self._paid_through.get(member_id)
            if latest is None or payment.end_date > latest:
                self._paid_through[member_id] = payment.end_date
            self._intervals.setdefault(member_id, []).append(
                (payment.start_date, payment.end_date)
            )

    def paid_through(self, member_id) -> Optional[date]:
        """Latest payment end date for the member, or None."""
        return self._paid_through.get(member_id)

    def is_paid(self, member_id, day: date) -> bool:
        if self.policy == PaidPolicy.MILESTONE:
            latest = self._paid_through.get(member_id)
            return latest is not None and day <= latest

        return any(
            start <= day <= end
            for start, end in self._intervals.get(member_id, ())
        )


def select_in_range(entries: Iterable[Any], start_date: date, end_date: date) -> list:
    """Entries dated within ``[start_date, end_date]``, both ends inclusive."""
    return [e for e in entries if start_date <= e.date <= end_date]


# Letters NFKD leaves whole. Vietnamese 'đ' is its own letter between d and e.
_BASE_LETTERS = str.maketrans({
    'đ': 'd\uffff',
    'ø': 'o',
    'ł': 'l',
    'æ': 'ae',
    'œ': 'oe',
})


def _collate(text: str) -> str:
    try:
        return locale.strxfrm(text)
    except (ValueError, OSError):
        return text


def _name_key(name: str) -> tuple:
    # Base letters first, so accents and case never split a letter group.
    # The process locale only orders names that fold to the same letters.
    lowered = name.casefold()
    folded = unicodedata.normalize('NFKD', lowered.translate(_BASE_LETTERS))
    stripped = ''.join(c for c in folded if not unicodedata.combining(c))
    return stripped, _collate(lowered)


def sort_debts(debts: Iterable[WeeklyDebt]) -> tuple:
    """Order debts by member display name, member id breaking ties."""
    return tuple(sorted(
        debts,
        key=lambda d: (_name_key(d.member_name), d.member_name, str(d.member_id))
    ))


def aggregate_debts(
    entries: Iterable[Any],
    resolver: PaidStatusResolver,
    *,
    start_date: date,
    end_date: date,
    meal_price: int
) -> tuple:
    """
    Fold unpaid entries in range into one ``WeeklyDebt`` per member.

    Members whose entries are all paid are left out entirely rather than
    reported with zeros. Every entry needs ``member.name`` available.

    Returns:
        tuple of WeeklyDebt sorted by member name
    """
    totals = {}
    for entry in select_in_range(entries, start_date, end_date):
        if resolver.is_paid(entry.member_id, entry.date):
            continue

        quantity = entry.quantity or 1
        amount = quantity * effective_price(entry.price, meal_price)
        current = totals.get(entry.member_id)
        if current is None:
            totals[entry.member_id] = WeeklyDebt(
                member_id=entry.member_id,
                member_name=entry.member.name,
                total_meals=quantity,
                total_amount=amount,
            )
        else:
            totals[entry.member_id] = replace(
                current,
                total_meals=current.total_meals + quantity,
                total_amount=current.total_amount + amount,
            )

    return sort_debts(totals.values())


def compute_debts(
    entries: Iterable[Any],
    payments: Iterable[Any],
    *,
    start_date: date,
    end_date: date,
    meal_price: int,
    policy: PaidPolicy
) -> DebtSummary:
    """
    Pure debt computation over an in-memory snapshot.

    Args:
        entries: Lunch entries (any range; filtered here)
        payments: Payments for the members involved
        start_date: Inclusive lower bound of the query
        end_date: Inclusive upper bound of the query
        meal_price: Default unit price for entries without one
        policy: Paid-status policy to apply

    Returns:
        DebtSummary with debts sorted by member name and the grand total
    """
    resolver = PaidStatusResolver(payments, policy)
    debts = aggregate_debts(
        entries,
        resolver,
        start_date=start_date,
        end_date=end_date,
        meal_price=meal_price,
    )
    return DebtSummary(
        start_date=start_date,
        end_date=end_date,
        meal_price=meal_price,
        policy=resolver.policy.value,
        debts=debts,
        total_amount=sum(d.total_amount for d in debts),
    )


# =============================================================================
# Services
# =============================================================================

def validate_range(start_date: Any, end_date: Any) -> tuple:
    """
    Parse a required query range.

    Raises:
        MissingParameterError: If either bound is missing or invalid
        InvalidRangeError: If start_date is after end_date
    """
    start = require_date(start_date, 'start_date')
    end = require_date(end_date, 'end_date')
    if start > end:
        raise InvalidRangeError("start_date must be on or before end_date")
    return start, end


def validate_meal_price(meal_price: Any) -> int:
    """
    Resolve the default meal price for a query.

    Raises:
        InvalidAmountError: If the price is non-numeric or negative
    """
    try:
        return resolve_meal_price(meal_price)
    except InvalidAmountError:
        raise InvalidAmountError("meal_price must be a non-negative integer")


def payments_for_members(member_ids: Iterable[Any]):
    """All payments of the given members, regardless of their ranges."""
    return Payment.objects.filter(member_id__in=list(member_ids)).only(
        'id', 'member', 'start_date', 'end_date'
    )


def _summarize(entries, start: date, end: date, price: int) -> DebtSummary:
    # Point-in-time snapshot of entries in range and their members' payments
    entries = list(
        entries
        .select_related('member')
        .filter(date__gte=start, date__lte=end)
    )
    payments = list(payments_for_members({e.member_id for e in entries}))
    return compute_debts(
        entries,
        payments,
        start_date=start,
        end_date=end,
        meal_price=price,
        policy=get_active_policy(),
    )


@translate_storage_errors
def compute_weekly_debt(
    *,
    start_date: Any,
    end_date: Any,
    meal_price: Any = None
) -> DebtSummary:
    """
    Compute outstanding debt per member over ``[start_date, end_date]``.

    This operation:
    1. Validates the range and default meal price
    2. Fetches entries in range with their members
    3. Fetches every payment of the members involved
    4. Runs the pure computation under the active policy

    A range with no entries is not an error: it returns no debts and a
    zero total.

    Args:
        start_date: Inclusive lower bound (date or YYYY-MM-DD)
        end_date: Inclusive upper bound (date or YYYY-MM-DD)
        meal_price: Default unit price; settings default when omitted

    Returns:
        DebtSummary

    Raises:
        MissingParameterError: If a bound is missing or invalid
        InvalidRangeError: If start_date is after end_date
        InvalidAmountError: If meal_price is invalid
    """
    start, end = validate_range(start_date, end_date)
    price = validate_meal_price(meal_price)

    summary = _summarize(LunchEntry.objects.all(), start, end, price)
    logger.debug(
        "Weekly debt %s..%s (%s): %d member(s), total %d",
        start, end, summary.policy, len(summary.debts), summary.total_amount
    )
    return summary


@translate_storage_errors
def compute_member_debt(
    *,
    member_id: Any,
    start_date: Any,
    end_date: Any,
    meal_price: Any = None
) -> DebtSummary:
    """
    Compute one member's outstanding debt over ``[start_date, end_date]``.

    Same rules as ``compute_weekly_debt``, but only the member's own
    entries and payments are fetched. ``debts`` holds at most one item.

    Raises:
        MissingParameterError: If a bound is missing or invalid
        InvalidRangeError: If start_date is after end_date
        InvalidAmountError: If meal_price is invalid
    """
    start, end = validate_range(start_date, end_date)
    price = validate_meal_price(meal_price)
    return _summarize(LunchEntry.objects.filter(member_id=member_id), start, end, price)


@translate_storage_errors
def is_entry_paid(*, entry_id) -> bool:
    """
    Check whether a single lunch entry is covered by a payment.

    Uses the same resolver and policy as ``compute_weekly_debt``.

    Raises:
        MissingParameterError: If entry_id is missing
        EntryNotFoundError: If entry doesn't exist
    """
    from .entry_management import get_entry

    if entry_id in (None, ''):
        raise MissingParameterError("entry_id is required")
    entry = get_entry(entry_id=entry_id)
    resolver = PaidStatusResolver(
        payments_for_members([entry.member_id]),
        get_active_policy()
    )
    return resolver.is_paid(entry.member_id, entry.date)
