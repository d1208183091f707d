"""Reporting service - per-member statements annotated with paid status."""

from dataclasses import dataclass
from typing import Any

from apps.lunches.models import LunchEntry
from .member_management import get_member
from .reconciliation import (
    PaidStatusResolver,
    effective_price,
    get_active_policy,
    payments_for_members,
    validate_meal_price,
    validate_range,
)
from .exceptions import MissingParameterError
from .validation import translate_storage_errors


@dataclass(frozen=True)
class StatementLine:
    """One lunch entry on a member statement."""
    entry: LunchEntry
    is_paid: bool
    effective_price: int
    amount: int


def build_statement(entries, resolver: PaidStatusResolver, *, meal_price: int) -> list:
    """Annotate entries with paid status and line amounts, keeping their order."""
    lines = []
    for entry in entries:
        price = effective_price(entry.price, meal_price)
        lines.append(StatementLine(
            entry=entry,
            is_paid=resolver.is_paid(entry.member_id, entry.date),
            effective_price=price,
            amount=entry.quantity * price,
        ))
    return lines


@translate_storage_errors
def get_member_report(
    *,
    member_id: Any,
    start_date: Any,
    end_date: Any,
    meal_price: Any = None
) -> dict:
    """
    Build a statement of one member's lunches over a date range.

    Entries are listed oldest first, not aggregated. Paid status comes
    from the same resolver used for debt computation, so the statement
    always agrees with the debt summary.

    Args:
        member_id: UUID of member
        start_date: Inclusive lower bound
        end_date: Inclusive upper bound
        meal_price: Default unit price for entries without one

    Returns:
        Dictionary with:
        - member: Member instance
        - start_date / end_date: date
        - meal_price: int - Default price applied
        - policy: str - Active paid-status policy
        - lines: list[StatementLine]
        - total_amount: int - Sum of all line amounts
        - unpaid_amount: int - Sum of unpaid line amounts

    Raises:
        MissingParameterError: If member_id or a bound is missing/invalid
        InvalidRangeError: If start_date is after end_date
        MemberNotFoundError: If member doesn't exist
    """
    if member_id in (None, ''):
        raise MissingParameterError("member_id is required")
    start, end = validate_range(start_date, end_date)
    price = validate_meal_price(meal_price)
    member = get_member(member_id=member_id)

    entries = (
        LunchEntry.objects
        .select_related('member')
        .filter(member=member, date__gte=start, date__lte=end)
        .order_by('date')
    )
    resolver = PaidStatusResolver(
        payments_for_members([member.id]),
        get_active_policy()
    )
    lines = build_statement(entries, resolver, meal_price=price)

    return {
        'member': member,
        'start_date': start,
        'end_date': end,
        'meal_price': price,
        'policy': resolver.policy.value,
        'lines': lines,
        'total_amount': sum(line.amount for line in lines),
        'unpaid_amount': sum(line.amount for line in lines if not line.is_paid),
    }
