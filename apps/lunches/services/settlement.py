"""
Settlement service - turning a computed debt into a payment.

The payment written here is what moves future reconciliation results.
Its ``start_date`` is the start of the settled range and its
``end_date`` is the day the user chose to settle through, so under
either policy every entry in ``[start_date, payment_end_date]`` is
covered afterwards. Under the milestone policy the new end date also
becomes the member's paid-through watermark, which covers older
unpaid entries as well.
"""

import logging
from typing import Any, Optional

from django.db import transaction

from apps.lunches.models import Payment
from .exceptions import InvalidAmountError, InvalidRangeError, MissingParameterError
from .member_management import get_member
from .payment_management import create_payment
from .reconciliation import compute_member_debt
from .validation import require_date, translate_storage_errors

logger = logging.getLogger(__name__)


def settlement_note(*, total_meals: int, start_date, end_date, note: Optional[str] = None) -> str:
    """Describe a settlement payment; a caller note is appended when given."""
    text = f"Settled {total_meals} meal(s) from {start_date.isoformat()} to {end_date.isoformat()}"
    if note:
        text = f"{text}. {note.strip()}"
    return text


@translate_storage_errors
@transaction.atomic
def settle_debt(
    *,
    member_id: Any,
    start_date: Any,
    end_date: Any,
    payment_end_date: Any = None,
    meal_price: Any = None,
    note: Optional[str] = None
) -> Payment:
    """
    Mark a member's computed debt as paid.

    This operation:
    1. Recomputes the member's own debt over ``[start_date, end_date]``
    2. Validates ``payment_end_date >= start_date``
    3. Creates a Payment for the full outstanding amount with
       ``start_date`` and ``end_date = payment_end_date``

    Args:
        member_id: UUID of the member settling up
        start_date: Start of the debt range (becomes payment start_date)
        end_date: End of the debt range
        payment_end_date: Day the payment settles through; defaults to end_date
        meal_price: Default unit price used to compute the debt
        note: Extra text appended to the generated note

    Returns:
        Created Payment instance

    Raises:
        MissingParameterError: If member_id or a date is missing or invalid
        InvalidRangeError: If the debt range is inverted, or
            payment_end_date is before start_date
        InvalidAmountError: If the member owes nothing in the range
        MemberNotFoundError: If member doesn't exist
    """
    if member_id in (None, ''):
        raise MissingParameterError("member_id is required")
    member = get_member(member_id=member_id)
    summary = compute_member_debt(
        member_id=member.id,
        start_date=start_date,
        end_date=end_date,
        meal_price=meal_price,
    )

    if payment_end_date in (None, ''):
        settle_through = summary.end_date
    else:
        settle_through = require_date(payment_end_date, 'payment_end_date')
    if settle_through < summary.start_date:
        raise InvalidRangeError("payment_end_date must be on or after start_date")

    debt = next((d for d in summary.debts if d.member_id == member.id), None)
    if debt is None or debt.total_amount <= 0:
        raise InvalidAmountError(
            f"{member.name} has nothing to settle between "
            f"{summary.start_date} and {summary.end_date}"
        )

    payment = create_payment(
        member_id=member.id,
        start_date=summary.start_date,
        end_date=settle_through,
        amount=debt.total_amount,
        note=settlement_note(
            total_meals=debt.total_meals,
            start_date=summary.start_date,
            end_date=settle_through,
            note=note,
        ),
    )
    logger.info(
        "Settled %s through %s for %d (%s policy)",
        member.name, settle_through, debt.total_amount, summary.policy
    )
    return payment
