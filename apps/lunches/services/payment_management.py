"""Payment management service - recording and listing payments."""

import logging
from typing import Any, Optional

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from apps.lunches.models import Payment
from .exceptions import InvalidRangeError, MemberNotFoundError, MissingParameterError
from .member_management import get_member
from .validation import (
    optional_date,
    require_amount,
    require_date,
    translate_storage_errors,
)

logger = logging.getLogger(__name__)


@translate_storage_errors
@transaction.atomic
def create_payment(
    *,
    member_id: Any,
    start_date: Any,
    end_date: Any,
    amount: Any,
    note: Optional[str] = None
) -> Payment:
    """
    Record a payment covering ``[start_date, end_date]`` for a member.

    Payments are append-only: there is no update or delete counterpart.

    Args:
        member_id: UUID of the paying member
        start_date: First day covered (inclusive)
        end_date: Last day covered (inclusive)
        amount: Positive integer in minor units
        note: Free text

    Returns:
        Created Payment instance

    Raises:
        MissingParameterError: If member_id or a date is missing/invalid
        InvalidRangeError: If start_date is after end_date
        InvalidAmountError: If amount is missing, non-numeric or not positive
        MemberNotFoundError: If member doesn't exist
    """
    if member_id in (None, ''):
        raise MissingParameterError("member_id is required")
    start = require_date(start_date, 'start_date')
    end = require_date(end_date, 'end_date')
    if start > end:
        raise InvalidRangeError("start_date must be on or before end_date")
    value = require_amount(amount)

    member = get_member(member_id=member_id)
    payment = Payment.objects.create(
        member=member,
        start_date=start,
        end_date=end,
        amount=value,
        note=note or '',
    )
    logger.info(
        "Recorded payment %s: %s paid %d for %s..%s",
        payment.id, member.name, value, start, end
    )
    return payment


@translate_storage_errors
def list_payments(
    *,
    member_id: Any = None,
    start_date: Any = None,
    end_date: Any = None
) -> QuerySet:
    """
    List payments, newest first.

    Args:
        member_id: Only payments of this member
        start_date: Only payments starting on or after this day
        end_date: Only payments ending on or before this day

    Returns:
        QuerySet of Payment instances

    Raises:
        MissingParameterError: If a date filter is not a valid date
        MemberNotFoundError: If member_id is not a valid identifier
    """
    start = optional_date(start_date, 'start_date')
    end = optional_date(end_date, 'end_date')

    queryset = Payment.objects.select_related('member')
    if member_id not in (None, ''):
        try:
            queryset = queryset.filter(member_id=member_id)
        except ValidationError:
            raise MemberNotFoundError(f"Member {member_id} not found")
    if start:
        queryset = queryset.filter(start_date__gte=start)
    if end:
        queryset = queryset.filter(end_date__lte=end)
    return queryset.order_by('-created_at')
