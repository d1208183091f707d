"""Entry management service - CRUD operations for lunch entries."""

import logging
from typing import Any, Optional
from uuid import UUID

from django.core.exceptions import ValidationError
from django.db import transaction, IntegrityError
from django.db.models import QuerySet

from apps.lunches.models import LunchEntry
from .exceptions import (
    DuplicateEntryError,
    EntryNotFoundError,
    InvalidRangeError,
    MissingParameterError,
)
from .member_management import get_member
from .validation import (
    coerce_price,
    coerce_quantity,
    optional_date,
    require_date,
    translate_storage_errors,
)

logger = logging.getLogger(__name__)

# Marks an update argument the caller did not send, so ``price=None``
# can still mean "clear the price".
UNSET: Any = object()


def _entries_with_member() -> QuerySet:
    return LunchEntry.objects.select_related('member')


@translate_storage_errors
def list_entries(*, start_date: Any = None, end_date: Any = None) -> QuerySet:
    """
    List lunch entries, oldest first, each joined with its member.

    Args:
        start_date: Optional inclusive lower bound
        end_date: Optional inclusive upper bound

    Returns:
        QuerySet of LunchEntry instances ordered by date

    Raises:
        MissingParameterError: If a bound is given but is not a date
        InvalidRangeError: If both bounds are given and inverted
    """
    start = optional_date(start_date, 'start_date')
    end = optional_date(end_date, 'end_date')
    if start and end and start > end:
        raise InvalidRangeError("start_date must be on or before end_date")

    queryset = _entries_with_member()
    if start:
        queryset = queryset.filter(date__gte=start)
    if end:
        queryset = queryset.filter(date__lte=end)
    return queryset.order_by('date', 'member__name', 'created_at')


@translate_storage_errors
def get_entry(*, entry_id: UUID) -> LunchEntry:
    """
    Retrieve a lunch entry by ID.

    Raises:
        EntryNotFoundError: If entry doesn't exist
    """
    try:
        return _entries_with_member().get(id=entry_id)
    except (LunchEntry.DoesNotExist, ValidationError):
        raise EntryNotFoundError(f"Lunch entry {entry_id} not found")


@translate_storage_errors
@transaction.atomic
def create_entry(
    *,
    member_id: UUID,
    date: Any,
    quantity: Any = None,
    price: Any = None,
    note: Optional[str] = None
) -> LunchEntry:
    """
    Record a member's lunch for one day.

    This operation:
    1. Validates member exists
    2. Coerces quantity (missing or non-positive becomes 1) and price
    3. Checks for an existing entry on (member, date)
    4. Creates the entry, mapping a unique-constraint race to a conflict

    Args:
        member_id: UUID of the member who ate
        date: Calendar day of the lunch
        quantity: Number of portions (default 1)
        price: Unit price in minor units, None to use the default at query time
        note: Free text

    Returns:
        Created LunchEntry instance

    Raises:
        MemberNotFoundError: If member doesn't exist
        MissingParameterError: If member_id or date is missing or invalid
        InvalidAmountError: If price is non-numeric or negative
        DuplicateEntryError: If the member already has an entry that day
    """
    if member_id in (None, ''):
        raise MissingParameterError("member_id is required")
    lunch_date = require_date(date, 'date')
    member = get_member(member_id=member_id)

    if LunchEntry.objects.filter(member=member, date=lunch_date).exists():
        raise DuplicateEntryError(
            f"{member.name} already has an entry for {lunch_date}"
        )

    try:
        with transaction.atomic():
            entry = LunchEntry.objects.create(
                member=member,
                date=lunch_date,
                quantity=coerce_quantity(quantity),
                price=coerce_price(price),
                note=note or '',
            )
    except IntegrityError:
        # Database unique constraint caught a concurrent insert
        raise DuplicateEntryError(
            f"{member.name} already has an entry for {lunch_date}"
        )

    logger.info("Created lunch entry %s for %s on %s", entry.id, member.name, lunch_date)
    return entry


@translate_storage_errors
@transaction.atomic
def update_entry(
    *,
    entry_id: UUID,
    member_id: Any = UNSET,
    date: Any = UNSET,
    quantity: Any = UNSET,
    price: Any = UNSET,
    note: Any = UNSET
) -> LunchEntry:
    """
    Partially update a lunch entry.

    Only arguments that are passed are changed. ``price=None`` clears
    the stored price so the default applies again.

    Raises:
        EntryNotFoundError: If entry doesn't exist
        MemberNotFoundError: If the new member doesn't exist
        MissingParameterError: If the new date is invalid
        InvalidAmountError: If the new price is invalid
        DuplicateEntryError: If the change collides with another entry
    """
    try:
        entry = (
            LunchEntry.objects
            .select_for_update()
            .select_related('member')
            .get(id=entry_id)
        )
    except (LunchEntry.DoesNotExist, ValidationError):
        raise EntryNotFoundError(f"Lunch entry {entry_id} not found")

    if member_id is not UNSET:
        entry.member = get_member(member_id=member_id)
    if date is not UNSET:
        entry.date = require_date(date, 'date')
    if quantity is not UNSET:
        entry.quantity = coerce_quantity(quantity)
    if price is not UNSET:
        entry.price = coerce_price(price)
    if note is not UNSET:
        entry.note = note or ''

    collision = LunchEntry.objects.filter(
        member=entry.member,
        date=entry.date
    ).exclude(id=entry.id).exists()
    if collision:
        raise DuplicateEntryError(
            f"{entry.member.name} already has an entry for {entry.date}"
        )

    try:
        with transaction.atomic():
            entry.save()
    except IntegrityError:
        raise DuplicateEntryError(
            f"{entry.member.name} already has an entry for {entry.date}"
        )

    logger.info("Updated lunch entry %s", entry.id)
    return entry


@translate_storage_errors
@transaction.atomic
def delete_entry(*, entry_id: UUID) -> None:
    """
    Delete a lunch entry.

    Raises:
        EntryNotFoundError: If entry doesn't exist
    """
    try:
        deleted, _ = LunchEntry.objects.filter(id=entry_id).delete()
    except ValidationError:
        deleted = 0
    if not deleted:
        raise EntryNotFoundError(f"Lunch entry {entry_id} not found")
    logger.info("Deleted lunch entry %s", entry_id)
