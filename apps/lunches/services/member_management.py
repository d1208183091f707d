"""Member management service - CRUD operations for members."""

import logging
from typing import Optional
from uuid import UUID

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from apps.lunches.models import Member
from .exceptions import MemberNotFoundError, MissingParameterError
from .validation import translate_storage_errors

logger = logging.getLogger(__name__)


@translate_storage_errors
def list_members(*, active_only: bool = False) -> QuerySet:
    """
    List members ordered by name.

    Args:
        active_only: Only return members that can still log lunches

    Returns:
        QuerySet of Member instances
    """
    queryset = Member.objects.all()
    if active_only:
        queryset = queryset.filter(is_active=True)
    return queryset.order_by('name')


@translate_storage_errors
def get_member(*, member_id: UUID) -> Member:
    """
    Retrieve a member by ID.

    Raises:
        MemberNotFoundError: If member doesn't exist
    """
    try:
        return Member.objects.get(id=member_id)
    except (Member.DoesNotExist, ValidationError):
        raise MemberNotFoundError(f"Member {member_id} not found")


@translate_storage_errors
@transaction.atomic
def create_member(*, name: str, is_active: Optional[bool] = None) -> Member:
    """
    Create a new member.

    Args:
        name: Display name (required, surrounding whitespace stripped)
        is_active: Defaults to True when omitted

    Returns:
        Created Member instance

    Raises:
        MissingParameterError: If name is blank
    """
    name = str(name or '').strip()
    if not name:
        raise MissingParameterError("name is required")

    member = Member.objects.create(
        name=name,
        is_active=True if is_active is None else bool(is_active),
    )
    logger.info("Created member %s (%s)", member.id, member.name)
    return member


@translate_storage_errors
@transaction.atomic
def update_member(
    *,
    member_id: UUID,
    name: Optional[str] = None,
    is_active: Optional[bool] = None
) -> Member:
    """
    Update a member's name and/or active flag.

    Only provided fields are changed.

    Raises:
        MemberNotFoundError: If member doesn't exist
        MissingParameterError: If name is given but blank
    """
    member = get_member(member_id=member_id)

    if name is not None:
        name = str(name).strip()
        if not name:
            raise MissingParameterError("name cannot be blank")
        member.name = name
    if is_active is not None:
        member.is_active = bool(is_active)

    member.save()
    logger.info("Updated member %s (%s)", member.id, member.name)
    return member


@translate_storage_errors
@transaction.atomic
def delete_member(*, member_id: UUID) -> None:
    """
    Delete a member along with their entries and payments.

    Raises:
        MemberNotFoundError: If member doesn't exist
    """
    member = get_member(member_id=member_id)
    member.delete()
    logger.info("Deleted member %s", member_id)
