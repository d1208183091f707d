"""
Input coercion shared by the lunches services.

Request bodies and query strings arrive as loosely typed values. Each
helper turns one of them into the exact Python type a service needs, or
raises the domain error that matches the failure.
"""

import functools
import logging
from datetime import date
from typing import Any, Optional

from django.db import DatabaseError
from django.utils.dateparse import parse_date

from .exceptions import (
    LunchesServiceError,
    InvalidAmountError,
    MissingParameterError,
    StorageError,
)

logger = logging.getLogger(__name__)


def require_date(value: Any, name: str) -> date:
    """
    Return ``value`` as a ``date``.

    Accepts ``date`` instances and ISO ``YYYY-MM-DD`` strings.

    Raises:
        MissingParameterError: If the value is empty or not a valid date
    """
    if isinstance(value, date):
        return value
    if value in (None, ''):
        raise MissingParameterError(f"{name} is required")
    try:
        parsed = parse_date(str(value))
    except ValueError:
        parsed = None
    if parsed is None:
        raise MissingParameterError(f"{name} must be a date in YYYY-MM-DD format")
    return parsed


def optional_date(value: Any, name: str) -> Optional[date]:
    """Like ``require_date`` but returns None for an empty value."""
    if value in (None, ''):
        return None
    return require_date(value, name)


def require_amount(value: Any) -> int:
    """
    Return a payment amount as a positive integer in minor units.

    Raises:
        InvalidAmountError: If missing, non-numeric or not positive
    """
    if value in (None, '') or isinstance(value, bool):
        raise InvalidAmountError("amount is required")
    try:
        amount = int(value)
    except (TypeError, ValueError):
        raise InvalidAmountError("amount must be an integer")
    if amount <= 0:
        raise InvalidAmountError("amount must be positive")
    return amount


def coerce_quantity(value: Any) -> int:
    """Quantity defaults to 1; missing or non-positive input becomes 1."""
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        return 1
    return quantity if quantity > 0 else 1


def coerce_price(value: Any) -> Optional[int]:
    """
    Return a stored unit price, or None to fall back to the default.

    Raises:
        InvalidAmountError: If the price is non-numeric or negative
    """
    if value in (None, '') or isinstance(value, bool):
        return None
    try:
        price = int(value)
    except (TypeError, ValueError):
        raise InvalidAmountError("price must be an integer")
    if price < 0:
        raise InvalidAmountError("price cannot be negative")
    return price


def resolve_meal_price(value: Any) -> int:
    """
    Return the default meal price for a computation.

    Falls back to ``settings.LUNCH_DEFAULT_MEAL_PRICE`` when the caller
    does not supply one.
    """
    from django.conf import settings

    if value in (None, ''):
        return settings.LUNCH_DEFAULT_MEAL_PRICE
    price = coerce_price(value)
    return price if price is not None else settings.LUNCH_DEFAULT_MEAL_PRICE


def translate_storage_errors(func):
    """
    Re-raise unexpected ``DatabaseError`` as ``StorageError``.

    Domain errors pass through untouched. Integrity violations that carry
    business meaning must be handled inside ``func`` itself.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except LunchesServiceError:
            raise
        except DatabaseError as e:
            logger.exception("Storage failure in %s", func.__name__)
            raise StorageError(f"Storage failure in {func.__name__}") from e
    return wrapper
