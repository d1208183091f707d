"""
Domain exceptions for lunches app.

These exceptions represent business rule violations raised by the
services layer, separate from HTTP concerns. Views catch them and
translate ``code`` into a status code.

Exception Hierarchy:
    LunchesServiceError (base)
    ├── NotFoundError
    │   ├── MemberNotFoundError
    │   └── EntryNotFoundError
    ├── DuplicateEntryError
    ├── InvalidRangeError
    ├── InvalidAmountError
    ├── MissingParameterError
    └── StorageError

Usage:
    from apps.lunches.services.exceptions import InvalidRangeError

    if start_date > end_date:
        raise InvalidRangeError("start_date must be on or before end_date")
"""


class LunchesServiceError(Exception):
    """
    Base exception for all lunches service errors.

    Every subclass carries a machine-readable ``code`` so views can map
    the whole family with a single ``except`` clause:

        try:
            summary = compute_weekly_debt(start_date=..., end_date=...)
        except LunchesServiceError as e:
            return error_response(e)
    """

    code = 'lunches_error'


class NotFoundError(LunchesServiceError):
    """Referenced entity does not exist."""

    code = 'not_found'


class MemberNotFoundError(NotFoundError):
    """Member does not exist."""
    pass


class EntryNotFoundError(NotFoundError):
    """Lunch entry does not exist."""
    pass


class DuplicateEntryError(LunchesServiceError):
    """Member already has a lunch entry for this date."""

    code = 'conflict'


class InvalidRangeError(LunchesServiceError):
    """
    Raised when a date range is inverted.

    Covers both ``start_date > end_date`` and a settlement end date that
    falls before the settled range starts.
    """

    code = 'invalid_range'


class InvalidAmountError(LunchesServiceError):
    """Amount is missing, non-numeric, negative or nothing is owed."""

    code = 'invalid_amount'


class MissingParameterError(LunchesServiceError):
    """A required parameter is absent or cannot be parsed."""

    code = 'missing_parameter'


class StorageError(LunchesServiceError):
    """
    Raised when the database fails for reasons unrelated to business rules.

    Wraps ``DatabaseError`` (connectivity, locked tables, ...). It must
    never be read as one of the semantic errors above.
    """

    code = 'storage_error'
