"""
Lunches services - Business logic layer.

This package contains all business operations for the lunches app:
- Member CRUD operations
- Lunch entry CRUD operations
- Payment recording
- Debt reconciliation and settlement
- Member statements
"""

# Member Management
from .member_management import (
    list_members,
    get_member,
    create_member,
    update_member,
    delete_member,
)

# Entry Store
from .entry_management import (
    list_entries,
    get_entry,
    create_entry,
    update_entry,
    delete_entry,
)

# Payment Store
from .payment_management import (
    create_payment,
    list_payments,
)

# Reconciliation Engine
from .reconciliation import (
    WeeklyDebt,
    DebtSummary,
    PaidStatusResolver,
    get_active_policy,
    compute_debts,
    compute_weekly_debt,
    compute_member_debt,
    is_entry_paid,
)

# Settlement Writer
from .settlement import settle_debt

# Reporting Projection
from .reporting import StatementLine, get_member_report

# Domain Exceptions
from .exceptions import (
    LunchesServiceError,
    NotFoundError,
    MemberNotFoundError,
    EntryNotFoundError,
    DuplicateEntryError,
    InvalidRangeError,
    InvalidAmountError,
    MissingParameterError,
    StorageError,
)

__all__ = [
    # Member Management Services
    'list_members',
    'get_member',
    'create_member',
    'update_member',
    'delete_member',
    # Entry Store Services
    'list_entries',
    'get_entry',
    'create_entry',
    'update_entry',
    'delete_entry',
    # Payment Store Services
    'create_payment',
    'list_payments',
    # Reconciliation
    'WeeklyDebt',
    'DebtSummary',
    'PaidStatusResolver',
    'get_active_policy',
    'compute_debts',
    'compute_weekly_debt',
    'compute_member_debt',
    'is_entry_paid',
    # Settlement
    'settle_debt',
    # Reporting
    'StatementLine',
    'get_member_report',
    # Exceptions
    'LunchesServiceError',
    'NotFoundError',
    'MemberNotFoundError',
    'EntryNotFoundError',
    'DuplicateEntryError',
    'InvalidRangeError',
    'InvalidAmountError',
    'MissingParameterError',
    'StorageError',
]
