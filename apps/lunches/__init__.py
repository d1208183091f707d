"""
Lunches App - Shared Lunch Expense Tracking

Members log the lunches they ate, payments record who paid for which
date range, and the reconciliation engine works out who still owes what.

Architecture:
- Models: Member, LunchEntry, Payment
- Services: member/entry/payment stores, reconciliation, settlement, reporting
- Views: RESTful API with ViewSets
- Exceptions: Domain exception hierarchy
"""

__version__ = '1.0.0'
