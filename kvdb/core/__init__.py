"""
kvdb Core Module

Contains the transactional storage engine and its value types.
"""

from kvdb.core.constants import MAX_OPEN_TRANSACTIONS
from kvdb.core.enums import TransactionState
from kvdb.core.models import Counter, Entry, Snapshot
from kvdb.core.database import Database

__all__ = [
    "MAX_OPEN_TRANSACTIONS",
    "TransactionState",
    "Counter",
    "Entry",
    "Snapshot",
    "Database",
]
