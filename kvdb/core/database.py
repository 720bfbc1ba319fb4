"""
core/database.py - Transactional key-value engine

Holds the base key->value map, the value->occurrence index derived from it,
and a stack of snapshots for nested transactions. Every operation runs
against the active view: the top snapshot if a transaction is open,
otherwise the base state.

Transactions are snapshot-and-replace:
- begin() pushes a copy of the current top (the very first begin also
  pushes a copy of the base state underneath it)
- rollback() pops the top snapshot
- commit() makes the top snapshot, which carries the changes of every
  open level, the new base state and empties the stack
"""

from __future__ import annotations
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional
import logging
import threading

from kvdb.core.constants import MAX_OPEN_TRANSACTIONS, ONE_OCCURRENCE, ZERO_OCCURRENCES
from kvdb.core.enums import TransactionState
from kvdb.core.models import Counter, Entry, Snapshot
from kvdb.errors import (
    DataNotFoundError,
    TooManyTransactionsOpenError,
    TransactionNotFoundError,
)

logger = logging.getLogger("core.database")


class Database:
    """
    In-memory key-value database with nested transactions.

    One instance is one logical transaction context. All public methods take
    the instance lock, so the whole object (maps and stack) is a single
    critical section.
    """

    def __init__(self, max_open_transactions: int = MAX_OPEN_TRANSACTIONS):
        if max_open_transactions < 2:
            raise ValueError("max_open_transactions must allow the first begin (at least 2)")

        self.max_open_transactions = max_open_transactions

        self._base = Snapshot()
        self._transactions: List[Snapshot] = []
        self._lock = threading.RLock()

    # =========================================================================
    # Introspection
    # =========================================================================

    @property
    def depth(self) -> int:
        """Number of snapshots currently on the transaction stack."""
        with self._lock:
            return len(self._transactions)

    @property
    def state(self) -> TransactionState:
        with self._lock:
            return TransactionState.NESTED if self._transactions else TransactionState.IDLE

    def in_transaction(self) -> bool:
        return self.state == TransactionState.NESTED

    def _active(self) -> Snapshot:
        if self._transactions:
            return self._transactions[-1]
        return self._base

    def _mode(self) -> str:
        return "Transaction" if self._transactions else "Without transaction"

    # =========================================================================
    # Storage operations
    # =========================================================================

    def put(self, entry: Entry) -> None:
        """
        Insert or replace an entry in the active view.

        On replace the counter of the previous value is decremented before
        the counter of the new value is incremented, so writing the same
        pair twice leaves the counts unchanged.
        """
        with self._lock:
            logger.info(f"{self._mode()}: Putting entry: {entry}")
            active = self._active()

            previous = active.database.get(entry.key)
            active.database[entry.key] = entry.value

            if previous is not None:
                logger.info(f"It's update, so previous value [{previous}] has to be decremented")
                self._decrement(active.occurrences, previous)

            logger.info(f"New value [{entry.value}] counter will be incremented")
            self._increment(active.occurrences, entry.value)

    def store(self, entry: Entry) -> bool:
        """
        put() an entry and report whether it replaced a committed key.

        The duplicate check and the write run under one lock hold, so
        concurrent callers storing the same new key see exactly one False.
        """
        with self._lock:
            replaced = self.is_duplicated_key(entry.key)
            self.put(entry)
            return replaced

    def retrieve(self, key: str) -> Entry:
        """
        Look up a key in the active view.

        Raises:
            DataNotFoundError: If the key is absent.
        """
        with self._lock:
            logger.info(f"{self._mode()}: Retrieving entry with key: {key}")
            value = self._active().database.get(key)

        if value is None:
            raise DataNotFoundError(key)
        return Entry(key, value)

    def remove(self, key: str) -> None:
        """
        Delete a key from the active view.

        Raises:
            DataNotFoundError: If the key is absent from the active view.
        """
        with self._lock:
            active = self._active()
            if key not in active.database:
                raise DataNotFoundError(key)

            logger.info(f"{self._mode()}: Removing entry with key: {key}")
            removed = active.database.pop(key)
            logger.info(f"It's remove, so value [{removed}] has to be decremented")
            self._decrement(active.occurrences, removed)

    def count_entries(self, value: str) -> Counter:
        """Number of keys in the active view currently holding value."""
        with self._lock:
            occurrences = self._active().occurrences.get(value, ZERO_OCCURRENCES)
        return Counter(occurrences)

    def is_duplicated_key(self, key: Optional[str]) -> bool:
        """
        Check whether key exists in the base state.

        Open transactions are ignored. The API uses this to decide between
        "created" and "replaced" against committed data.
        """
        if not key:
            return False
        with self._lock:
            return key in self._base.database

    def clear_all(self) -> None:
        """Drop all data, counters and open transactions."""
        with self._lock:
            logger.info("Clearing database (all local collections). Ready for new testing.")
            self._base = Snapshot()
            self._transactions.clear()

    # =========================================================================
    # Transactions
    # =========================================================================

    def begin(self) -> None:
        """
        Open a (possibly nested) transaction.

        The first begin from IDLE pushes two snapshots: a copy of the base
        state, then the level mutations land on. Later calls push one copy
        of the current top.

        Raises:
            TooManyTransactionsOpenError: If the stack is already full.
        """
        with self._lock:
            logger.info("Begin: Begins new transaction for database and occurrences")
            if len(self._transactions) >= self.max_open_transactions:
                error = TooManyTransactionsOpenError(self.max_open_transactions)
                logger.warning(error.message)
                raise error

            if not self._transactions:
                logger.info(
                    f"First (main outer) transaction using current database: "
                    f"{self._base.database} and occurrences: {self._base.occurrences}"
                )
                self._transactions.append(self._base.copy())

            top = self._transactions[-1]
            logger.info(
                f"New nested transaction using last still open transaction data: "
                f"{top.database} and occurrences: {top.occurrences}"
            )
            self._transactions.append(top.copy())

    def rollback(self) -> None:
        """
        Discard the innermost transaction level.

        Raises:
            TransactionNotFoundError: If no transaction is open.
        """
        with self._lock:
            logger.info("Rollback: Rollbacks current transaction")
            if not self._transactions:
                raise TransactionNotFoundError()

            removed = self._transactions.pop()
            logger.info(
                f"Rollback: Rollbacks transaction data: {removed.database} "
                f"and occurrences: {removed.occurrences}"
            )

    def commit(self) -> None:
        """Commit every open transaction level at once. No-op when IDLE."""
        with self._lock:
            logger.info("Commit: Commits all presently open transactions")
            if not self._transactions:
                logger.warning("Commit: There is no open transactions to commit")
                return

            self._base = self._transactions[-1]
            self._transactions.clear()

    @contextmanager
    def transaction(self) -> Iterator["Database"]:
        """
        Context manager for transactions.

        Entered from IDLE, a normal exit commits. Entered inside an open
        transaction, a normal exit folds the block's level into the
        enclosing one and leaves it open. On error, pops every snapshot
        pushed since entry (two when entered from IDLE) and re-raises.
        """
        start_depth = self.depth
        self.begin()
        try:
            yield self
        except Exception:
            while self.depth > start_depth:
                self.rollback()
            raise

        if start_depth == 0:
            self.commit()
        elif self.depth > start_depth:
            self._merge_into_parent()

    def _merge_into_parent(self) -> None:
        """Replace the level below the top with the top snapshot."""
        with self._lock:
            logger.info("Merge: Folds innermost transaction into its parent")
            top = self._transactions.pop()
            self._transactions[-1] = top

    # =========================================================================
    # Occurrence index
    # =========================================================================

    @staticmethod
    def _increment(occurrences: Dict[str, int], value: str) -> None:
        occurrences[value] = occurrences.get(value, ZERO_OCCURRENCES) + ONE_OCCURRENCE

    @staticmethod
    def _decrement(occurrences: Dict[str, int], value: str) -> None:
        # Zero counters stay in the index
        current = occurrences.get(value)
        if current is not None and current > ZERO_OCCURRENCES:
            occurrences[value] = current - ONE_OCCURRENCE

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        """Copy of the base state and stack, for inspection and tests."""
        with self._lock:
            return {
                "state": self.state.value,
                "depth": len(self._transactions),
                "base": self._base.to_dict(),
                "transactions": [snapshot.to_dict() for snapshot in self._transactions],
            }

    def __repr__(self) -> str:
        return f"Database(state={self.state.value}, depth={self.depth})"
