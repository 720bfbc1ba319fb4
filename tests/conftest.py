"""
kvdb Test Configuration and Fixtures

Provides fresh engines, a populated engine and an index consistency check
usable against every snapshot of a Database.
"""

import pytest
from collections import Counter as Tally
from typing import Any, Dict

from kvdb.core.database import Database
from kvdb.core.models import Entry


def assert_snapshot_consistent(snapshot: Dict[str, Any]) -> None:
    """
    Check one serialized snapshot.

    Every stored value has an index entry equal to the number of keys
    holding it; values no key holds may remain only with a zero count.
    """
    tally = Tally(snapshot["database"].values())
    occurrences = snapshot["occurrences"]

    for value, count in tally.items():
        assert occurrences.get(value) == count, f"index out of sync for {value!r}"

    for value, count in occurrences.items():
        assert count >= 0
        assert count == tally.get(value, 0), f"stale count for {value!r}"


def assert_database_consistent(database: Database) -> None:
    """Check the base state and every open transaction level."""
    state = database.to_dict()
    assert_snapshot_consistent(state["base"])
    for snapshot in state["transactions"]:
        assert_snapshot_consistent(snapshot)


@pytest.fixture
def database():
    """Empty Database with the default transaction limit."""
    return Database()


@pytest.fixture
def populated_database():
    """Database with three committed entries, two sharing a value."""
    db = Database()
    db.put(Entry("key1", "value1"))
    db.put(Entry("key2", "value1"))
    db.put(Entry("key3", "value3"))
    return db


@pytest.fixture
def check_consistency():
    """Index consistency check for every level of a Database."""
    return assert_database_consistent
