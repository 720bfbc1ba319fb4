"""
Unit tests for Database.

Tests storage operations, the occurrence index, nested transactions and
the open transaction limit.
"""

import random
from concurrent.futures import ThreadPoolExecutor

import pytest

from kvdb.core.database import Database
from kvdb.core.enums import TransactionState
from kvdb.core.models import Counter, Entry
from kvdb.errors import (
    DATA_NOT_FOUND_MESSAGE,
    TRANSACTION_NOT_FOUND_MESSAGE,
    DataNotFoundError,
    TooManyTransactionsOpenError,
    TransactionNotFoundError,
)


class TestDatabaseCreation:
    """Test Database creation."""

    def test_create_empty(self, database):
        """Test a new database is idle and empty."""
        assert database.state == TransactionState.IDLE
        assert database.depth == 0
        assert not database.in_transaction()
        assert database.to_dict()["base"] == {"database": {}, "occurrences": {}}

    def test_default_limit(self, database):
        """Test the default open transaction limit."""
        assert database.max_open_transactions == 20

    def test_limit_too_small(self):
        """Test a limit that cannot hold the first begin is rejected."""
        with pytest.raises(ValueError):
            Database(max_open_transactions=1)

    def test_repr(self, database):
        """Test repr shows state and depth."""
        assert repr(database) == "Database(state=idle, depth=0)"


class TestPut:
    """Test put and retrieve."""

    def test_put_new_entry(self, database, check_consistency):
        """Test inserting a new key."""
        database.put(Entry("key1", "value1"))

        assert database.retrieve("key1") == Entry("key1", "value1")
        assert database.count_entries("value1") == Counter(1)
        check_consistency(database)

    def test_put_replaces_value(self, database, check_consistency):
        """Test replacing a value moves its count."""
        database.put(Entry("key1", "value1"))
        database.put(Entry("key1", "value2"))

        assert database.retrieve("key1").value == "value2"
        assert database.count_entries("value1").occurrences == 0
        assert database.count_entries("value2").occurrences == 1
        check_consistency(database)

    def test_put_same_pair_twice(self, database):
        """Test writing the same pair twice leaves counts unchanged."""
        database.put(Entry("key1", "value1"))
        database.put(Entry("key1", "value1"))

        assert database.count_entries("value1").occurrences == 1
        assert database.to_dict()["base"]["database"] == {"key1": "value1"}

    def test_count_after_update(self, database):
        """Test counts follow updates across keys."""
        database.put(Entry("a", "x"))
        database.put(Entry("b", "x"))
        database.put(Entry("a", "y"))

        assert database.count_entries("x").occurrences == 1
        assert database.count_entries("y").occurrences == 1

    def test_retrieve_missing(self, database):
        """Test retrieving an absent key raises."""
        with pytest.raises(DataNotFoundError) as exc_info:
            database.retrieve("missing")

        assert exc_info.value.message == DATA_NOT_FOUND_MESSAGE
        assert exc_info.value.key == "missing"

    def test_count_unknown_value(self, database):
        """Test counting a value never stored."""
        assert database.count_entries("nothing").occurrences == 0


class TestRemove:
    """Test remove."""

    def test_remove_existing(self, populated_database, check_consistency):
        """Test removing a key decrements its value."""
        populated_database.remove("key1")

        with pytest.raises(DataNotFoundError):
            populated_database.retrieve("key1")
        assert populated_database.count_entries("value1").occurrences == 1
        check_consistency(populated_database)

    def test_remove_missing(self, database):
        """Test removing an absent key raises."""
        with pytest.raises(DataNotFoundError):
            database.remove("missing")

    def test_remove_missing_in_transaction(self, populated_database):
        """Test removing an absent key inside a transaction raises."""
        populated_database.begin()

        with pytest.raises(DataNotFoundError):
            populated_database.remove("missing")
        assert populated_database.depth == 2

    def test_zero_counts_retained(self, database):
        """Test a count that drops to zero stays in the index."""
        database.put(Entry("key1", "value1"))
        database.remove("key1")

        assert database.to_dict()["base"]["occurrences"] == {"value1": 0}
        assert database.count_entries("value1").occurrences == 0

    def test_remove_in_transaction_keeps_base(self, populated_database):
        """Test removing inside a transaction leaves committed data alone."""
        populated_database.begin()
        populated_database.remove("key3")

        assert populated_database.to_dict()["base"]["database"]["key3"] == "value3"

        populated_database.rollback()
        populated_database.rollback()
        assert populated_database.retrieve("key3").value == "value3"


class TestIsDuplicatedKey:
    """Test duplicated key detection."""

    @pytest.mark.parametrize("key,expected", [
        ("key1", True),
        ("key9", False),
        ("", False),
        (None, False),
    ])
    def test_is_duplicated_key(self, populated_database, key, expected):
        """Test detection against committed data."""
        assert populated_database.is_duplicated_key(key) is expected

    def test_ignores_open_transaction(self, database):
        """Test keys only written inside a transaction are not duplicates."""
        database.begin()
        database.put(Entry("key1", "value1"))

        assert database.is_duplicated_key("key1") is False

        database.commit()
        assert database.is_duplicated_key("key1") is True


class TestStore:
    """Test store."""

    def test_reports_created_and_replaced(self, database):
        """Test store returns whether a committed key was replaced."""
        assert database.store(Entry("key1", "value1")) is False
        assert database.store(Entry("key1", "value2")) is True
        assert database.count_entries("value2").occurrences == 1

    def test_checks_committed_data(self, database):
        """Test keys written only inside a transaction are not replaced."""
        database.begin()
        assert database.store(Entry("key1", "value1")) is False
        assert database.store(Entry("key1", "value2")) is False

    def test_concurrent_store_of_new_key(self, database):
        """Test exactly one of many concurrent writers creates the key."""
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(
                lambda i: database.store(Entry("key1", f"v{i}")), range(32)
            ))

        assert results.count(False) == 1
        assert database.count_entries(database.retrieve("key1").value).occurrences == 1


class TestClearAll:
    """Test clear_all."""

    def test_clear_all(self, populated_database):
        """Test clear drops data, counters and transactions."""
        populated_database.begin()
        populated_database.begin()

        populated_database.clear_all()

        assert populated_database.state == TransactionState.IDLE
        assert populated_database.to_dict()["base"] == {"database": {}, "occurrences": {}}
        with pytest.raises(TransactionNotFoundError):
            populated_database.rollback()


class TestBegin:
    """Test begin and the open transaction limit."""

    def test_first_begin_pushes_two(self, populated_database):
        """Test the first begin pushes a base copy and a working level."""
        populated_database.begin()

        state = populated_database.to_dict()
        assert populated_database.state == TransactionState.NESTED
        assert state["depth"] == 2
        assert state["transactions"][0] == state["base"]
        assert state["transactions"][1] == state["base"]

    def test_nested_begin_pushes_one(self, database):
        """Test later begins push one copy of the top."""
        database.begin()
        database.put(Entry("key1", "value1"))
        database.begin()

        state = database.to_dict()
        assert state["depth"] == 3
        assert state["transactions"][2] == state["transactions"][1]

    def test_snapshots_are_independent(self, database):
        """Test writing to the top leaves lower levels untouched."""
        database.begin()
        database.put(Entry("key1", "value1"))

        state = database.to_dict()
        assert state["transactions"][0]["database"] == {}
        assert state["base"]["database"] == {}

    def test_limit_reached(self, database):
        """Test 19 begins succeed and the 20th is rejected."""
        for _ in range(19):
            database.begin()
        assert database.depth == 20

        before = database.to_dict()
        with pytest.raises(TooManyTransactionsOpenError) as exc_info:
            database.begin()

        assert exc_info.value.message == (
            "Please commit your current transactions or rollback some of them. "
            "Maximum number of open transactions in the same time is: 20."
        )
        assert database.to_dict() == before

    def test_custom_limit(self):
        """Test a configured limit is honoured."""
        db = Database(max_open_transactions=5)
        for _ in range(4):
            db.begin()

        with pytest.raises(TooManyTransactionsOpenError) as exc_info:
            db.begin()
        assert exc_info.value.limit == 5

    def test_begin_after_rollback_below_limit(self, database):
        """Test a rollback frees room for another begin."""
        for _ in range(19):
            database.begin()
        database.rollback()

        database.begin()
        assert database.depth == 20


class TestRollback:
    """Test rollback."""

    def test_rollback_without_transaction(self, database):
        """Test rollback with nothing open raises."""
        with pytest.raises(TransactionNotFoundError) as exc_info:
            database.rollback()
        assert exc_info.value.message == TRANSACTION_NOT_FOUND_MESSAGE

    def test_rollback_restores_state(self, populated_database):
        """Test begin, mutate, rollback restores the previous view."""
        populated_database.begin()
        populated_database.begin()
        before = populated_database.to_dict()

        populated_database.begin()
        populated_database.put(Entry("key1", "other"))
        populated_database.remove("key2")
        populated_database.put(Entry("key4", "value4"))
        populated_database.rollback()

        assert populated_database.to_dict() == before

    def test_nested_rollbacks(self, database):
        """Test each rollback drops exactly one level."""
        database.begin()
        database.put(Entry("a", "1"))
        database.begin()
        database.put(Entry("a", "2"))

        database.rollback()
        assert database.retrieve("a").value == "1"

        database.rollback()
        with pytest.raises(DataNotFoundError):
            database.retrieve("a")

    def test_first_level_needs_two_rollbacks(self, database):
        """Test leaving the first transaction takes two rollbacks."""
        database.begin()
        database.rollback()

        assert database.state == TransactionState.NESTED
        assert database.depth == 1

        database.rollback()
        assert database.state == TransactionState.IDLE


class TestCommit:
    """Test commit."""

    def test_commit_without_transaction(self, populated_database):
        """Test commit with nothing open is a no-op."""
        before = populated_database.to_dict()
        populated_database.commit()
        assert populated_database.to_dict() == before

    def test_commit_scenario(self, database, check_consistency):
        """Test nested writes all land in base on commit."""
        database.begin()
        database.put(Entry("a", "30"))
        database.begin()
        database.put(Entry("a", "40"))
        database.commit()

        assert database.retrieve("a").value == "40"
        assert database.count_entries("40").occurrences == 1
        assert database.state == TransactionState.IDLE
        with pytest.raises(TransactionNotFoundError):
            database.rollback()
        check_consistency(database)

    def test_commit_flattens(self, populated_database):
        """Test commit equals applying every open level's writes directly."""
        direct = Database()
        for key, value in (("key1", "value1"), ("key2", "value1"), ("key3", "value3")):
            direct.put(Entry(key, value))

        populated_database.begin()
        populated_database.put(Entry("key4", "value1"))
        populated_database.begin()
        populated_database.remove("key2")
        populated_database.begin()
        populated_database.put(Entry("key3", "value4"))
        populated_database.commit()

        direct.put(Entry("key4", "value1"))
        direct.remove("key2")
        direct.put(Entry("key3", "value4"))

        assert populated_database.to_dict() == direct.to_dict()

    def test_commit_after_partial_rollback(self, database):
        """Test rolled back levels do not reach base."""
        database.begin()
        database.put(Entry("a", "1"))
        database.begin()
        database.put(Entry("b", "2"))
        database.rollback()
        database.commit()

        assert database.retrieve("a").value == "1"
        with pytest.raises(DataNotFoundError):
            database.retrieve("b")


class TestTransactionContextManager:
    """Test the transaction() context manager."""

    def test_commits_on_success(self, database):
        """Test normal exit commits."""
        with database.transaction() as db:
            db.put(Entry("key1", "value1"))

        assert database.state == TransactionState.IDLE
        assert database.is_duplicated_key("key1")

    def test_rolls_back_on_error(self, populated_database):
        """Test an exception discards the transaction and propagates."""
        before = populated_database.to_dict()

        with pytest.raises(RuntimeError):
            with populated_database.transaction() as db:
                db.put(Entry("key1", "changed"))
                raise RuntimeError("boom")

        assert populated_database.to_dict() == before

    def test_nested_success_keeps_outer_open(self, database):
        """Test a block inside an open transaction folds into it."""
        database.begin()
        database.put(Entry("a", "1"))

        with database.transaction() as db:
            db.put(Entry("b", "2"))

        assert database.depth == 2
        assert database.retrieve("b").value == "2"
        assert database.to_dict()["base"]["database"] == {}

        database.rollback()
        database.rollback()
        with pytest.raises(DataNotFoundError):
            database.retrieve("a")

    def test_block_that_commits_itself(self, database):
        """Test a block that commits leaves nothing to fold."""
        database.begin()

        with database.transaction() as db:
            db.put(Entry("a", "1"))
            db.commit()

        assert database.state == TransactionState.IDLE
        assert database.is_duplicated_key("a")

    def test_nested_error_keeps_outer(self, database):
        """Test an inner failure leaves the outer transaction open."""
        database.begin()
        database.put(Entry("a", "1"))

        with pytest.raises(DataNotFoundError):
            with database.transaction() as db:
                db.put(Entry("b", "2"))
                db.remove("missing")

        assert database.depth == 2
        assert database.retrieve("a").value == "1"
        with pytest.raises(DataNotFoundError):
            database.retrieve("b")


class TestScenarios:
    """End to end command sequences."""

    def test_mixed_flow(self, database, check_consistency):
        """Test a long sequence of writes, nested transactions and commits."""
        database.put(Entry("key1", "value1"))
        database.put(Entry("key2", "value1"))
        assert database.count_entries("value1").occurrences == 2

        database.begin()
        database.put(Entry("key1", "value2"))
        assert database.count_entries("value1").occurrences == 1
        assert database.count_entries("value2").occurrences == 1

        database.begin()
        database.remove("key2")
        assert database.count_entries("value1").occurrences == 0
        check_consistency(database)

        database.rollback()
        assert database.retrieve("key2").value == "value1"

        database.commit()
        assert database.retrieve("key1").value == "value2"
        assert database.retrieve("key2").value == "value1"
        assert database.count_entries("value1").occurrences == 1
        check_consistency(database)

    def test_rollback_then_count(self, database):
        """Test counts after an unset is rolled back."""
        database.put(Entry("a", "10"))
        database.begin()
        assert database.count_entries("10").occurrences == 1
        database.begin()
        database.remove("a")
        assert database.count_entries("10").occurrences == 0
        database.rollback()
        assert database.count_entries("10").occurrences == 1

    @pytest.mark.parametrize("seed", range(5))
    def test_random_operations_keep_index_consistent(self, database, check_consistency, seed):
        """Test the index matches the data after every operation."""
        rng = random.Random(seed)
        keys = ["a", "b", "c", "d"]
        values = ["1", "2", "3"]

        for _ in range(300):
            op = rng.choice(["put", "put", "remove", "begin", "rollback", "commit"])
            try:
                if op == "put":
                    database.put(Entry(rng.choice(keys), rng.choice(values)))
                elif op == "remove":
                    database.remove(rng.choice(keys))
                elif op == "begin":
                    database.begin()
                elif op == "rollback":
                    database.rollback()
                else:
                    database.commit()
            except (DataNotFoundError, TransactionNotFoundError, TooManyTransactionsOpenError):
                pass
            check_consistency(database)
