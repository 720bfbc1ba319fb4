"""
kvdb core value types.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class Entry:
    """A single key/value pair as stored in the database."""

    key: str
    value: str

    def to_dict(self) -> Dict[str, Any]:
        return {"key": self.key, "value": self.value}


@dataclass(frozen=True)
class Counter:
    """Number of keys currently holding a given value."""

    occurrences: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"occurrences": self.occurrences}


@dataclass
class Snapshot:
    """
    One level of the transaction stack.

    Pairs a key->value map with the value->count index derived from it.
    Both maps hold strings and ints only, so copying the dicts is enough
    to make the copy independent of the source.
    """

    database: Dict[str, str] = field(default_factory=dict)
    occurrences: Dict[str, int] = field(default_factory=dict)

    def copy(self) -> "Snapshot":
        return Snapshot(
            database=dict(self.database),
            occurrences=dict(self.occurrences),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "database": dict(self.database),
            "occurrences": dict(self.occurrences),
        }
