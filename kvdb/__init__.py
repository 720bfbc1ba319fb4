"""
kvdb - In-memory key-value store with nested transactions.

The engine lives in kvdb.core; kvdb.deployment exposes it over HTTP and
kvdb.cli over an interactive shell.
"""

__version__ = "1.0.0"
