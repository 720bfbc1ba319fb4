"""
kvdb core enumerations.
"""

from enum import Enum


class TransactionState(str, Enum):
    """
    State of the transaction stack.

    IDLE: no transaction open, operations hit the base state.
    NESTED: at least one snapshot on the stack, operations hit the top one.
    """
    IDLE = "idle"
    NESTED = "nested"
