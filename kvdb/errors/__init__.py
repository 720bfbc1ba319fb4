"""
errors/ - Error Taxonomy

Exceptions raised by the engine and mapped to responses by the API layer.
"""

from .taxonomy import (
    ErrorCategory,
    ErrorCode,
    DatabaseError,
    DataNotFoundError,
    TransactionNotFoundError,
    TooManyTransactionsOpenError,
    DATA_NOT_FOUND_MESSAGE,
    TRANSACTION_NOT_FOUND_MESSAGE,
    TOO_MANY_TRANSACTIONS_MESSAGE,
)

__all__ = [
    "ErrorCategory",
    "ErrorCode",
    "DatabaseError",
    "DataNotFoundError",
    "TransactionNotFoundError",
    "TooManyTransactionsOpenError",
    "DATA_NOT_FOUND_MESSAGE",
    "TRANSACTION_NOT_FOUND_MESSAGE",
    "TOO_MANY_TRANSACTIONS_MESSAGE",
]
