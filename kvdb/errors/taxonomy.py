"""
errors/taxonomy.py - Error classification

Every failure the engine reports is a DatabaseError subclass carrying a
human readable message, a stable ErrorCode and the HTTP status the API
layer answers with.
"""

from __future__ import annotations
from typing import Any, Dict, Optional
from enum import Enum


class ErrorCategory(Enum):
    """Error categories."""
    DATA = "data"
    TRANSACTION = "transaction"
    VALIDATION = "validation"


class ErrorCode(Enum):
    """Specific error codes."""

    # Validation (4000)
    VALIDATION = 4000

    # Transaction (400x)
    TRANSACTION_NOT_FOUND = 4001
    TOO_MANY_TRANSACTIONS = 4002

    # Data (404x)
    DATA_NOT_FOUND = 4041


DATA_NOT_FOUND_MESSAGE = "Couldn't find entry in database for provided key."
TRANSACTION_NOT_FOUND_MESSAGE = (
    "Rollback operation cannot be executed as there are no transactions started."
)
TOO_MANY_TRANSACTIONS_MESSAGE = (
    "Please commit your current transactions or rollback some of them. "
    "Maximum number of open transactions in the same time is: {limit}."
)


class DatabaseError(Exception):
    """Base class for errors raised by the database engine."""

    code: ErrorCode = ErrorCode.VALIDATION
    category: ErrorCategory = ErrorCategory.VALIDATION
    status_code: int = 400

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code.value}, message={self.message!r})"


class DataNotFoundError(DatabaseError):
    """Raised when a key is absent from the active view."""

    code = ErrorCode.DATA_NOT_FOUND
    category = ErrorCategory.DATA
    status_code = 404

    def __init__(self, key: Optional[str] = None):
        super().__init__(DATA_NOT_FOUND_MESSAGE, detail=key)
        self.key = key


class TransactionNotFoundError(DatabaseError):
    """Raised when rollback is requested with no open transaction."""

    code = ErrorCode.TRANSACTION_NOT_FOUND
    category = ErrorCategory.TRANSACTION
    status_code = 400

    def __init__(self):
        super().__init__(TRANSACTION_NOT_FOUND_MESSAGE)


class TooManyTransactionsOpenError(DatabaseError):
    """Raised when begin would push the stack past its limit."""

    code = ErrorCode.TOO_MANY_TRANSACTIONS
    category = ErrorCategory.TRANSACTION
    status_code = 400

    def __init__(self, limit: int):
        super().__init__(TOO_MANY_TRANSACTIONS_MESSAGE.format(limit=limit))
        self.limit = limit
