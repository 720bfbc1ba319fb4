"""
deployment/ - Deployment Infrastructure

Provides the HTTP API over the shared Database.
"""

from .api import (
    API_PREFIX,
    EntryRequest,
    EntryResponse,
    CounterResponse,
    ErrorMessage,
    create_database_router,
    create_fastapi_app,
)


__all__ = [
    "API_PREFIX",
    "EntryRequest",
    "EntryResponse",
    "CounterResponse",
    "ErrorMessage",
    "create_database_router",
    "create_fastapi_app",
]
