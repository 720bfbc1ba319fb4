"""
deployment/api.py - REST API

Exposes the Database over HTTP. The engine is resolved from the application
container; engine errors are translated to status codes by a single
exception handler keyed on DatabaseError.status_code.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, FastAPI, Path, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from kvdb import __version__
from kvdb.core.constants import FIELD_MESSAGES, KEY_VALUE_PATTERN
from kvdb.core.database import Database
from kvdb.core.models import Entry
from kvdb.errors import DatabaseError

if TYPE_CHECKING:
    from kvdb.bootstrap.app import AppContext

logger = logging.getLogger("deployment.api")

API_PREFIX = "/api/v1/database"


# =============================================================================
# Request/Response Models
# =============================================================================

class EntryRequest(BaseModel):
    """Entry to create or replace."""
    key: str = Field(pattern=KEY_VALUE_PATTERN, description=FIELD_MESSAGES["key"])
    value: str = Field(pattern=KEY_VALUE_PATTERN, description=FIELD_MESSAGES["value"])


class EntryResponse(BaseModel):
    """Entry found under a key."""
    key: str
    value: str


class CounterResponse(BaseModel):
    """Number of keys holding a value."""
    occurrences: int


class ErrorMessage(BaseModel):
    """Error body returned for every 4xx answer."""
    message: str


ERROR_RESPONSES: Dict[int, Dict[str, Any]] = {
    400: {"model": ErrorMessage},
    404: {"model": ErrorMessage},
}


def validation_messages(errors: List[Dict[str, Any]]) -> List[str]:
    """Map pydantic errors to one message per offending field, in order."""
    messages: List[str] = []
    for error in errors:
        loc = error.get("loc", ())
        field_name = loc[-1] if loc else None
        message = FIELD_MESSAGES.get(field_name, error.get("msg", "Invalid request"))
        if message not in messages:
            messages.append(message)
    return messages


def create_database_router(get_database) -> APIRouter:
    """
    Build the database router.

    Args:
        get_database: FastAPI dependency returning the shared Database
    """
    router = APIRouter(prefix=API_PREFIX)

    # =========================================================================
    # Entries
    # =========================================================================

    @router.put(
        "/entries",
        tags=["entries"],
        summary="Create new entry or replace old one.",
        status_code=status.HTTP_201_CREATED,
        responses={200: {"description": "Old entry has been replaced with new value"}, **ERROR_RESPONSES},
    )
    def set_entry(entry: EntryRequest, database: Database = Depends(get_database)):
        # Created vs replaced is decided against committed data
        replaced = database.store(Entry(entry.key, entry.value))
        return Response(status_code=status.HTTP_200_OK if replaced else status.HTTP_201_CREATED)

    @router.get(
        "/entries/counters/{value}",
        tags=["entries"],
        summary="Count occurrences of provided value in database.",
        response_model=CounterResponse,
    )
    def count_entries(
        value: str = Path(description="Value to check occurrences in database"),
        database: Database = Depends(get_database),
    ):
        return database.count_entries(value).to_dict()

    @router.get(
        "/entries/{key}",
        tags=["entries"],
        summary="Retrieve entry using key.",
        response_model=EntryResponse,
        responses=ERROR_RESPONSES,
    )
    def get_entry(
        key: str = Path(description="Key of entry to retrieve"),
        database: Database = Depends(get_database),
    ):
        return database.retrieve(key).to_dict()

    @router.delete(
        "/entries/{key}",
        tags=["entries"],
        summary="Remove entry using key.",
        status_code=status.HTTP_204_NO_CONTENT,
        responses=ERROR_RESPONSES,
    )
    def delete_entry(
        key: str = Path(description="Key of entry to remove"),
        database: Database = Depends(get_database),
    ):
        database.remove(key)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    # =========================================================================
    # Transactions
    # =========================================================================

    @router.post(
        "/transactions/begin",
        tags=["transactions"],
        summary="Begin a transaction, nested if one is already open.",
        responses=ERROR_RESPONSES,
    )
    def begin_transaction(database: Database = Depends(get_database)):
        database.begin()
        return Response(status_code=status.HTTP_200_OK)

    @router.post(
        "/transactions/commit",
        tags=["transactions"],
        summary="Commit all started transactions.",
    )
    def commit_transactions(database: Database = Depends(get_database)):
        database.commit()
        return Response(status_code=status.HTTP_200_OK)

    @router.post(
        "/transactions/rollback",
        tags=["transactions"],
        summary="Rollback current transaction.",
        responses=ERROR_RESPONSES,
    )
    def rollback_transaction(database: Database = Depends(get_database)):
        database.rollback()
        return Response(status_code=status.HTTP_200_OK)

    # =========================================================================
    # Maintenance
    # =========================================================================

    @router.post(
        "/clear",
        tags=["database"],
        summary="Clear database and all open transactions.",
    )
    def clear_database(database: Database = Depends(get_database)):
        database.clear_all()
        return Response(status_code=status.HTTP_200_OK)

    return router


def create_fastapi_app(context: Optional["AppContext"] = None) -> FastAPI:
    """
    Create FastAPI application.

    Args:
        context: Application context with config and container. Without one
            the app owns a private Database with default settings.

    Returns:
        FastAPI application instance
    """
    enable_docs = True
    docs_url = "/docs"
    cors_origins = ["*"]

    if context and context.config:
        enable_docs = context.config.api.enable_docs
        docs_url = context.config.api.docs_url
        cors_origins = context.config.api.cors_origins

    app = FastAPI(
        title="kvdb API",
        description="In-memory key-value database with nested transactions",
        version=__version__,
        docs_url=docs_url if enable_docs else None,
        redoc_url="/redoc" if enable_docs else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Dependencies
    # =========================================================================

    if context and context.container:
        database = context.container.resolve(Database)
    else:
        database = Database()

    def get_database() -> Database:
        return database

    app.state.database = database

    # =========================================================================
    # Error translation
    # =========================================================================

    @app.exception_handler(DatabaseError)
    async def database_error_handler(request: Request, exc: DatabaseError):
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorMessage(message=exc.message).model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        messages = validation_messages(exc.errors())
        logger.info(f"{request.method} {request.url.path} -> 400: {messages}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorMessage(message=f"[{', '.join(messages)}]").model_dump(),
        )

    # =========================================================================
    # Health
    # =========================================================================

    @app.get("/health", tags=["health"])
    def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": __version__,
            "transaction_depth": database.depth,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    app.include_router(create_database_router(get_database))

    return app
