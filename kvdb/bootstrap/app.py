"""
bootstrap/app.py - Application builder and lifecycle

Wires configuration and the shared Database into a container and starts
either the HTTP API or the interactive shell on top of it.
"""

from __future__ import annotations
from typing import Optional
from dataclasses import dataclass
from enum import Enum
import logging

from kvdb.core.database import Database

from .config import KVDBConfig, load_config
from .container import Container

logger = logging.getLogger("bootstrap.app")


class AppState(Enum):
    """Application lifecycle states."""
    CREATED = "created"
    CONFIGURING = "configuring"
    READY = "ready"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass
class AppContext:
    """Runtime application context."""
    config: KVDBConfig = None
    container: Container = None
    state: AppState = AppState.CREATED


class KVDBApp:
    """Main application class."""

    def __init__(self, config_file: str = None, config: Optional[KVDBConfig] = None):
        self._config_file = config_file
        self._context = AppContext(config=config)
        self._initialized = False

    @property
    def config(self) -> KVDBConfig:
        return self._context.config

    @property
    def container(self) -> Container:
        return self._context.container

    @property
    def context(self) -> AppContext:
        return self._context

    @property
    def database(self) -> Database:
        """Get the shared Database from the container (convenience property)."""
        return self._context.container.resolve(Database)

    def build(self) -> "KVDBApp":
        """Build the application: load config and register services."""
        self._context.state = AppState.CONFIGURING

        if self._context.config is None:
            self._context.config = load_config(self._config_file)

        container = Container()
        container.register_instance(KVDBConfig, self._context.config)
        container.register_instance(AppContext, self._context)

        max_open = self._context.config.database.max_open_transactions

        def create_database() -> Database:
            return Database(max_open_transactions=max_open)

        container.register_factory(Database, create_database)
        self._context.container = container

        # A bad limit surfaces at build time
        container.resolve(Database)

        self._context.state = AppState.READY
        self._initialized = True
        logger.info(f"Application built (max_open_transactions={max_open})")

        return self

    def run_cli(self) -> int:
        """Run interactive CLI."""
        if not self._initialized:
            self.build()

        from kvdb.cli.core import CLIContext
        from kvdb.cli.repl import REPL

        self._context.state = AppState.RUNNING

        try:
            REPL(CLIContext(database=self.database)).run()
        finally:
            self._context.state = AppState.STOPPED

        return 0

    def run_api(self) -> None:
        """Run API server."""
        import uvicorn

        if not self._initialized:
            self.build()

        from kvdb.deployment.api import create_fastapi_app

        app = create_fastapi_app(self._context)

        self._context.state = AppState.RUNNING

        try:
            # One process: the engine state lives in this interpreter
            uvicorn.run(
                app,
                host=self.config.api.host,
                port=self.config.api.port,
            )
        finally:
            self._context.state = AppState.STOPPED
