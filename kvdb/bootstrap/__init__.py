"""
bootstrap/ - Bootstrap Layer

Provides application initialization, configuration, and dependency injection.
"""

from .config import (
    KVDBConfig,
    APIConfig,
    DatabaseConfig,
    LoggingConfig,
    load_config,
)

from .container import (
    ServiceDescriptor,
    Container,
    CircularDependencyError,
    ServiceNotFoundError,
)

from .app import (
    AppState,
    AppContext,
    KVDBApp,
)

from .entrypoints import (
    cli_main,
    api_main,
    setup_logging,
)


__all__ = [
    # Config
    "KVDBConfig",
    "APIConfig",
    "DatabaseConfig",
    "LoggingConfig",
    "load_config",
    # Container
    "ServiceDescriptor",
    "Container",
    "CircularDependencyError",
    "ServiceNotFoundError",
    # App
    "AppState",
    "AppContext",
    "KVDBApp",
    # Entry Points
    "cli_main",
    "api_main",
    "setup_logging",
]
