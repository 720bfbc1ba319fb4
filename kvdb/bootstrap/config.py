"""
bootstrap/config.py - Application configuration

Provides configuration loading from files, environment variables, and defaults.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from pathlib import Path
import os
import json
import logging

from kvdb.core.constants import MAX_OPEN_TRANSACTIONS

logger = logging.getLogger("bootstrap.config")


@dataclass
class APIConfig:
    """API server configuration."""

    host: str = "0.0.0.0"
    port: int = 8080
    enable_docs: bool = True
    docs_url: str = "/docs"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "APIConfig":
        cors = os.getenv("KVDB_API_CORS_ORIGINS", "*")
        return cls(
            host=os.getenv("KVDB_API_HOST", "0.0.0.0"),
            port=int(os.getenv("KVDB_API_PORT", "8080")),
            enable_docs=os.getenv("KVDB_API_ENABLE_DOCS", "true").lower() == "true",
            docs_url=os.getenv("KVDB_API_DOCS_URL", "/docs"),
            cors_origins=cors.split(",") if cors else ["*"],
        )


@dataclass
class DatabaseConfig:
    """Storage engine configuration."""

    # Snapshots, not begin() calls: the first begin pushes two
    max_open_transactions: int = MAX_OPEN_TRANSACTIONS

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        return cls(
            max_open_transactions=int(
                os.getenv("KVDB_MAX_OPEN_TRANSACTIONS", str(MAX_OPEN_TRANSACTIONS))
            ),
        )


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_file: Optional[str] = None
    json_logs: bool = False

    @classmethod
    def from_env(cls) -> "LoggingConfig":
        return cls(
            level=os.getenv("KVDB_LOG_LEVEL", "INFO"),
            format=os.getenv("KVDB_LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
            log_file=os.getenv("KVDB_LOG_FILE"),
            json_logs=os.getenv("KVDB_JSON_LOGS", "false").lower() == "true",
        )


@dataclass
class KVDBConfig:
    """Root configuration for the kvdb application."""

    environment: str = "development"
    debug: bool = False
    version: str = "1.0.0"

    api: APIConfig = field(default_factory=APIConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> "KVDBConfig":
        """Create configuration from environment variables."""
        return cls(
            environment=os.getenv("KVDB_ENVIRONMENT", "development"),
            debug=os.getenv("KVDB_DEBUG", "false").lower() == "true",
            api=APIConfig.from_env(),
            database=DatabaseConfig.from_env(),
            logging=LoggingConfig.from_env(),
        )

    @classmethod
    def from_file(cls, filepath: str) -> "KVDBConfig":
        """Load configuration from JSON file."""
        path = Path(filepath)
        if not path.exists():
            logger.warning(f"Config file not found: {filepath}, using defaults")
            return cls.from_env()

        with open(path) as f:
            data = json.load(f)

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "KVDBConfig":
        """Create config from dictionary. File values override the environment."""
        config = cls.from_env()

        if "environment" in data:
            config.environment = data["environment"]
        if "debug" in data:
            config.debug = data["debug"]

        for section in ("api", "database", "logging"):
            if section not in data:
                continue
            target = getattr(config, section)
            for key, value in data[section].items():
                if hasattr(target, key):
                    setattr(target, key, value)
                else:
                    logger.warning(f"Unknown config key ignored: {section}.{key}")

        return config

    def log_level(self) -> str:
        """Effective log level; debug mode forces DEBUG."""
        return "DEBUG" if self.debug else self.logging.level

    def to_dict(self) -> Dict[str, Any]:
        """Serialize config to dictionary."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "version": self.version,
            "api": {
                "host": self.api.host,
                "port": self.api.port,
                "enable_docs": self.api.enable_docs,
            },
            "database": {
                "max_open_transactions": self.database.max_open_transactions,
            },
            "logging": {
                "level": self.logging.level,
                "log_file": self.logging.log_file,
                "json_logs": self.logging.json_logs,
            },
        }


def load_config(filepath: str = None) -> KVDBConfig:
    """
    Load configuration from file or environment.

    Args:
        filepath: Optional path to JSON config file

    Returns:
        KVDBConfig instance
    """
    if filepath:
        config = KVDBConfig.from_file(filepath)
    else:
        default_paths = [
            "./kvdb.json",
            "./config/kvdb.json",
            os.path.expanduser("~/.kvdb/config.json"),
        ]

        for path in default_paths:
            if Path(path).exists():
                logger.info(f"Loading config from: {path}")
                return KVDBConfig.from_file(path)

        config = KVDBConfig.from_env()

    logger.info(f"Configuration loaded: environment={config.environment}")
    return config
