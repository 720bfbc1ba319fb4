"""
bootstrap/entrypoints.py - Application entry points

Provides CLI and API entry points.
"""

from __future__ import annotations
import argparse
import json
import logging
import sys

from kvdb.cli.core import OutputFormat

logger = logging.getLogger("bootstrap.entrypoints")

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per log record."""

    def format(self, record):
        return json.dumps({
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        })


def setup_logging(
    level: str = "INFO",
    log_file: str = None,
    json_format: bool = False,
    fmt: str = DEFAULT_FORMAT,
) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path
        json_format: Use JSON format for logs
        fmt: Format string for plain-text logs
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    formatter = JSONFormatter() if json_format else logging.Formatter(fmt)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(log_level)
        root_logger.addHandler(file_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def cli_main(args: list = None) -> int:
    """
    CLI entry point.

    Args:
        args: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code
    """
    parser = argparse.ArgumentParser(
        description="kvdb transactional key-value shell",
        prog="kvdb cli",
    )

    parser.add_argument(
        "-c", "--config",
        help="Path to configuration file",
        default=None,
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Log level",
    )
    parser.add_argument(
        "--log-file",
        help="Log file path",
        default=None,
    )
    parser.add_argument(
        "-s", "--script",
        help="Execute script file",
        default=None,
    )
    parser.add_argument(
        "-e", "--execute",
        help="Execute single command",
        default=None,
    )
    parser.add_argument(
        "--format",
        choices=[f.value for f in OutputFormat],
        default=OutputFormat.TEXT.value,
        help="Output format for -e and -s",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Shorthand for --format json",
    )

    parsed = parser.parse_args(args)

    log_level = "DEBUG" if parsed.verbose else parsed.log_level
    setup_logging(level=log_level, log_file=parsed.log_file)

    try:
        from .app import KVDBApp
        from kvdb.cli.core import CLIContext, format_output
        from kvdb.cli.repl import REPL

        app = KVDBApp(parsed.config)

        if parsed.script or parsed.execute:
            app.build()
            ctx = CLIContext(
                database=app.database,
                output_format=OutputFormat.JSON if parsed.json else OutputFormat(parsed.format),
                verbose=parsed.verbose,
            )
            repl = REPL(ctx)

            if parsed.script:
                results = repl.execute_file(parsed.script)
                for result in results:
                    print(format_output(result, ctx.output_format, ctx.verbose))
                return 0 if all(r.success for r in results) else 1

            result = repl.execute_line(parsed.execute)
            print(format_output(result, ctx.output_format, ctx.verbose))
            return result.exit_code

        return app.run_cli()

    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1


def api_main(args: list = None) -> None:
    """
    API server entry point.

    Args:
        args: Command line arguments
    """
    parser = argparse.ArgumentParser(
        description="kvdb API Server",
        prog="kvdb api",
    )

    parser.add_argument(
        "-c", "--config",
        help="Path to configuration file",
        default=None,
    )
    parser.add_argument(
        "-p", "--port",
        type=int,
        help="API port",
        default=None,
    )
    parser.add_argument(
        "-H", "--host",
        help="API host",
        default=None,
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (overrides config)",
    )

    parsed = parser.parse_args(args)

    try:
        from .app import KVDBApp

        app = KVDBApp(parsed.config)
        app.build()

        log_config = app.config.logging
        setup_logging(
            level=parsed.log_level or app.config.log_level(),
            log_file=log_config.log_file,
            json_format=log_config.json_logs,
            fmt=log_config.format,
        )

        if parsed.port:
            app.config.api.port = parsed.port
        if parsed.host:
            app.config.api.host = parsed.host

        app.run_api()

    except KeyboardInterrupt:
        print("\nShutting down...")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)


def main():
    """Main entry point for the package."""
    if len(sys.argv) > 1:
        command = sys.argv[1]

        if command == "api":
            api_main(sys.argv[2:])
        elif command == "cli":
            sys.exit(cli_main(sys.argv[2:]))
        elif command in ["-h", "--help"]:
            print("kvdb - transactional key-value store v1.0.0")
            print()
            print("Usage: kvdb <command> [options]")
            print()
            print("Commands:")
            print("  cli      Start interactive shell")
            print("  api      Start API server")
            print()
            print("Use '<command> --help' for command-specific help.")
        else:
            sys.exit(cli_main(sys.argv[1:]))
    else:
        sys.exit(cli_main([]))


if __name__ == "__main__":
    main()
