"""
cli/commands.py - CLI command implementations

One command per Database operation. Engine errors become unsuccessful
CommandResults; they never escape into the REPL loop.
"""

from __future__ import annotations
import argparse
import re

from .core import CLICommand, CLIContext, CommandResult
from kvdb.core.constants import FIELD_MESSAGES, KEY_VALUE_PATTERN
from kvdb.core.models import Entry
from kvdb.errors import DatabaseError

_KEY_VALUE_RE = re.compile(KEY_VALUE_PATTERN)


class SetCommand(CLICommand):
    """Create or replace an entry."""

    name = "set"
    description = "Create or replace an entry"
    aliases = ["put"]

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("key", help="Entry key (1-10 alphanumeric characters)")
        parser.add_argument("value", help="Entry value (1-10 alphanumeric characters)")

    def execute(self, ctx: CLIContext, args: argparse.Namespace) -> CommandResult:
        errors = [
            FIELD_MESSAGES[field_name]
            for field_name in ("key", "value")
            if not _KEY_VALUE_RE.fullmatch(getattr(args, field_name))
        ]
        if errors:
            return CommandResult.failure(" ".join(errors))

        entry = Entry(args.key, args.value)
        replaced = ctx.database.store(entry)

        return CommandResult(
            message=f"{'Replaced' if replaced else 'Created'} {entry.key}",
            data=entry.to_dict(),
        )


class GetCommand(CLICommand):
    """Retrieve an entry."""

    name = "get"
    description = "Show the value stored under a key"

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("key", help="Entry key")

    def execute(self, ctx: CLIContext, args: argparse.Namespace) -> CommandResult:
        try:
            entry = ctx.database.retrieve(args.key)
        except DatabaseError as e:
            return CommandResult.failure(e.message)
        return CommandResult(message=entry.value, data=entry.to_dict())


class DeleteCommand(CLICommand):
    """Remove an entry."""

    name = "delete"
    description = "Remove the entry stored under a key"
    aliases = ["unset", "remove"]

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("key", help="Entry key")

    def execute(self, ctx: CLIContext, args: argparse.Namespace) -> CommandResult:
        try:
            ctx.database.remove(args.key)
        except DatabaseError as e:
            return CommandResult.failure(e.message)
        return CommandResult(message=f"Removed {args.key}")


class CountCommand(CLICommand):
    """Count keys holding a value."""

    name = "count"
    description = "Count keys currently holding a value"
    aliases = ["numequalto"]

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("value", help="Value to count")

    def execute(self, ctx: CLIContext, args: argparse.Namespace) -> CommandResult:
        counter = ctx.database.count_entries(args.value)
        return CommandResult(message=str(counter.occurrences), data=counter.to_dict())


class BeginCommand(CLICommand):
    """Open a transaction."""

    name = "begin"
    description = "Begin a transaction (nested if one is open)"

    def execute(self, ctx: CLIContext, args: argparse.Namespace) -> CommandResult:
        try:
            ctx.database.begin()
        except DatabaseError as e:
            return CommandResult.failure(e.message)
        return CommandResult(message="Transaction started", data={"depth": ctx.database.depth})


class CommitCommand(CLICommand):
    """Commit all open transactions."""

    name = "commit"
    description = "Commit all open transactions"

    def execute(self, ctx: CLIContext, args: argparse.Namespace) -> CommandResult:
        ctx.database.commit()
        return CommandResult(message="Committed")


class RollbackCommand(CLICommand):
    """Roll back the innermost transaction."""

    name = "rollback"
    description = "Discard the innermost transaction"

    def execute(self, ctx: CLIContext, args: argparse.Namespace) -> CommandResult:
        try:
            ctx.database.rollback()
        except DatabaseError as e:
            return CommandResult.failure(e.message)
        return CommandResult(message="Rolled back", data={"depth": ctx.database.depth})


class ClearCommand(CLICommand):
    """Drop all data and transactions."""

    name = "clear"
    description = "Clear all entries and open transactions"

    def execute(self, ctx: CLIContext, args: argparse.Namespace) -> CommandResult:
        ctx.database.clear_all()
        return CommandResult(message="Database cleared")


class StatusCommand(CLICommand):
    """Show transaction status."""

    name = "status"
    description = "Show transaction state and depth"

    def execute(self, ctx: CLIContext, args: argparse.Namespace) -> CommandResult:
        state = ctx.database.state
        depth = ctx.database.depth
        return CommandResult(
            message=f"{state.value} (depth {depth})",
            data={"state": state.value, "depth": depth},
        )


DEFAULT_COMMANDS = [
    SetCommand,
    GetCommand,
    DeleteCommand,
    CountCommand,
    BeginCommand,
    CommitCommand,
    RollbackCommand,
    ClearCommand,
    StatusCommand,
]
