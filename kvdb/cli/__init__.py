"""
cli/ - Command shell

Interactive REPL and scripted command execution over a Database.
"""

from .core import (
    OutputFormat,
    CLIContext,
    CommandResult,
    CLICommand,
    CommandRegistry,
    format_output,
)

from .commands import (
    SetCommand,
    GetCommand,
    DeleteCommand,
    CountCommand,
    BeginCommand,
    CommitCommand,
    RollbackCommand,
    ClearCommand,
    StatusCommand,
    DEFAULT_COMMANDS,
)

from .repl import REPL

__all__ = [
    # Core
    "OutputFormat",
    "CLIContext",
    "CommandResult",
    "CLICommand",
    "CommandRegistry",
    "format_output",
    # Commands
    "SetCommand",
    "GetCommand",
    "DeleteCommand",
    "CountCommand",
    "BeginCommand",
    "CommitCommand",
    "RollbackCommand",
    "ClearCommand",
    "StatusCommand",
    "DEFAULT_COMMANDS",
    # REPL
    "REPL",
]
