"""CLI error handling with user-friendly messages.

This module provides consistent, helpful error messages for CLI users.
Stack traces are hidden by default but available with --log-level DEBUG.

Exit codes: 1 is reserved for "duplicates found", so every error handled
here exits with 2.
"""

import functools
from dataclasses import dataclass
from typing import Callable, Optional, ParamSpec, TypeVar

import click
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from dupguard.logging_config import get_logger

logger = get_logger(__name__)
console = Console(stderr=True)

P = ParamSpec("P")
R = TypeVar("R")

ERROR_EXIT_CODE = 2


@dataclass
class CLIError(Exception):
    """Base CLI error with user-friendly messaging."""

    message: str
    hint: Optional[str] = None
    fix: Optional[str] = None
    show_traceback: bool = False

    def __str__(self) -> str:
        return self.message


@dataclass
class ConfigError(CLIError):
    """Configuration errors."""

    message: str = "Configuration error"
    hint: str = "Your configuration file may be invalid."
    fix: str = "dupguard init --force"


@dataclass
class InputError(CLIError):
    """Unusable input: bad paths, unreadable files, not a git repository."""

    message: str = "Invalid input"
    hint: str = "Some of the given paths could not be used."
    fix: str = "Pass paths inside the project root, or use --staged inside a git repository."


@dataclass
class ResourceError(CLIError):
    """Resource exhaustion (memory, disk, etc)."""

    message: str = "Resource limit exceeded"
    hint: str = "The operation ran out of memory or disk space."
    fix: str = "Check fewer files at once, or exclude generated code with --exclude."


# Error classification rules: (pattern, error_class, custom_message)
ERROR_PATTERNS: list[tuple[str, type[CLIError], Optional[str]]] = [
    ("configerror", ConfigError, None),
    ("config file", ConfigError, None),
    ("validationerror", InputError, None),
    ("no such file", InputError, None),
    ("permission denied", InputError, "Permission denied while reading input"),
    ("not a git repository", InputError, "Not inside a git repository"),
    ("memory", ResourceError, "Out of memory"),
    ("disk", ResourceError, "Out of disk space"),
    ("too many open files", ResourceError, "File descriptor limit reached"),
]


def classify_error(error: Exception) -> CLIError:
    """Classify an exception into a user-friendly CLIError.

    Args:
        error: The original exception

    Returns:
        A CLIError with helpful messaging
    """
    if isinstance(error, CLIError):
        return error

    error_str = str(error).lower()
    error_type = type(error).__name__

    for pattern, error_class, custom_msg in ERROR_PATTERNS:
        if pattern in error_str or pattern in error_type.lower():
            msg = custom_msg or str(error)
            return error_class(message=msg)

    return CLIError(
        message=str(error)[:300],
        hint="An unexpected error occurred.",
        fix="Run with --log-level DEBUG for more details, or report this issue.",
    )


def format_error(error: CLIError) -> Panel:
    """Format a CLIError as a rich Panel.

    Args:
        error: The error to format

    Returns:
        Rich Panel with formatted error
    """
    content = Text()

    content.append(error.message, style="bold")
    content.append("\n")

    if error.hint:
        content.append("\n")
        content.append("💡 ", style="yellow")
        content.append(error.hint, style="dim")

    if error.fix:
        content.append("\n\n")
        content.append("Fix: ", style="green bold")
        content.append(error.fix, style="cyan")

    return Panel(
        content,
        title="[red bold]Error[/red bold]",
        border_style="red",
        padding=(1, 2),
    )


def print_error(
    error: Exception,
    verbose: bool = False,
    exit_code: int = ERROR_EXIT_CODE,
) -> None:
    """Print an error message and optionally exit.

    Args:
        error: The exception to print
        verbose: Show full traceback
        exit_code: Exit code (0 = don't exit)
    """
    cli_error = classify_error(error)

    logger.debug(f"CLI error: {error}", exc_info=True)

    console.print()
    console.print(format_error(cli_error))

    if verbose or cli_error.show_traceback:
        console.print("\n[dim]Traceback (for debugging):[/dim]")
        console.print_exception(show_locals=False)

    if exit_code:
        raise click.exceptions.Exit(exit_code)


def handle_errors(
    *,
    exit_on_error: bool = True,
    reraise: tuple[type[Exception], ...] = (),
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Decorator for CLI commands that provides friendly error handling.

    Usage:
        @cli.command()
        @handle_errors()
        def my_command():
            ...

    Args:
        exit_on_error: Whether to exit on error (default: True)
        reraise: Exception types to re-raise without handling

    Returns:
        Decorated function
    """
    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            ctx = click.get_current_context(silent=True)
            verbose = False
            if ctx:
                root_params = ctx.find_root().params
                verbose = root_params.get("log_level") == "DEBUG"

            try:
                return func(*args, **kwargs)
            except reraise:
                raise
            except (click.Abort, click.exceptions.Exit, click.ClickException):
                raise
            except KeyboardInterrupt:
                console.print("\n[yellow]Interrupted[/yellow]")
                raise click.Abort()
            except Exception as e:
                print_error(e, verbose=verbose, exit_code=ERROR_EXIT_CODE if exit_on_error else 0)

        return wrapper
    return decorator
