"""Shared utility functions for create-chronicals-app.

Provides async command execution, host tool probing, option-name rewriting
for user-facing messages, and Rich-based console output helpers.
"""

from __future__ import annotations

import asyncio
import re
import shutil
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path

from rich.console import Console
from rich.markup import escape

console = Console()

CommandRunner = Callable[..., Awaitable[tuple[int, str, str]]]
"""Signature of :func:`run_command`; stages accept any coroutine with this shape."""

ToolProbe = Callable[[Sequence[str]], list[str]]
"""Given candidate executable names, return the ones installed on the host."""

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: int = 120,
    capture: bool = True,
) -> tuple[int, str, str]:
    """Run a command asynchronously.

    Args:
        cmd: Program and arguments; never passed through a shell.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
        capture: Whether to capture stdout/stderr (if ``False`` they inherit
            the parent's streams).

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.  If *capture* is ``False``
        the stdout/stderr strings will be empty.  A missing executable is
        reported as return code 127, a missing working directory as 1 and a
        timeout as -1.
    """
    stdout_pipe = asyncio.subprocess.PIPE if capture else None
    stderr_pipe = asyncio.subprocess.PIPE if capture else None
    cmd_str = " ".join(cmd)

    if cwd is not None and not Path(cwd).is_dir():
        return (1, "", f"Working directory does not exist: {cwd}")

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=stdout_pipe,
            stderr=stderr_pipe,
            cwd=str(cwd) if cwd is not None else None,
        )
    except FileNotFoundError as exc:
        return (127, "", f"Command not found: {exc.filename or cmd_str}")

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (-1, "", f"Command timed out after {timeout}s: {cmd_str}")
    except asyncio.CancelledError:
        # Do not leave the child running when the run is cancelled.
        if process.returncode is None:
            process.kill()
            await process.wait()
        raise

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


# ---------------------------------------------------------------------------
# Host probing
# ---------------------------------------------------------------------------


def find_tools(names: Sequence[str]) -> list[str]:
    """Return the subset of *names* that resolve to an executable on ``PATH``."""
    return [name for name in names if shutil.which(name)]


# ---------------------------------------------------------------------------
# Message helpers
# ---------------------------------------------------------------------------

_OPTION_PREFIX = re.compile(r"\boptions\.")


def sanitize_option_names(message: str) -> str:
    """Rewrite internal option references to CLI flag syntax.

    Examples::

        sanitize_option_names("Use options.force to override")
            -> "Use --force to override"
    """
    return _OPTION_PREFIX.sub("--", message)


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_info(message: str) -> None:
    """Print a plain progress message."""
    console.print(message, highlight=False, markup=False)


def print_detail(message: str) -> None:
    """Print a dimmed message, used for verbose-only detail."""
    console.print(f"[dim]{escape(message)}[/dim]", highlight=False)


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{escape(message)}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{escape(message)}[/bold yellow]")
