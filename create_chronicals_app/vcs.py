"""Initialise a git repository with a single commit of the generated project."""

from __future__ import annotations

from pathlib import Path

from .results import Stage, StageResult
from .utils import CommandRunner, run_command

INITIAL_COMMIT_MESSAGE = "Initial commit from create-chronicals-app"


class CommandError(Exception):
    """Raised when a git command exits non-zero."""

    def __init__(self, message: str, command: str = "", returncode: int = 0, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class VcsInitializer:
    """Runs ``git init``, ``git add -A`` and the initial commit.

    Must run after dependencies are installed and ``.env`` is written so the
    lock files and the env file are part of the initial commit.
    """

    def __init__(self, runner: CommandRunner = run_command, timeout: int = 60) -> None:
        self.runner = runner
        self.timeout = timeout

    async def _git(self, *args: str, cwd: str | Path) -> str:
        cmd = ["git", *args]
        cmd_str = " ".join(cmd)
        try:
            returncode, stdout, stderr = await self.runner(cmd, cwd=cwd, timeout=self.timeout)
        except OSError as exc:
            raise CommandError(f"Could not run {cmd_str}: {exc}", command=cmd_str) from exc
        if returncode != 0:
            raise CommandError(
                f"Command failed (exit {returncode}): {cmd_str}",
                command=cmd_str,
                returncode=returncode,
                stderr=stderr,
            )
        return stdout

    async def initialize(self, destination: str | Path) -> StageResult:
        try:
            await self._git("init", cwd=destination)
            await self._git("add", "-A", cwd=destination)
            await self._git("commit", "-m", INITIAL_COMMIT_MESSAGE, cwd=destination)
        except CommandError as exc:
            return StageResult.failed(Stage.INIT_VCS, str(exc), detail=exc.stderr)
        return StageResult.ok(Stage.INIT_VCS)
