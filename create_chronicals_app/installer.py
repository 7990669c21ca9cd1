"""Detect the host's package manager and install the project's dependencies."""

from __future__ import annotations

from pathlib import Path

from .results import Stage, StageResult
from .utils import CommandRunner, ToolProbe, find_tools, run_command

DEFAULT_PACKAGE_MANAGER = "npm"
PACKAGE_MANAGERS: tuple[str, ...] = ("npm", "yarn")

INSTALL_COMMANDS: dict[str, list[str]] = {
    "npm": ["npm", "install", "--no-fund"],
    "yarn": ["yarn", "install"],
}

START_COMMANDS: dict[str, dict[str, list[str]]] = {
    "javascript": {
        "npm": ["npm start"],
        "yarn": ["yarn start"],
    },
    "typescript": {
        "npm": ["npm run dev"],
        "yarn": ["yarn dev"],
    },
}


def detect_package_manager(probe: ToolProbe = find_tools) -> str:
    """Return ``yarn`` when it is installed, otherwise ``npm``."""
    available = probe(["yarn"])
    return "yarn" if "yarn" in available else DEFAULT_PACKAGE_MANAGER


def start_commands(language: str, package_manager: str) -> list[str]:
    """Commands that start the generated app.

    Raises:
        KeyError: For an unknown language / package manager combination.
    """
    return list(START_COMMANDS[language][package_manager])


class DependencyInstaller:
    """Runs the package manager's install command inside the project.

    Output is streamed straight to the terminal.  A failed install is
    reported as a failed ``StageResult``; nothing is raised.
    """

    def __init__(
        self,
        runner: CommandRunner = run_command,
        probe: ToolProbe = find_tools,
        timeout: int = 600,
    ) -> None:
        self.runner = runner
        self.probe = probe
        self.timeout = timeout

    def detect(self) -> str:
        return detect_package_manager(self.probe)

    async def install(self, destination: str | Path, package_manager: str) -> StageResult:
        command = INSTALL_COMMANDS[package_manager]
        try:
            returncode, _, stderr = await self.runner(
                command, cwd=destination, timeout=self.timeout, capture=False
            )
        except OSError as exc:
            return StageResult.failed(Stage.INSTALL, str(exc))
        if returncode != 0:
            message = stderr or f"Command failed (exit {returncode}): {' '.join(command)}"
            return StageResult.failed(Stage.INSTALL, message)

        if package_manager == "npm":
            # Templates ship a yarn lockfile; npm writes its own.
            try:
                (Path(destination) / "yarn.lock").unlink(missing_ok=True)
            except OSError as exc:
                return StageResult.failed(Stage.INSTALL, f"Could not remove yarn.lock: {exc}")

        return StageResult.ok(Stage.INSTALL, detail=package_manager)
