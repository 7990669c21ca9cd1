"""create-chronicals-app pipeline orchestrator.

Drives one scaffolding run through a fixed sequence of stages:

RESOLVE         -- merge flags and interactive answers into an ``AppConfig``.
FETCH           -- download the template (failure aborts the run).
VALIDATE_SECRET -- reject live-mode keys (failure exits 1).
PERSIST_SECRET  -- write ``.env``.
INSTALL         -- install dependencies (best effort).
INIT_VCS        -- ``git init`` and initial commit (best effort).
REPORT          -- print how to start the app.

Usage::

    create-chronicals-app ./my-app --language ts --template basic
    python -m create_chronicals_app --template qr-codes
"""

from __future__ import annotations

import argparse
import asyncio
import sys

import httpx

from .config import (
    AppConfig,
    PartialConfig,
    Settings,
    all_templates,
    language_choices,
)
from .env_file import SecretsWriter
from .fetcher import TemplateFetcher
from .installer import DependencyInstaller, start_commands
from .prompts import Prompter, RichPrompter
from .resolver import ConfigResolver, ResolutionError
from .results import RunState, Stage, StageResult
from .utils import (
    CommandRunner,
    ToolProbe,
    console,
    find_tools,
    print_detail,
    print_error,
    print_info,
    print_success,
    print_warning,
    run_command,
    sanitize_option_names,
)
from .vcs import VcsInitializer

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CANCELLED = 130

# ---------------------------------------------------------------------------
# Pipeline Orchestrator
# ---------------------------------------------------------------------------


class Pipeline:
    """Sequences the scaffolding stages and maps their outcomes to an exit code.

    Collaborators are injectable so tests can replace the network, the
    terminal and the host's executables.

    Attributes:
        settings: Template source and timeouts.
        resolver: Builds the ``AppConfig`` from partial input.
        secrets: Validates and writes the ``.env`` file.
        installer: Detects the package manager and installs dependencies.
        vcs: Creates the git repository.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        prompter: Prompter | None = None,
        runner: CommandRunner = run_command,
        probe: ToolProbe = find_tools,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.transport = transport
        self.resolver = ConfigResolver(prompter or RichPrompter())
        self.secrets = SecretsWriter()
        self.installer = DependencyInstaller(
            runner=runner, probe=probe, timeout=self.settings.install_timeout
        )
        self.vcs = VcsInitializer(runner=runner, timeout=self.settings.git_timeout)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _make_fetcher(self, config: AppConfig) -> TemplateFetcher:
        def on_info(message: str) -> None:
            if config.verbose:
                print_detail(sanitize_option_names(message))

        def on_warn(message: str) -> None:
            print_warning(sanitize_option_names(message))

        return TemplateFetcher(
            self.settings, transport=self.transport, on_info=on_info, on_warn=on_warn
        )

    @staticmethod
    def _record(run: RunState, result: StageResult) -> StageResult:
        run.results.append(result)
        return result

    @staticmethod
    def _finish(run: RunState, state: Stage, exit_code: int) -> RunState:
        run.state = state
        run.exit_code = exit_code
        return run

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self, partial: PartialConfig) -> RunState:
        """Execute every stage for *partial* and return the run record.

        The returned ``RunState.exit_code`` is the process exit status.
        """
        run = self.resolve(partial)
        if run.state == Stage.FAILED:
            return run
        return await self.execute(run)

    def resolve(self, partial: PartialConfig) -> RunState:
        """Run the RESOLVE stage.

        Prompts block on the terminal, so this runs outside the event loop;
        Ctrl-C at a prompt surfaces as ``KeyboardInterrupt`` to the caller.
        """
        run = RunState()
        try:
            config = self.resolver.resolve(partial)
        except ResolutionError as exc:
            self._record(run, StageResult.failed(Stage.RESOLVE, str(exc)))
            print_error(str(exc))
            return self._finish(run, Stage.FAILED, EXIT_FAILURE)
        run.config = config
        self._record(run, StageResult.ok(Stage.RESOLVE))
        return run

    async def execute(self, run: RunState) -> RunState:
        """Run every stage after RESOLVE for an already resolved *run*."""
        config = run.config
        if config is None:
            raise ValueError("execute() needs a resolved configuration")

        console.print()
        print_info(
            f"Creating a {config.language_name} Chronicals app with the "
            f"{config.template} template..."
        )
        console.print()

        # FETCH
        run.state = Stage.FETCH
        print_info("Fetching app template...")
        result = self._record(run, await self._make_fetcher(config).fetch(config))
        if not result.success:
            print_error(
                "Failed to clone Chronicals app template: "
                f"{sanitize_option_names(result.error or '')}"
            )
            if config.verbose and result.detail:
                print_detail(result.detail)
            return self._finish(run, Stage.ABORTED, EXIT_OK)

        # VALIDATE_SECRET
        run.state = Stage.VALIDATE_SECRET
        key = config.personal_development_key
        result = self._record(run, self.secrets.validate(key))
        if not result.success:
            print_error(result.error or "Invalid Personal development API key")
            return self._finish(run, Stage.FAILED, EXIT_FAILURE)

        # PERSIST_SECRET
        run.state = Stage.PERSIST_SECRET
        result = self._record(run, self.secrets.persist(config.destination, key))
        if not result.success:
            print_error(result.error or "Failed writing .env")

        # INSTALL
        run.state = Stage.INSTALL
        print_info("Installing dependencies...")
        package_manager = self.installer.detect()
        run.package_manager = package_manager
        if config.verbose:
            print_detail(f"Using {package_manager}")
        result = self._record(
            run, await self.installer.install(config.destination, package_manager)
        )
        if not result.success:
            print_error(f"Failed installing dependencies: {result.error}")

        # INIT_VCS
        run.state = Stage.INIT_VCS
        print_info("Initializing git repository...")
        result = self._record(run, await self.vcs.initialize(config.destination))
        if not result.success:
            print_error(f"Failed to initialize git directory: {result.error}")
            if config.verbose and result.detail:
                print_detail(result.detail)

        # REPORT
        run.state = Stage.REPORT
        console.print()
        print_success(f"✨ Created new {config.language_name} Chronicals app.")
        console.print()

        try:
            lines = run_instructions(config, package_manager)
        except KeyError as exc:
            self._record(run, StageResult.failed(Stage.REPORT, f"unsupported combination {exc}"))
            print_error(f"Failed generating start steps: unsupported combination {exc}")
            return self._finish(run, Stage.FAILED, EXIT_FAILURE)

        print_info("\n".join(lines))
        console.print()
        self._record(run, StageResult.ok(Stage.REPORT))
        return self._finish(run, Stage.DONE, EXIT_OK)


def run_instructions(config: AppConfig, package_manager: str) -> list[str]:
    """The numbered "To run your app" steps shown after a successful run."""
    commands = start_commands(config.language, package_manager)
    return [
        "To run your app:",
        f"1. cd {config.destination}",
        *(f"{index}. {command}" for index, command in enumerate(commands, 2)),
    ]


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="create-chronicals-app",
        description="Create Chronicals App",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  create-chronicals-app ./my-app\n"
            "  create-chronicals-app ./my-app -l ts -t qr-codes\n"
            "  create-chronicals-app --template basic --force --verbose\n"
        ),
    )

    parser.add_argument(
        "destination",
        nargs="?",
        default=None,
        help="Path where the Chronicals app should be created",
    )
    parser.add_argument(
        "--template", "-t",
        choices=all_templates(),
        default=None,
        help="The Chronicals app template to use",
    )
    parser.add_argument(
        "--language", "-l",
        choices=language_choices(),
        default=None,
        help="JavaScript or TypeScript",
    )
    parser.add_argument(
        "--personal_development_key", "--personal-development-key", "--pdk",
        dest="personal_development_key",
        default=None,
        help=(
            "Your Personal Development API Key. For security reasons, Live mode "
            "keys may not be passed using this option."
        ),
    )
    parser.add_argument(
        "--force",
        action="store_true",
        default=False,
        help="Overwrite the destination if it already exists",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        default=False,
        help="Enable verbose logging",
    )
    return parser


def parse_args(argv: list[str] | None = None) -> PartialConfig:
    args = build_parser().parse_args(argv)
    return PartialConfig(
        destination=args.destination,
        language=args.language,
        template=args.template,
        personal_development_key=args.personal_development_key,
        force=args.force,
        verbose=args.verbose,
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``create-chronicals-app``."""
    partial = parse_args(argv)
    try:
        settings = Settings.from_env()
    except ValueError as exc:
        print_error(f"Invalid environment configuration: {exc}")
        sys.exit(EXIT_FAILURE)
    pipeline = Pipeline(settings)

    try:
        result = pipeline.resolve(partial)
        if result.state != Stage.FAILED:
            result = asyncio.run(pipeline.execute(result))
    except KeyboardInterrupt:
        console.print()
        print_error("Cancelled.")
        sys.exit(EXIT_CANCELLED)

    sys.exit(result.exit_code)


if __name__ == "__main__":
    main()
