"""Shared pytest fixtures for the create-chronicals-app test suite.

Provides reusable fixtures for:
- Scripted prompter answers
- In-memory template tarballs served through ``httpx.MockTransport``
- Fake command runner and tool probe
- Mock asyncio subprocesses
"""

from __future__ import annotations

import io
import tarfile
from collections.abc import Sequence
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from create_chronicals_app.config import Settings
from create_chronicals_app.utils import console

TEST_HOST = "https://codeload.test"


# ---------------------------------------------------------------------------
# Console
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def wide_console(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep Rich from wrapping long messages so output assertions are stable."""
    monkeypatch.setattr(console, "width", 500)


# ---------------------------------------------------------------------------
# Prompter
# ---------------------------------------------------------------------------

class FakePrompter:
    """Answers questions from a ``{message: answer}`` mapping.

    Unanswered questions return their default.  Every question is recorded in
    ``calls`` as ``(kind, message, choices, default)``.
    """

    def __init__(self, answers: dict[str, str] | None = None) -> None:
        self.answers = answers or {}
        self.calls: list[tuple[str, str, list[tuple[str, str]], str]] = []

    def ask_text(self, message: str, default: str) -> str:
        self.calls.append(("text", message, [], default))
        return self.answers.get(message, default)

    def select(self, message: str, choices: list[tuple[str, str]], default: str) -> str:
        self.calls.append(("select", message, list(choices), default))
        return self.answers.get(message, default)

    @property
    def messages(self) -> list[str]:
        return [message for _, message, _, _ in self.calls]


@pytest.fixture
def prompter() -> FakePrompter:
    return FakePrompter()


# ---------------------------------------------------------------------------
# Template archive & HTTP
# ---------------------------------------------------------------------------

def make_tarball(files: dict[str, str | bytes], root: str = "examples-1a2b3c4") -> bytes:
    """Build a gzip tarball shaped like a GitHub codeload download."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        root_info = tarfile.TarInfo(root)
        root_info.type = tarfile.DIRTYPE
        root_info.mode = 0o755
        tar.addfile(root_info)
        for name, content in files.items():
            data = content.encode("utf-8") if isinstance(content, str) else content
            info = tarfile.TarInfo(f"{root}/{name}")
            info.size = len(data)
            info.mode = 0o755 if name.endswith(".sh") else 0o644
            tar.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


TEMPLATE_FILES: dict[str, str] = {
    "README.md": "# Chronicals examples\n",
    "basic/typescript/package.json": '{"name": "basic-ts", "scripts": {"dev": "tsx src/index.ts"}}\n',
    "basic/typescript/src/index.ts": "console.log('hello from typescript');\n",
    "basic/typescript/yarn.lock": "# yarn lockfile v1\n",
    "basic/javascript/package.json": '{"name": "basic-js", "scripts": {"start": "node index.js"}}\n',
    "basic/javascript/index.js": "console.log('hello from javascript');\n",
    "qr-codes/typescript/package.json": '{"name": "qr-codes-ts"}\n',
    "qr-codes/typescript/scripts/setup.sh": "#!/bin/sh\necho setup\n",
    "qr-codes/javascript/package.json": '{"name": "qr-codes-js"}\n',
}


@pytest.fixture
def template_archive() -> bytes:
    """A tarball containing a few example templates."""
    return make_tarball(TEMPLATE_FILES)


class RecordingTransport(httpx.MockTransport):
    """``httpx.MockTransport`` that remembers every request it served."""

    def __init__(self, status_code: int = 200, content: bytes = b"") -> None:
        self.requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return httpx.Response(status_code, content=content)

        super().__init__(handler)


@pytest.fixture
def mock_transport(template_archive: bytes):
    """Factory for transports; defaults to serving ``template_archive``.

    Usage:
        def test_fetch(mock_transport):
            transport = mock_transport(status_code=404)
    """
    def factory(status_code: int = 200, content: bytes | None = None) -> RecordingTransport:
        return RecordingTransport(
            status_code=status_code,
            content=template_archive if content is None else content,
        )

    return factory


@pytest.fixture
def settings() -> Settings:
    return Settings(template_host=TEST_HOST, fetch_timeout=5, install_timeout=5, git_timeout=5)


# ---------------------------------------------------------------------------
# Commands & host probing
# ---------------------------------------------------------------------------

class FakeRunner:
    """Async stand-in for ``run_command``.

    ``results`` maps a command prefix (e.g. ``"npm install"`` or ``"git commit"``)
    to the ``(returncode, stdout, stderr)`` it should produce; unmatched
    commands succeed.  ``calls`` records ``(command, kwargs)`` pairs.
    """

    def __init__(self, results: dict[str, tuple[int, str, str]] | None = None) -> None:
        self.results = results or {}
        self.calls: list[tuple[list[str], dict[str, Any]]] = []

    async def __call__(self, cmd: list[str], **kwargs: Any) -> tuple[int, str, str]:
        command = list(cmd)
        self.calls.append((command, kwargs))
        joined = " ".join(command)
        for prefix, result in self.results.items():
            if joined.startswith(prefix):
                return result
        return (0, "", "")

    @property
    def commands(self) -> list[str]:
        return [" ".join(command) for command, _ in self.calls]


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


def make_probe(*installed: str):
    """Tool probe reporting only *installed* as available."""
    def probe(names: Sequence[str]) -> list[str]:
        return [name for name in names if name in installed]

    return probe


# ---------------------------------------------------------------------------
# Mock Subprocess (generic)
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_subprocess():
    """Mock asyncio subprocess for testing command execution.

    Returns a factory that creates mock subprocess instances with configurable
    stdout, stderr, and return codes.

    Usage:
        def test_command(mock_subprocess):
            proc = mock_subprocess(stdout="output", returncode=0)
            with patch("asyncio.create_subprocess_exec", return_value=proc):
                ...
    """
    def factory(
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> AsyncMock:
        mock_proc = AsyncMock()
        mock_proc.communicate = AsyncMock(
            return_value=(stdout.encode("utf-8"), stderr.encode("utf-8"))
        )
        mock_proc.returncode = returncode
        mock_proc.pid = 99999
        mock_proc.kill = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode)
        return mock_proc

    return factory


@pytest.fixture
def destination(tmp_path: Path) -> Path:
    """Where the generated app is written (not created in advance)."""
    return tmp_path / "app"


@pytest.fixture
def runner_factory():
    """The ``FakeRunner`` class, for tests that script command results."""
    return FakeRunner


@pytest.fixture
def probe_factory():
    """``make_probe``: build a tool probe reporting the given tools as installed."""
    return make_probe


@pytest.fixture
def tarball_factory():
    """``make_tarball``: build a codeload-shaped archive from a file mapping."""
    return make_tarball
