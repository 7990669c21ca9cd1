"""Download a Chronicals example template into the destination directory.

The examples repository is fetched as a gzip tarball over HTTPS and only the
``<template>/<language>`` subdirectory is extracted.  Messages emitted through
the ``on_info``/``on_warn`` callbacks refer to options as ``options.<name>``;
callers rewrite them into flag syntax before display.
"""

from __future__ import annotations

import io
import os
import tarfile
import traceback
import zlib
from collections.abc import Callable
from pathlib import Path, PurePosixPath

import httpx

from .config import AppConfig, Settings
from .results import Stage, StageResult

MessageCallback = Callable[[str], None]


class FetchError(Exception):
    """Raised when the template cannot be downloaded or extracted."""

    def __init__(self, message: str, url: str = "") -> None:
        self.url = url
        super().__init__(message)


def _ignore(_: str) -> None:
    return None


class TemplateFetcher:
    """Fetches ``chronicals/examples/<template>/<language>`` into a directory.

    Args:
        settings: Source host, repository, ref and timeout.
        transport: Optional ``httpx`` transport, e.g. ``httpx.MockTransport``.
        on_info: Receives progress messages.
        on_warn: Receives warnings.
    """

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
        on_info: MessageCallback | None = None,
        on_warn: MessageCallback | None = None,
    ) -> None:
        self.settings = settings
        self.transport = transport
        self.on_info = on_info or _ignore
        self.on_warn = on_warn or _ignore

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch(self, config: AppConfig) -> StageResult:
        """Clone the configured template into ``config.destination``.

        Returns:
            A successful ``StageResult`` or a failed one carrying the error
            message and, in ``detail``, the formatted traceback.
        """
        try:
            count = await self.clone(config)
        except FetchError as exc:
            return StageResult.failed(Stage.FETCH, str(exc), detail=traceback.format_exc())
        return StageResult.ok(Stage.FETCH, detail=f"{count} files")

    async def clone(self, config: AppConfig) -> int:
        """Download and extract the template; return the number of files written.

        Raises:
            FetchError: On any download, archive or filesystem failure.
        """
        destination = Path(config.destination)
        self._check_destination(destination, config.force)

        descriptor = config.descriptor
        archive = await self._download()
        members = self._select_members(archive, descriptor.subdirectory)

        self.on_info(f"extracting {descriptor.subdirectory} to {destination}")
        written = self._extract(archive, members, destination)

        self.on_info(
            f"cloned {descriptor.source(self.settings.template_repo)}"
            f"#{self.settings.template_ref} to {destination}"
        )
        return written

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _check_destination(self, destination: Path, force: bool) -> None:
        try:
            if not destination.exists():
                return
            if not destination.is_dir():
                raise FetchError(f"destination {destination} exists and is not a directory")
            non_empty = any(destination.iterdir())
        except OSError as exc:
            raise FetchError(f"could not read destination {destination}: {exc}") from exc

        if non_empty:
            if not force:
                raise FetchError(
                    "destination directory is not empty, aborting. "
                    "Use options.force to override"
                )
            self.on_info("destination directory is not empty. Using options.force, continuing")

    def _client(self) -> httpx.AsyncClient:
        headers = {}
        if self.settings.github_token:
            headers["Authorization"] = f"Bearer {self.settings.github_token}"
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.fetch_timeout, connect=10.0),
            follow_redirects=True,
            headers=headers,
            transport=self.transport,
        )

    async def _download(self) -> bytes:
        url = self.settings.tarball_url
        self.on_info(f"downloading {url}")
        try:
            async with self._client() as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.content
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                f"could not download {url}: HTTP {exc.response.status_code}", url=url
            ) from exc
        except httpx.TimeoutException as exc:
            raise FetchError(
                f"timed out after {self.settings.fetch_timeout}s downloading {url}", url=url
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"could not download {url}: {exc}", url=url) from exc

    def _select_members(
        self, archive: bytes, subdirectory: str
    ) -> list[tuple[tarfile.TarInfo, PurePosixPath]]:
        """Return the archive members under *subdirectory* with their relative paths.

        GitHub tarballs wrap everything in a single ``<repo>-<sha>/`` directory,
        which is dropped before matching.
        """
        prefix = PurePosixPath(subdirectory).parts
        selected: list[tuple[tarfile.TarInfo, PurePosixPath]] = []
        try:
            with tarfile.open(fileobj=io.BytesIO(archive), mode="r:gz") as tar:
                for member in tar.getmembers():
                    parts = PurePosixPath(member.name).parts[1:]
                    if parts[: len(prefix)] != prefix or len(parts) == len(prefix):
                        continue
                    relative = PurePosixPath(*parts[len(prefix):])
                    if relative.is_absolute() or ".." in relative.parts:
                        raise FetchError(f"refusing to extract unsafe path: {member.name}")
                    selected.append((member, relative))
        except (tarfile.TarError, EOFError, zlib.error) as exc:
            raise FetchError(f"could not read template archive: {exc}") from exc

        if not any(member.isfile() for member, _ in selected):
            raise FetchError(
                f"could not find directory {subdirectory} in {self.settings.template_repo}"
            )
        return selected

    def _extract(
        self,
        archive: bytes,
        members: list[tuple[tarfile.TarInfo, PurePosixPath]],
        destination: Path,
    ) -> int:
        written = 0
        try:
            destination.mkdir(parents=True, exist_ok=True)
            with tarfile.open(fileobj=io.BytesIO(archive), mode="r:gz") as tar:
                for member, relative in members:
                    target = destination.joinpath(*relative.parts)
                    if member.isdir():
                        target.mkdir(parents=True, exist_ok=True)
                        continue
                    if not member.isfile():
                        self.on_warn(f"skipping {relative}: links are not supported")
                        continue

                    source = tar.extractfile(member)
                    if source is None:
                        continue
                    target.parent.mkdir(parents=True, exist_ok=True)
                    target.write_bytes(source.read())
                    if member.mode & 0o111:
                        os.chmod(target, member.mode & 0o777)
                    written += 1
        except (tarfile.TarError, EOFError, zlib.error) as exc:
            raise FetchError(f"could not read template archive: {exc}") from exc
        except OSError as exc:
            raise FetchError(f"could not write template to {destination}: {exc}") from exc
        return written
