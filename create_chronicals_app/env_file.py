"""Validate the personal development key and write it to ``.env``."""

from __future__ import annotations

from pathlib import Path

from .config import DEV_KEY_MARKER, ENV_FILE_NAME, ENV_KEY_NAME
from .results import Stage, StageResult


class InvalidKeyError(Exception):
    """Raised for a key that is not a development-mode key."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Invalid Personal development API key: {key}")


def validate_key(key: str | None) -> None:
    """Accept an empty key or one containing the development marker.

    Raises:
        InvalidKeyError: If *key* is non-empty and lacks ``_dev_``.
    """
    if key and DEV_KEY_MARKER not in key:
        raise InvalidKeyError(key)


def env_file_path(destination: str | Path) -> Path:
    return Path(destination) / ENV_FILE_NAME


class SecretsWriter:
    """Checks and persists the key as ``CHRONICALS_KEY=<value>``."""

    def validate(self, key: str | None) -> StageResult:
        try:
            validate_key(key)
        except InvalidKeyError as exc:
            return StageResult.failed(Stage.VALIDATE_SECRET, str(exc))
        return StageResult.ok(Stage.VALIDATE_SECRET)

    def persist(self, destination: str | Path, key: str | None) -> StageResult:
        """Overwrite ``<destination>/.env`` with the single key assignment.

        Existing content is replaced, never merged.  Callers must have
        validated *key* first.
        """
        path = env_file_path(destination)
        try:
            path.write_text(f"{ENV_KEY_NAME}={key or ''}", encoding="utf-8")
        except OSError as exc:
            return StageResult.failed(Stage.PERSIST_SECRET, f"Failed writing {path}: {exc}")
        return StageResult.ok(Stage.PERSIST_SECRET, detail=str(path))
