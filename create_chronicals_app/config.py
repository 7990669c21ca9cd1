"""create-chronicals-app configuration.

Holds the template registry (languages, shorthands, templates), the run
settings read from the environment and the typed per-run configuration. All
models use Pydantic v2 so they are validated at construction time.
"""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

# ---------------------------------------------------------------------------
# Template registry
# ---------------------------------------------------------------------------

LANGUAGES: tuple[str, ...] = ("javascript", "typescript")

LANGUAGE_NAMES: dict[str, str] = {
    "javascript": "JavaScript",
    "typescript": "TypeScript",
}

LANGUAGE_SHORTHANDS: dict[str, str] = {
    "js": "javascript",
    "ts": "typescript",
}

_EXAMPLE_TEMPLATES: tuple[str, ...] = (
    "basic",
    "account-migration",
    "github-issue-editor",
    "metrics-notifier",
    "refund-charges",
    "user-settings",
    "web-screenshot-comparison",
    "qr-codes",
)

TEMPLATES: dict[str, tuple[str, ...]] = {
    "javascript": _EXAMPLE_TEMPLATES,
    "typescript": _EXAMPLE_TEMPLATES,
}

DEFAULT_DESTINATION = "./chronicals"
DEFAULT_LANGUAGE = "typescript"
DEFAULT_TEMPLATE = "basic"

ENV_FILE_NAME = ".env"
ENV_KEY_NAME = "CHRONICALS_KEY"
DEV_KEY_MARKER = "_dev_"


def normalize_language(language: str) -> str:
    """Map a shorthand (``js``/``ts``) to its canonical language identifier.

    Canonical names pass through untouched; unknown names are returned as-is
    so that the caller can report them.
    """
    return LANGUAGE_SHORTHANDS.get(language, language)


def all_templates() -> list[str]:
    """Return the union of every language's templates, in registry order."""
    seen: list[str] = []
    for language in LANGUAGES:
        for template in TEMPLATES[language]:
            if template not in seen:
                seen.append(template)
    return seen


def languages_for_template(template: str | None) -> list[str]:
    """Return the languages offering *template* (all languages if ``None``)."""
    if not template:
        return list(LANGUAGES)
    return [language for language in LANGUAGES if template in TEMPLATES[language]]


def language_choices() -> list[str]:
    """Every value accepted by ``--language``: canonical names plus shorthands."""
    return [*LANGUAGES, *LANGUAGE_SHORTHANDS]


def check_template(language: str, template: str) -> None:
    """Raise ``ValueError`` unless *template* is registered for *language*."""
    if language not in TEMPLATES:
        raise ValueError(
            f"Unknown language: {language}. Must be one of {', '.join(LANGUAGES)}."
        )
    valid = TEMPLATES[language]
    if template not in valid:
        raise ValueError(f"Invalid template: {template}. Must be one of {', '.join(valid)}.")


# ---------------------------------------------------------------------------
# Template descriptor
# ---------------------------------------------------------------------------


class TemplateDescriptor(BaseModel):
    """A ``(language, template)`` pair and its location in the examples repo."""

    language: str
    template: str

    @model_validator(mode="after")
    def _check_membership(self) -> "TemplateDescriptor":
        check_template(self.language, self.template)
        return self

    @property
    def subdirectory(self) -> str:
        """Path of the template inside the examples repository."""
        return f"{self.template}/{self.language}"

    def source(self, repo: str) -> str:
        """Full source coordinate, e.g. ``chronicals/examples/basic/typescript``."""
        return f"{repo}/{self.subdirectory}"


# ---------------------------------------------------------------------------
# Per-run configuration
# ---------------------------------------------------------------------------


class PartialConfig(BaseModel):
    """Whatever the user supplied on the command line; every field optional."""

    destination: str | None = None
    language: str | None = None
    template: str | None = None
    personal_development_key: str | None = None
    force: bool = False
    verbose: bool = False


class AppConfig(BaseModel):
    """A fully resolved, internally consistent project configuration.

    Instances are produced by the ``ConfigResolver`` and then threaded through
    every pipeline stage.
    """

    destination: str = Field(min_length=1)
    language: str
    template: str
    personal_development_key: str = Field(default="")
    force: bool = False
    verbose: bool = False

    @field_validator("language", mode="before")
    @classmethod
    def _canonical_language(cls, value: Any) -> Any:
        if isinstance(value, str):
            return normalize_language(value)
        return value

    @model_validator(mode="after")
    def _check_template(self) -> "AppConfig":
        check_template(self.language, self.template)
        return self

    @property
    def descriptor(self) -> TemplateDescriptor:
        return TemplateDescriptor(language=self.language, template=self.template)

    @property
    def language_name(self) -> str:
        """Human-readable language name (``TypeScript``)."""
        return LANGUAGE_NAMES[self.language]


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class Settings(BaseModel):
    """Environment-level knobs: where templates come from and how long to wait."""

    template_host: str = Field(default="https://codeload.github.com")
    template_repo: str = Field(default="chronicals/examples")
    template_ref: str = Field(default="HEAD")
    fetch_timeout: int = Field(default=60, ge=1, description="Template download timeout in seconds")
    install_timeout: int = Field(default=600, ge=1, description="Dependency install timeout in seconds")
    git_timeout: int = Field(default=60, ge=1, description="Per git command timeout in seconds")
    github_token: str | None = Field(default=None)

    @property
    def tarball_url(self) -> str:
        """URL of the gzip tarball for the configured repository and ref."""
        return f"{self.template_host.rstrip('/')}/{self.template_repo}/tar.gz/{self.template_ref}"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build ``Settings`` from environment variables.

        Recognised variables (all optional):
            CREATE_CHRONICALS_TEMPLATE_HOST, CREATE_CHRONICALS_TEMPLATE_REPO,
            CREATE_CHRONICALS_TEMPLATE_REF, CREATE_CHRONICALS_FETCH_TIMEOUT,
            CREATE_CHRONICALS_INSTALL_TIMEOUT, CREATE_CHRONICALS_GIT_TIMEOUT,
            GITHUB_TOKEN / GH_TOKEN.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("CREATE_CHRONICALS_TEMPLATE_HOST"):
            kwargs["template_host"] = os.environ["CREATE_CHRONICALS_TEMPLATE_HOST"]
        if os.environ.get("CREATE_CHRONICALS_TEMPLATE_REPO"):
            kwargs["template_repo"] = os.environ["CREATE_CHRONICALS_TEMPLATE_REPO"]
        if os.environ.get("CREATE_CHRONICALS_TEMPLATE_REF"):
            kwargs["template_ref"] = os.environ["CREATE_CHRONICALS_TEMPLATE_REF"]
        if os.environ.get("CREATE_CHRONICALS_FETCH_TIMEOUT"):
            kwargs["fetch_timeout"] = int(os.environ["CREATE_CHRONICALS_FETCH_TIMEOUT"])
        if os.environ.get("CREATE_CHRONICALS_INSTALL_TIMEOUT"):
            kwargs["install_timeout"] = int(os.environ["CREATE_CHRONICALS_INSTALL_TIMEOUT"])
        if os.environ.get("CREATE_CHRONICALS_GIT_TIMEOUT"):
            kwargs["git_timeout"] = int(os.environ["CREATE_CHRONICALS_GIT_TIMEOUT"])

        token = (os.environ.get("GITHUB_TOKEN") or os.environ.get("GH_TOKEN") or "").strip()
        if token:
            kwargs["github_token"] = token

        return cls(**kwargs)
