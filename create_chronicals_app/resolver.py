"""Turn command-line input plus interactive answers into an ``AppConfig``."""

from __future__ import annotations

from .config import (
    DEFAULT_DESTINATION,
    DEFAULT_LANGUAGE,
    DEFAULT_TEMPLATE,
    LANGUAGE_NAMES,
    LANGUAGES,
    TEMPLATES,
    AppConfig,
    PartialConfig,
    languages_for_template,
    normalize_language,
)
from .prompts import Prompter


class ResolutionError(Exception):
    """Raised when the supplied options cannot form a valid configuration."""


class ConfigResolver:
    """Fills the gaps in a :class:`PartialConfig` by asking the user.

    Questions are only asked for values that are missing.  When a template is
    given but no language, the language is inferred if exactly one language
    offers that template.
    """

    def __init__(self, prompter: Prompter) -> None:
        self.prompter = prompter

    def resolve(self, partial: PartialConfig) -> AppConfig:
        destination = partial.destination
        if not destination:
            destination = self._ask_text(
                "Where would you like to create your app?", DEFAULT_DESTINATION
            )

        language = partial.language
        if not language:
            language = self._pick_language(partial.template)
        language = normalize_language(language)
        if language not in LANGUAGES:
            raise ResolutionError(
                f"Invalid language: {language}. Must be one of {', '.join(LANGUAGES)}."
            )

        template = partial.template
        if not template:
            template = self._select(
                "What template would you like to use?",
                [(name, name) for name in TEMPLATES[language]],
                DEFAULT_TEMPLATE,
            )

        valid = TEMPLATES[language]
        if template not in valid:
            raise ResolutionError(
                f"Invalid template: {template}. Must be one of {', '.join(valid)}."
            )

        if not destination:
            raise ResolutionError("A destination path is required.")

        return AppConfig(
            destination=destination,
            language=language,
            template=template,
            personal_development_key=partial.personal_development_key or "",
            force=partial.force,
            verbose=partial.verbose,
        )

    # stdin closed or not a terminal: no answer will ever come.

    def _ask_text(self, message: str, default: str) -> str:
        try:
            return self.prompter.ask_text(message, default)
        except EOFError as exc:
            raise ResolutionError(f"No answer for: {message}") from exc

    def _select(self, message: str, choices: list[tuple[str, str]], default: str) -> str:
        try:
            return self.prompter.select(message, choices, default)
        except EOFError as exc:
            raise ResolutionError(f"No answer for: {message}") from exc

    def _pick_language(self, template: str | None) -> str:
        candidates = languages_for_template(template)
        if not candidates:
            raise ResolutionError(f"No language offers the template: {template}.")
        if len(candidates) == 1:
            return candidates[0]

        default = DEFAULT_LANGUAGE if DEFAULT_LANGUAGE in candidates else candidates[0]
        return self._select(
            "What language would you like to use?",
            [(LANGUAGE_NAMES[name], name) for name in candidates],
            default,
        )
