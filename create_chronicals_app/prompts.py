"""Interactive questions asked when the command line leaves gaps.

The resolver only depends on the small :class:`Prompter` protocol so tests can
answer questions without a terminal.  :class:`RichPrompter` is the terminal
implementation built on ``rich.prompt``.
"""

from __future__ import annotations

from typing import Protocol

from rich.console import Console
from rich.prompt import IntPrompt, Prompt

from .utils import console as default_console


class Prompter(Protocol):
    """Answers the resolver's questions."""

    def ask_text(self, message: str, default: str) -> str:
        """Ask a free-form question and return the answer (or *default*)."""
        ...

    def select(self, message: str, choices: list[tuple[str, str]], default: str) -> str:
        """Ask the user to pick one ``(label, value)`` pair and return its value."""
        ...


class RichPrompter:
    """Terminal prompter rendering numbered choices with Rich."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or default_console

    def ask_text(self, message: str, default: str) -> str:
        answer = Prompt.ask(message, default=default, console=self.console)
        return answer.strip() or default

    def select(self, message: str, choices: list[tuple[str, str]], default: str) -> str:
        values = [value for _, value in choices]
        default_index = values.index(default) + 1 if default in values else 1

        self.console.print(f"[bold]{message}[/bold]")
        for index, (label, _) in enumerate(choices, 1):
            self.console.print(f"  {index}) {label}", highlight=False)

        picked = IntPrompt.ask(
            "Enter number",
            choices=[str(i) for i in range(1, len(choices) + 1)],
            default=default_index,
            show_choices=False,
            console=self.console,
        )
        return values[picked - 1]
