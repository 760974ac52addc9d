"""Interactive version prompts on the terminal."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.prompt import Prompt

from release_mapper.exceptions import PromptError

if TYPE_CHECKING:
    from rich.console import Console


class RichPrompter:
    """Asks for versions with :class:`rich.prompt.Prompt`, offering the suggestion as default."""

    def __init__(self, console: Console) -> None:
        self.console = console

    def ask(self, question: str, default: str) -> str:
        try:
            return Prompt.ask(question, default=default, console=self.console)
        except (EOFError, KeyboardInterrupt) as e:
            raise PromptError(f"No answer to: {question}") from e
