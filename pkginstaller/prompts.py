"""
Interactive questions asked during a batch install.

``InteractivePrompter`` reads answers from the terminal; ``AutoPrompter``
answers from command-line flags so unattended runs never block.
"""

from rich.prompt import Confirm, Prompt

from pkginstaller.branding import console
from pkginstaller.suggestions.package_suggester import Suggestion

SKIP_ANSWERS = {"", "n", "no", "s", "skip"}


def parse_choice(answer: str, suggestions: list[Suggestion]) -> Suggestion | None:
    """Map a typed answer (1-based number, or skip) to a suggestion."""
    answer = answer.strip().lower()
    if answer in SKIP_ANSWERS:
        return None
    try:
        index = int(answer) - 1
    except ValueError:
        return None
    if 0 <= index < len(suggestions):
        return suggestions[index]
    return None


class InteractivePrompter:
    """Asks questions on the console."""

    persist_answers = True

    def confirm(self, question: str) -> bool:
        try:
            return Confirm.ask(question, console=console, default=False)
        except EOFError:
            return False

    def choose_alternative(self, suggestions: list[Suggestion]) -> Suggestion | None:
        """
        Let the user pick one of the suggestions.

        Returns:
            The chosen suggestion, or None to skip
        """
        if not suggestions:
            return None
        try:
            answer = Prompt.ask(
                f"Install a suggested package? [1-{len(suggestions)}] or 'n' to skip",
                console=console,
                default="n",
                show_default=False,
            )
        except EOFError:
            return None
        return parse_choice(answer, suggestions)


class AutoPrompter:
    """Answers every question with a fixed decision."""

    persist_answers = False

    def __init__(self, accept: bool):
        self.accept = accept

    def confirm(self, question: str) -> bool:
        return self.accept

    def choose_alternative(self, suggestions: list[Suggestion]) -> Suggestion | None:
        if self.accept and suggestions:
            return suggestions[0]
        return None
