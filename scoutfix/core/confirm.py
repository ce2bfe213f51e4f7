"""Confirmation gates for mutating steps.

Every step that changes the system asks a ``Confirm`` first. A confirm is any
callable taking the question and returning True to proceed, so the console
prompt, auto-confirm mode and test doubles are interchangeable.
"""

from collections.abc import Callable

from rich.console import Console
from rich.prompt import Confirm as ConfirmPrompt

Confirm = Callable[[str], bool]


class UserDeclined(Exception):
    """The user answered no at a confirmation gate.

    Not a failure: the run stops early and exits successfully.
    """


def always_confirm(message: str) -> bool:
    """Auto-confirm mode: every question is answered yes."""
    return True


def prompt_confirm(console: Console | None = None) -> Confirm:
    """Build a confirm that asks on the console (default answer: no)."""

    def confirm(message: str) -> bool:
        return ConfirmPrompt.ask(message, console=console, default=False)

    return confirm


def require(confirm: Confirm, message: str, declined: str) -> None:
    """Ask ``message`` and raise UserDeclined with ``declined`` on a no."""
    if not confirm(message):
        raise UserDeclined(declined)
