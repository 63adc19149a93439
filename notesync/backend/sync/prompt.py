"""
Confirmation Prompt.

The single yes/no question the sync engine may ask the user: what to do
when the remote account differs from the one last synced.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass

import click


@dataclass(frozen=True)
class ConfirmOptions:
    title: str = "Confirm"
    ok_label: str = "OK"
    cancel_label: str = "Cancel"


class ConfirmationPrompt(ABC):
    @abstractmethod
    async def confirm(self, message: str, options: ConfirmOptions | None = None) -> bool:
        """Return True for the OK choice, False for the cancel choice."""
        ...


class ClickConfirmationPrompt(ConfirmationPrompt):
    """Asks on the terminal. Runs the blocking prompt in a worker thread."""

    async def confirm(self, message: str, options: ConfirmOptions | None = None) -> bool:
        options = options or ConfirmOptions()
        question = f"{options.title}\n\n{message}\n\n{options.ok_label}?"
        return await asyncio.to_thread(click.confirm, question, default=False)


class FixedAnswerPrompt(ConfirmationPrompt):
    """Always gives the same answer. For non-interactive runs."""

    def __init__(self, answer: bool) -> None:
        self.answer = answer
        self.messages: list[str] = []

    async def confirm(self, message: str, options: ConfirmOptions | None = None) -> bool:
        self.messages.append(message)
        return self.answer


def account_switch_question(previous: str, current: str) -> tuple[str, ConfirmOptions]:
    message = (
        f"The account changed from {previous} to {current}. What do you want to do?\n\n"
        f"Switch: discard the notes on this device and load the notes of {current}\n"
        f"Merge: combine the notes on this device with the notes of {current}"
    )
    return message, ConfirmOptions(title="Account changed", ok_label="Switch", cancel_label="Merge")
