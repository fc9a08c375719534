"""Ordered conversation log."""

from __future__ import annotations

from collections.abc import Iterable

from .models import BotMessage, Message


class ConversationLog:
    """Append-only message history, replaced wholesale only on reset or restore."""

    def __init__(self, messages: Iterable[Message] = ()) -> None:
        self._messages: list[Message] = []
        self.replace(messages)

    @classmethod
    def seeded(cls, greeting: str) -> ConversationLog:
        """Return a log holding only the greeting bot message."""
        return cls([BotMessage.from_reply(greeting)])

    @property
    def messages(self) -> tuple[Message, ...]:
        """Return an immutable snapshot of the stored messages."""
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def append(self, message: Message) -> None:
        """Append ``message``; loading placeholders never enter the log."""
        if isinstance(message, BotMessage) and message.thinking:
            raise ValueError("Loading placeholders cannot be stored in the log.")
        self._messages.append(message)

    def replace(self, messages: Iterable[Message]) -> None:
        """Replace history from persisted data, dropping any placeholders."""
        self._messages = [
            message
            for message in messages
            if not (isinstance(message, BotMessage) and message.thinking)
        ]

    def reset(self, greeting: str) -> None:
        """Start over with a single greeting message."""
        self._messages = [BotMessage.from_reply(greeting)]
