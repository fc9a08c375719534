"""Scrollable conversation view widget."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from textual.containers import VerticalScroll

from ..models import Message
from .message import MessageBubble


class ConversationView(VerticalScroll):
    """A scrollable container that mirrors the conversation log."""

    def __init__(self, bot_name: str = "Zen", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.bot_name = bot_name
        self._rendered = 0
        self._first: Message | None = None

    @property
    def rendered_count(self) -> int:
        return self._rendered

    async def sync(self, messages: Sequence[Message]) -> None:
        """Mount bubbles for new messages; rebuild when the log was replaced."""
        # A reset swaps in a new greeting object, so identity marks a new log.
        if self._rendered > len(messages) or (
            messages and messages[0] is not self._first
        ):
            await self.remove_children()
            self._rendered = 0
        self._first = messages[0] if messages else None

        new_messages = messages[self._rendered :]
        if not new_messages:
            return
        await self.mount_all(
            [MessageBubble(message, bot_name=self.bot_name) for message in new_messages]
        )
        self._rendered = len(messages)
        self.scroll_end(animate=False)
