"""Named asyncio task tracking used as the request cancellation channel."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

LOGGER = logging.getLogger(__name__)


class TaskManager:
    """Track named background tasks so they can be cancelled and awaited."""

    def __init__(self) -> None:
        self._named: dict[str, asyncio.Task[Any]] = {}

    def add(self, name: str, task: asyncio.Task[Any]) -> None:
        """Register ``task`` under ``name``; the slot frees itself on completion."""
        self._named[name] = task
        task.add_done_callback(lambda done: self._release(name, done))

    def _release(self, name: str, task: asyncio.Task[Any]) -> None:
        if self._named.get(name) is task:
            del self._named[name]

    def get(self, name: str) -> asyncio.Task[Any] | None:
        """Return the named task or ``None`` if not registered."""
        return self._named.get(name)

    async def cancel(self, name: str) -> bool:
        """Cancel a named task and await its completion.

        Returns True when a running task was actually cancelled.
        """
        task = self._named.pop(name, None)
        if task is None or task.done():
            return False
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        LOGGER.info(
            "task.cancelled", extra={"event": "task.cancelled", "task": name}
        )
        return True

    async def cancel_all(self) -> None:
        """Cancel every tracked task and await them all."""
        for name in list(self._named):
            await self.cancel(name)
