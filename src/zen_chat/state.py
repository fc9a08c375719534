"""Request state machine and lock-protected transitions."""

from __future__ import annotations

import asyncio
from enum import Enum


class RequestState(str, Enum):
    """Whether a completion request is currently awaiting its reply."""

    IDLE = "IDLE"
    PENDING = "PENDING"


class StateManager:
    """Manage state transitions with async lock semantics."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._state = RequestState.IDLE

    @property
    def current(self) -> RequestState:
        """Return the last committed state without waiting for the lock."""
        return self._state

    async def transition_to(self, new_state: RequestState) -> RequestState:
        """Transition to a new state and return it."""
        async with self._lock:
            self._state = new_state
            return self._state

    async def transition_if(
        self,
        expected_state: RequestState,
        new_state: RequestState,
    ) -> bool:
        """Transition only when current state matches expected state."""
        async with self._lock:
            if self._state != expected_state:
                return False
            self._state = new_state
            return True
