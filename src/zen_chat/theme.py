"""Light/dark theme preference."""

from __future__ import annotations

import logging

from .exceptions import PersistenceError
from .persistence import THEME_KEY, ConversationPersistence

LOGGER = logging.getLogger(__name__)

THEMES: tuple[str, ...] = ("light", "dark")


class ThemeManager:
    """Remember the user's theme choice through the persistence adapter."""

    def __init__(
        self, persistence: ConversationPersistence, default: str = "light"
    ) -> None:
        self.persistence = persistence
        self._current = default if default in THEMES else THEMES[0]
        saved = persistence.load_preference(THEME_KEY)
        if saved in THEMES:
            self._current = saved
        elif saved is not None:
            LOGGER.warning(
                "theme.invalid_saved",
                extra={"event": "theme.invalid_saved", "theme": saved},
            )

    @property
    def current(self) -> str:
        return self._current

    @property
    def textual_theme(self) -> str:
        """Name of the matching built-in Textual theme."""
        return f"textual-{self._current}"

    def set(self, theme: str) -> str:
        """Switch to ``theme`` and persist it.

        Raises:
            ValueError: for anything other than ``light`` or ``dark``.
        """
        normalized = theme.strip().lower()
        if normalized not in THEMES:
            raise ValueError(f"Unknown theme {theme!r}; expected light or dark.")
        self._current = normalized
        try:
            self.persistence.save_preference(THEME_KEY, normalized)
        except PersistenceError as exc:
            LOGGER.warning(
                "theme.persist_failed",
                extra={"event": "theme.persist_failed", "error": str(exc)},
            )
        return normalized

    def toggle(self) -> str:
        """Flip between light and dark."""
        return self.set("dark" if self._current == "light" else "light")
