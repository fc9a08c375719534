"""Durable key-value storage for the conversation log and preferences."""

from __future__ import annotations

from collections.abc import Iterable
import json
import logging
import os
from pathlib import Path
from typing import Protocol

from platformdirs import user_state_path

from .exceptions import PersistenceError, PersistenceFormatError
from .models import Message, message_from_dict

LOGGER = logging.getLogger(__name__)

APP_NAME = "zen-chat"
LOG_KEY = "chat-messages"
THEME_KEY = "chatbot-theme"


def default_store_path() -> Path:
    """Return the per-user state file used when no path is configured."""
    return user_state_path(APP_NAME) / "store.json"


class KeyValueStore(Protocol):
    """Opaque string store with get/set/remove semantics."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """In-process store for embedding hosts without durable storage."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def remove(self, key: str) -> None:
        self.values.pop(key, None)


class JsonFileStore:
    """Store every key in one private JSON object file."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path).expanduser() if path else default_store_path()

    def _enforce_permissions(self, path: Path, mode: int = 0o600) -> None:
        """Set POSIX permissions on a file or directory; silently ignores failures."""
        if os.name != "posix":
            return
        try:
            path.chmod(mode)
        except OSError:
            pass

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            LOGGER.warning(
                "persistence.store.unreadable",
                extra={
                    "event": "persistence.store.unreadable",
                    "path": str(self.path),
                    "error": str(exc),
                },
            )
            return {}
        if not isinstance(payload, dict):
            return {}
        return {k: v for k, v in payload.items() if isinstance(v, str)}

    def _write_all(self, values: dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._enforce_permissions(self.path.parent, 0o700)
            staging = self.path.with_suffix(self.path.suffix + ".tmp")
            staging.write_text(
                json.dumps(values, ensure_ascii=False, indent=2, sort_keys=True),
                encoding="utf-8",
            )
            self._enforce_permissions(staging)
            os.replace(staging, self.path)
        except OSError as exc:
            raise PersistenceError(f"Unable to write {self.path}: {exc}") from exc

    def get(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        values = self._read_all()
        values[key] = value
        self._write_all(values)

    def remove(self, key: str) -> None:
        values = self._read_all()
        if values.pop(key, None) is not None:
            self._write_all(values)


def decode_log(raw: str) -> list[Message]:
    """Decode a stored log.

    Raises:
        PersistenceFormatError: when ``raw`` is not a list of valid messages.
    """
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise PersistenceFormatError("Stored conversation is not valid JSON.") from exc
    if not isinstance(payload, list):
        raise PersistenceFormatError("Stored conversation must be a list.")
    try:
        return [message_from_dict(item) for item in payload]
    except ValueError as exc:
        raise PersistenceFormatError(f"Stored message is invalid: {exc}") from exc


def encode_log(messages: Iterable[Message]) -> str:
    return json.dumps(
        [message.to_dict() for message in messages],
        ensure_ascii=False,
        separators=(",", ":"),
    )


class ConversationPersistence:
    """Load, save and clear the conversation log and user preferences."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        log_key: str = LOG_KEY,
        enabled: bool = True,
    ) -> None:
        self.store = store
        self.log_key = log_key
        self.enabled = enabled

    def load_log(self) -> list[Message] | None:
        """Return the stored log, or None when absent, empty or unreadable."""
        if not self.enabled:
            return None
        raw = self.store.get(self.log_key)
        if raw is None:
            return None
        try:
            messages = decode_log(raw)
        except PersistenceFormatError as exc:
            LOGGER.warning(
                "persistence.log.corrupt",
                extra={"event": "persistence.log.corrupt", "error": str(exc)},
            )
            return None
        return messages or None

    def save_log(self, messages: Iterable[Message]) -> None:
        if not self.enabled:
            return
        self.store.set(self.log_key, encode_log(messages))

    def clear_log(self) -> None:
        if not self.enabled:
            return
        self.store.remove(self.log_key)

    def load_preference(self, key: str) -> str | None:
        if not self.enabled:
            return None
        return self.store.get(key)

    def save_preference(self, key: str, value: str) -> None:
        if not self.enabled:
            return
        self.store.set(key, value)
