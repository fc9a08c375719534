"""Top-level package for zen-chat."""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .app import ZenChatApp
    from .attachments import AttachmentManager, encode_attachment, truncate_file_name
    from .client import CompletionClient
    from .config import ensure_config_dir, load_config
    from .controller import AppState, ConversationController
    from .exceptions import (
        AttachmentReadError,
        ConfigValidationError,
        PersistenceError,
        TransportError,
        ZenChatError,
    )
    from .formatter import Span, SpanKind, format_reply
    from .message_store import ConversationLog
    from .models import Attachment, AttachmentKind, BotMessage, UserMessage
    from .persistence import ConversationPersistence, JsonFileStore, MemoryStore
    from .projection import CompletionRequest, project_history
    from .state import RequestState, StateManager

_EXPORTS: dict[str, str] = {
    "ZenChatApp": ".app",
    "AttachmentManager": ".attachments",
    "encode_attachment": ".attachments",
    "truncate_file_name": ".attachments",
    "CompletionClient": ".client",
    "ensure_config_dir": ".config",
    "load_config": ".config",
    "AppState": ".controller",
    "ConversationController": ".controller",
    "AttachmentReadError": ".exceptions",
    "ConfigValidationError": ".exceptions",
    "PersistenceError": ".exceptions",
    "TransportError": ".exceptions",
    "ZenChatError": ".exceptions",
    "Span": ".formatter",
    "SpanKind": ".formatter",
    "format_reply": ".formatter",
    "ConversationLog": ".message_store",
    "Attachment": ".models",
    "AttachmentKind": ".models",
    "BotMessage": ".models",
    "UserMessage": ".models",
    "ConversationPersistence": ".persistence",
    "JsonFileStore": ".persistence",
    "MemoryStore": ".persistence",
    "CompletionRequest": ".projection",
    "project_history": ".projection",
    "RequestState": ".state",
    "StateManager": ".state",
}

__all__ = sorted(_EXPORTS)


def __getattr__(name: str) -> Any:
    """Lazily import symbols to keep the Textual UI out of core imports."""
    module_name = _EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    return getattr(import_module(module_name, __name__), name)
