"""Domain exception hierarchy for the Zen chat client."""

from __future__ import annotations


class ZenChatError(RuntimeError):
    """Base class for all domain-level chat errors."""


class AttachmentReadError(ZenChatError):
    """Raised when a chosen file cannot be read for attachment."""


class TransportError(ZenChatError):
    """Raised when the completion endpoint cannot be reached or answers garbage."""


class PersistenceError(ZenChatError):
    """Raised when persistence operations fail."""


class PersistenceFormatError(PersistenceError):
    """Raised when a persisted payload cannot be decoded safely."""


class ConfigValidationError(ZenChatError):
    """Raised when configuration cannot be validated safely."""
