"""Typed conversation messages and attachments."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from .formatter import Span, format_reply

FILE_MARKER_PREFIX = "[FILE] "


class Role(str, Enum):
    """Author of a message in the conversation log."""

    USER = "user"
    BOT = "bot"


class AttachmentKind(str, Enum):
    """How an attachment is previewed and labelled."""

    IMAGE = "image"
    DOCUMENT = "document"

    @classmethod
    def from_mime_type(cls, mime_type: str) -> AttachmentKind:
        return cls.IMAGE if mime_type.lower().startswith("image/") else cls.DOCUMENT


@dataclass(frozen=True)
class Attachment:
    """A transport-ready file payload carried by one user message."""

    data: str
    mime_type: str
    name: str
    kind: AttachmentKind = field(init=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", AttachmentKind.from_mime_type(self.mime_type))

    @property
    def is_image(self) -> bool:
        return self.kind is AttachmentKind.IMAGE

    def to_dict(self) -> dict[str, str]:
        return {"data": self.data, "mime_type": self.mime_type, "name": self.name}


def file_marker(name: str) -> str:
    """Return the synthetic first line recording a document's file name."""
    return f"{FILE_MARKER_PREFIX}{name}\n"


def strip_file_marker(content: str, name: str) -> str:
    """Remove a leading file marker line written for ``name``.

    Only the exact synthetic line is removed; any user text after it is kept.
    """
    marker = file_marker(name)
    if content.startswith(marker):
        return content[len(marker) :]
    if content == marker.rstrip("\n"):
        return ""
    return content


@dataclass(frozen=True)
class UserMessage:
    """A message typed (and optionally attached) by the user."""

    content: str
    attachment: Attachment | None = None

    @property
    def role(self) -> Role:
        return Role.USER

    @property
    def display_content(self) -> str:
        """Content as shown to the user, without the synthetic file marker."""
        if self.attachment is not None and not self.attachment.is_image:
            return strip_file_marker(self.content, self.attachment.name)
        return self.content

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.attachment is not None:
            payload["file"] = self.attachment.to_dict()
        return payload


@dataclass(frozen=True)
class BotMessage:
    """A reply from the model, or a fixed fallback/error/greeting text.

    ``thinking`` marks the transient loading placeholder a host may show while
    a request is pending; such messages are never sent nor stored.
    """

    content: str
    spans: tuple[Span, ...] = ()
    thinking: bool = False

    @classmethod
    def from_reply(cls, text: str) -> BotMessage:
        spans = format_reply(text)
        return cls(content=text.strip(), spans=spans)

    @property
    def role(self) -> Role:
        return Role.BOT

    @property
    def display_content(self) -> str:
        return self.content

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role.value, "content": self.content}


Message = Union[UserMessage, BotMessage]


def _attachment_from_dict(raw: Any) -> Attachment | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValueError("Attachment must be an object.")
    data = raw.get("data")
    mime_type = raw.get("mime_type")
    name = raw.get("name")
    if not all(isinstance(value, str) for value in (data, mime_type, name)):
        raise ValueError("Attachment requires string data, mime_type and name.")
    return Attachment(data=data, mime_type=mime_type, name=name)


def message_from_dict(raw: Any) -> Message:
    """Rebuild a message from its persisted dict form.

    Raises:
        ValueError: when the payload does not describe a user or bot message.
    """
    if not isinstance(raw, dict):
        raise ValueError("Message must be an object.")
    role = str(raw.get("role", "")).strip().lower()
    content = raw.get("content", "")
    if not isinstance(content, str):
        raise ValueError("Message content must be a string.")

    if role == Role.USER.value:
        return UserMessage(content=content, attachment=_attachment_from_dict(raw.get("file")))
    if role == Role.BOT.value:
        return BotMessage.from_reply(content)
    raise ValueError(f"Unknown message role {role!r}.")
