"""Projection of the conversation log into completion request payloads."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from .models import BotMessage, Message, UserMessage

DEFAULT_FILE_INSTRUCTION = "Please describe the contents of this file."


class Speaker(str, Enum):
    """Turn author as named by the completion endpoint."""

    USER = "user"
    MODEL = "model"


@dataclass(frozen=True)
class TextPart:
    text: str

    def to_payload(self) -> dict[str, Any]:
        return {"text": self.text}


@dataclass(frozen=True)
class InlineDataPart:
    mime_type: str
    data: str

    def to_payload(self) -> dict[str, Any]:
        return {"inline_data": {"mime_type": self.mime_type, "data": self.data}}


Part = Union[TextPart, InlineDataPart]


@dataclass(frozen=True)
class Turn:
    """One entry of the request's ``contents`` list."""

    speaker: Speaker
    parts: tuple[Part, ...]

    def to_payload(self) -> dict[str, Any]:
        return {
            "role": self.speaker.value,
            "parts": [part.to_payload() for part in self.parts],
        }


@dataclass(frozen=True)
class CompletionRequest:
    """Ordered turns plus the single system instruction for one request."""

    turns: tuple[Turn, ...]
    system_instruction: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "contents": [turn.to_payload() for turn in self.turns],
            "systemInstruction": {"parts": [{"text": self.system_instruction}]},
        }


def build_system_instruction(bot_name: str) -> str:
    """Return the fixed persona instruction for ``bot_name``."""
    return f'You are a user friendly "AI assistant"  {bot_name}.'


def project_message(message: Message) -> Turn:
    """Map a single message onto a request turn."""
    if isinstance(message, UserMessage):
        attachment = message.attachment
        if attachment is None:
            return Turn(Speaker.USER, (TextPart(message.content),))
        text = message.content or DEFAULT_FILE_INSTRUCTION
        return Turn(
            Speaker.USER,
            (
                TextPart(text),
                InlineDataPart(mime_type=attachment.mime_type, data=attachment.data),
            ),
        )
    return Turn(Speaker.MODEL, (TextPart(message.content),))


def project_history(
    messages: Iterable[Message], system_instruction: str
) -> CompletionRequest:
    """Build the outbound request for ``messages`` without touching them.

    Loading placeholders are skipped.
    """
    turns = tuple(
        project_message(message)
        for message in messages
        if not (isinstance(message, BotMessage) and message.thinking)
    )
    return CompletionRequest(turns=turns, system_instruction=system_instruction)
