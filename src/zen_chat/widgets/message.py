"""Message bubble widget for conversation rendering."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Static

from ..attachments import truncate_file_name
from ..formatter import Span, SpanKind
from ..models import BotMessage, Message, UserMessage

SPAN_STYLES: dict[SpanKind, str] = {
    SpanKind.PLAIN: "",
    SpanKind.BOLD: "bold",
    SpanKind.ITALIC: "italic",
    SpanKind.UNDERLINE: "underline",
    SpanKind.CODE: "bold reverse",
}


def spans_to_rich_text(spans: Iterable[Span]) -> Text:
    """Style formatter spans without ever parsing markup in their text."""
    text = Text()
    for span in spans:
        text.append(span.text, style=SPAN_STYLES[span.kind] or None)
    return text


def attachment_label(message: UserMessage) -> str:
    """One-line description of a user message's attachment, or ''."""
    attachment = message.attachment
    if attachment is None:
        return ""
    if attachment.is_image:
        return f"[image] {attachment.name}"
    return f"📎 {truncate_file_name(attachment.name)}"


class MessageBubble(Vertical):
    """Render a single chat message with a role header and styled content."""

    DEFAULT_CSS = """
    MessageBubble {
        height: auto;
        margin-bottom: 1;
    }
    MessageBubble > #attachment-block {
        color: $text-muted;
    }
    MessageBubble > #content-block {
        height: auto;
    }
    """

    def __init__(self, message: Message, bot_name: str = "Zen", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.message = message
        self.bot_name = bot_name
        self.add_class(f"role-{message.role.value}")

    @property
    def role_prefix(self) -> str:
        """Return a human-friendly role label."""
        return "You" if isinstance(self.message, UserMessage) else self.bot_name

    def render_content(self) -> Text:
        if isinstance(self.message, BotMessage):
            return spans_to_rich_text(self.message.spans)
        return Text(self.message.display_content)

    def compose(self) -> ComposeResult:
        yield Static(Text(self.role_prefix, style="bold"), id="header-block")
        if isinstance(self.message, UserMessage) and self.message.attachment is not None:
            yield Static(Text(attachment_label(self.message)), id="attachment-block")
        yield Static(self.render_content(), id="content-block")
