"""Widget exports for the zen_chat UI."""

from .conversation import ConversationView
from .message import MessageBubble, spans_to_rich_text

__all__ = ["ConversationView", "MessageBubble", "spans_to_rich_text"]
