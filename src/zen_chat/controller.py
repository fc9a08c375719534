"""Conversation controller: owns the log and drives the request lifecycle."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
import logging

from .attachments import AttachmentManager
from .client import CompletionClient, extract_reply_text
from .exceptions import PersistenceError, TransportError
from .message_store import ConversationLog
from .models import Attachment, BotMessage, Message, UserMessage, file_marker
from .persistence import ConversationPersistence
from .projection import CompletionRequest, build_system_instruction, project_history
from .state import RequestState, StateManager
from .task_manager import TaskManager

LOGGER = logging.getLogger(__name__)

BOT_NAME = "Zen"
DEFAULT_GREETING = (
    "Hi there! I'm Zen, your personal assistant. How can I help you today?"
)
FALLBACK_REPLY = (
    "Sorry, I'm having a little trouble understanding. Could you try rephrasing?"
)
ERROR_REPLY = "Error: Could not get response."

REQUEST_TASK = "completion_request"


@dataclass
class AppState:
    """Mutable application state handed to the controller."""

    log: ConversationLog
    draft: str = ""
    attachments: AttachmentManager = field(default_factory=AttachmentManager)


def restore_log(
    persistence: ConversationPersistence, greeting: str = DEFAULT_GREETING
) -> ConversationLog:
    """Return the stored log, or a freshly seeded one when nothing usable is stored."""
    messages = persistence.load_log()
    if messages is None:
        LOGGER.info("chat.log.seeded", extra={"event": "chat.log.seeded"})
        return ConversationLog.seeded(greeting)
    return ConversationLog(messages)


def build_app_state(
    persistence: ConversationPersistence, greeting: str = DEFAULT_GREETING
) -> AppState:
    return AppState(log=restore_log(persistence, greeting))


def compose_user_message(text: str, attachment: Attachment | None) -> UserMessage:
    """Build the user message, recording document names as a first line."""
    content = text
    if attachment is not None and not attachment.is_image:
        content = file_marker(attachment.name) + text
    return UserMessage(content=content, attachment=attachment)


class ConversationController:
    """Append user turns, request replies, and keep the log persisted.

    At most one request is in flight. Every failure ends as an ordinary bot
    message; nothing is raised to the host.
    """

    def __init__(
        self,
        state: AppState,
        client: CompletionClient,
        persistence: ConversationPersistence,
        *,
        bot_name: str = BOT_NAME,
        greeting: str = DEFAULT_GREETING,
        fallback_reply: str = FALLBACK_REPLY,
        error_reply: str = ERROR_REPLY,
    ) -> None:
        self.state = state
        self.client = client
        self.persistence = persistence
        self.greeting = greeting
        self.fallback_reply = fallback_reply
        self.error_reply = error_reply
        self.system_instruction = build_system_instruction(bot_name)
        self.request_state = StateManager()
        self._tasks = TaskManager()
        self._listeners: list[Callable[[], None]] = []

    @property
    def messages(self) -> tuple[Message, ...]:
        return self.state.log.messages

    @property
    def is_pending(self) -> bool:
        return self.request_state.current is RequestState.PENDING

    def on_change(self, callback: Callable[[], None]) -> None:
        """Register a callback run after every log or request-state change."""
        self._listeners.append(callback)

    def _emit(self) -> None:
        for callback in list(self._listeners):
            callback()

    def _persist(self) -> None:
        try:
            self.persistence.save_log(self.state.log.messages)
        except PersistenceError as exc:
            LOGGER.warning(
                "chat.log.persist_failed",
                extra={"event": "chat.log.persist_failed", "error": str(exc)},
            )

    def _append(self, message: Message) -> None:
        self.state.log.append(message)
        self._persist()
        self._emit()

    async def submit(self, text: str | None = None) -> bool:
        """Send ``text`` (default: the current draft) with any staged attachment.

        Returns False without side effects when there is nothing to send or a
        request is already pending; otherwise waits for the request to settle.
        """
        draft = self.state.draft if text is None else text
        if not draft.strip() and self.state.attachments.pending is None:
            return False
        if not await self.request_state.transition_if(
            RequestState.IDLE, RequestState.PENDING
        ):
            LOGGER.info(
                "chat.submit.ignored",
                extra={"event": "chat.submit.ignored", "reason": "pending"},
            )
            return False

        message = compose_user_message(draft, self.state.attachments.take())
        self.state.draft = ""
        self._append(message)

        request = project_history(self.state.log.messages, self.system_instruction)
        task = asyncio.create_task(self._complete(request))
        self._tasks.add(REQUEST_TASK, task)
        await asyncio.wait({task})
        return True

    async def _complete(self, request: CompletionRequest) -> None:
        cancelled = False
        try:
            payload = await self.client.generate(request)
        except asyncio.CancelledError:
            cancelled = True
            LOGGER.info(
                "chat.request.cancelled", extra={"event": "chat.request.cancelled"}
            )
            raise
        except TransportError as exc:
            LOGGER.error(
                "chat.request.failed",
                extra={"event": "chat.request.failed", "error": str(exc)},
            )
            self._append(BotMessage.from_reply(self.error_reply))
        except Exception:  # noqa: BLE001 - the host must never see a raw failure.
            LOGGER.exception(
                "chat.request.unexpected_error",
                extra={"event": "chat.request.unexpected_error"},
            )
            self._append(BotMessage.from_reply(self.error_reply))
        else:
            reply = extract_reply_text(payload)
            if reply is None or not reply.strip():
                LOGGER.warning(
                    "chat.response.missing_text",
                    extra={"event": "chat.response.missing_text"},
                )
                reply = self.fallback_reply
            self._append(BotMessage.from_reply(reply))
            LOGGER.info(
                "chat.request.complete", extra={"event": "chat.request.complete"}
            )
        finally:
            # A cancelled request stays PENDING; reset() returns to IDLE once
            # the log is reseeded.
            if not cancelled:
                await self.request_state.transition_to(RequestState.IDLE)
                self._emit()

    async def reset(self) -> None:
        """Cancel any in-flight request and start over with the greeting."""
        cancelled = await self._tasks.cancel(REQUEST_TASK)
        self.state.log.reset(self.greeting)
        try:
            self.persistence.clear_log()
        except PersistenceError as exc:
            LOGGER.warning(
                "chat.log.clear_failed",
                extra={"event": "chat.log.clear_failed", "error": str(exc)},
            )
        await self.request_state.transition_to(RequestState.IDLE)
        LOGGER.info(
            "chat.reset",
            extra={"event": "chat.reset", "cancelled_request": cancelled},
        )
        self._emit()

    async def shutdown(self) -> None:
        """Cancel outstanding work and close the HTTP client."""
        await self._tasks.cancel_all()
        await self.client.aclose()
