"""Textual host application embedding the conversation controller."""

from __future__ import annotations

import logging
from typing import Any

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header, Input, LoadingIndicator, Static

from .attachments import LocalFile
from .client import CompletionClient
from .config import load_config
from .controller import AppState, ConversationController, build_app_state
from .logging_utils import configure_logging
from .models import AttachmentKind
from .persistence import ConversationPersistence, JsonFileStore
from .theme import ThemeManager
from .widgets.conversation import ConversationView

LOGGER = logging.getLogger(__name__)

ATTACH_COMMAND = "/attach"
REMOVE_COMMAND = "/remove"


def build_controller(
    config: dict[str, dict[str, Any]],
) -> tuple[ConversationController, ThemeManager]:
    """Wire store, client, state and controller from a loaded config."""
    persistence_cfg = config["persistence"]
    persistence = ConversationPersistence(
        JsonFileStore(persistence_cfg["path"] or None),
        enabled=bool(persistence_cfg["enabled"]),
    )
    completion_cfg = config["completion"]
    client = CompletionClient(
        endpoint=completion_cfg["endpoint"],
        model=completion_cfg["model"],
        api_key=completion_cfg["api_key"],
        timeout=completion_cfg["timeout"],
        retries=completion_cfg["retries"],
        retry_backoff_seconds=completion_cfg["retry_backoff_seconds"],
    )
    bot_cfg = config["bot"]
    state: AppState = build_app_state(persistence, bot_cfg["greeting"])
    controller = ConversationController(
        state,
        client,
        persistence,
        bot_name=bot_cfg["name"],
        greeting=bot_cfg["greeting"],
        fallback_reply=bot_cfg["fallback_reply"],
        error_reply=bot_cfg["error_reply"],
    )
    theme_manager = ThemeManager(persistence, default=config["ui"]["default_theme"])
    return controller, theme_manager


class ZenChatApp(App[None]):
    """Chat window: conversation, staged attachment, loading indicator, input."""

    CSS = """
    #conversation {
        height: 1fr;
        padding: 0 1;
    }
    #attachment_preview {
        height: auto;
        color: $text-muted;
        padding: 0 1;
    }
    #loading {
        height: 1;
    }
    """

    BINDINGS = [
        Binding("ctrl+n", "new_chat", "New chat"),
        Binding("ctrl+t", "toggle_theme", "Theme"),
        Binding("ctrl+q", "quit", "Quit"),
    ]

    def __init__(
        self,
        config: dict[str, dict[str, Any]] | None = None,
        controller: ConversationController | None = None,
        theme_manager: ThemeManager | None = None,
    ) -> None:
        super().__init__()
        self.config = config or load_config()
        if controller is None or theme_manager is None:
            configure_logging(self.config["logging"])
            controller, theme_manager = build_controller(self.config)
        self.controller = controller
        self.theme_manager = theme_manager
        self.title = self.config["app"]["title"]

    def compose(self) -> ComposeResult:
        yield Header()
        yield ConversationView(bot_name=self.config["bot"]["name"], id="conversation")
        yield LoadingIndicator(id="loading")
        yield Static("", id="attachment_preview")
        yield Input(placeholder="Type your message...", id="message_input")
        yield Footer()

    async def on_mount(self) -> None:
        self.theme = self.theme_manager.textual_theme
        self.controller.on_change(self._schedule_refresh)
        self.controller.state.attachments.on_status_update(self._set_status)
        await self.refresh_view()
        self.query_one("#message_input", Input).focus()

    def _set_status(self, message: str) -> None:
        self.sub_title = message

    def _schedule_refresh(self) -> None:
        self.call_later(self.refresh_view)

    async def refresh_view(self) -> None:
        """Bring widgets in line with the controller's state."""
        await self.query_one(ConversationView).sync(self.controller.messages)
        self.query_one("#loading", LoadingIndicator).display = self.controller.is_pending
        preview = self.controller.state.attachments.preview
        label = self.query_one("#attachment_preview", Static)
        if preview is None:
            label.update("")
            label.display = False
        else:
            icon = "[image]" if preview.kind is AttachmentKind.IMAGE else "📎"
            label.update(Text(f"{icon} {preview.label}  ({REMOVE_COMMAND} to drop)"))
            label.display = True

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "message_input":
            return
        value = event.value
        command, _, argument = value.strip().partition(" ")
        if command == ATTACH_COMMAND and argument.strip():
            event.input.value = ""
            self.run_worker(self._attach(argument.strip()), group="attachment")
            return
        if command == REMOVE_COMMAND:
            event.input.value = ""
            self.controller.state.attachments.remove()
            await self.refresh_view()
            return

        has_attachment = self.controller.state.attachments.pending is not None
        if self.controller.is_pending or not (value.strip() or has_attachment):
            return
        event.input.value = ""
        self.run_worker(self.controller.submit(value), group="request")

    async def _attach(self, path: str) -> None:
        await self.controller.state.attachments.select(LocalFile(path))
        await self.refresh_view()

    async def action_new_chat(self) -> None:
        await self.controller.reset()

    def action_toggle_theme(self) -> None:
        self.theme_manager.toggle()
        self.theme = self.theme_manager.textual_theme

    async def on_unmount(self) -> None:
        await self.controller.shutdown()
