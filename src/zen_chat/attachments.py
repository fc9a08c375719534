"""Attachment reading, encoding, and pending-attachment state.

A user may stage one file before sending. The file is read as soon as it is
chosen so a failure surfaces immediately; base64 encoding happens when the
message is sent.
"""

from __future__ import annotations

import asyncio
import base64
from collections.abc import Callable
from dataclasses import dataclass
import logging
import mimetypes
from pathlib import Path
from typing import Protocol

from .exceptions import AttachmentReadError
from .models import Attachment, AttachmentKind

LOGGER = logging.getLogger(__name__)

# File types the host offers in its picker; the core does not enforce them.
ACCEPTED_EXTENSIONS: frozenset[str] = frozenset(
    {".txt", ".pdf", ".docx", ".jpg", ".jpeg", ".png", ".gif"}
)

DEFAULT_MIME_TYPE = "application/octet-stream"


class FileHandle(Protocol):
    """A chosen file that can be read asynchronously."""

    name: str
    mime_type: str

    async def read(self) -> bytes: ...


class LocalFile:
    """File handle backed by a path on the local filesystem."""

    def __init__(self, path: str | Path, mime_type: str | None = None) -> None:
        self.path = Path(path).expanduser()
        self.name = self.path.name
        guessed, _ = mimetypes.guess_type(self.name)
        self.mime_type = mime_type or guessed or DEFAULT_MIME_TYPE

    async def read(self) -> bytes:
        return await asyncio.to_thread(self.path.read_bytes)


def truncate_file_name(name: str, max_length: int = 16) -> str:
    """Shorten long file names to ``first8...last4`` for compact previews."""
    if not name or len(name) <= max_length:
        return name
    return name[:8] + "..." + name[-4:]


@dataclass(frozen=True)
class AttachmentPreview:
    """What the host shows for a staged attachment."""

    kind: AttachmentKind
    label: str


@dataclass(frozen=True)
class PendingAttachment:
    """A file chosen but not yet sent."""

    name: str
    mime_type: str
    content: bytes
    kind: AttachmentKind

    @property
    def preview(self) -> AttachmentPreview:
        if self.kind is AttachmentKind.IMAGE:
            return AttachmentPreview(kind=self.kind, label=self.name)
        return AttachmentPreview(kind=self.kind, label=truncate_file_name(self.name))

    def encode(self) -> Attachment:
        data = base64.b64encode(self.content).decode("ascii")
        return Attachment(data=data, mime_type=self.mime_type, name=self.name)


async def read_attachment(handle: FileHandle) -> PendingAttachment:
    """Read ``handle`` fully.

    Raises:
        AttachmentReadError: when the underlying read fails.
    """
    try:
        content = await handle.read()
    except Exception as exc:  # noqa: BLE001 - any I/O backend may be plugged in.
        raise AttachmentReadError(f"Unable to read {handle.name!r}: {exc}") from exc
    mime_type = handle.mime_type or DEFAULT_MIME_TYPE
    return PendingAttachment(
        name=handle.name,
        mime_type=mime_type,
        content=bytes(content),
        kind=AttachmentKind.from_mime_type(mime_type),
    )


async def encode_attachment(handle: FileHandle) -> Attachment:
    """Read ``handle`` and return its transport-ready payload."""
    pending = await read_attachment(handle)
    return pending.encode()


class AttachmentManager:
    """Hold at most one pending attachment and guard its file read."""

    def __init__(self) -> None:
        self._pending: PendingAttachment | None = None
        self._reading = False
        self._on_status_update: Callable[[str], None] | None = None

    def on_status_update(self, callback: Callable[[str], None]) -> None:
        """Register callback for status/subtitle updates."""
        self._on_status_update = callback

    def _notify(self, message: str) -> None:
        if self._on_status_update is not None:
            self._on_status_update(message)

    @property
    def pending(self) -> PendingAttachment | None:
        return self._pending

    @property
    def preview(self) -> AttachmentPreview | None:
        return self._pending.preview if self._pending is not None else None

    @property
    def is_reading(self) -> bool:
        return self._reading

    async def select(self, handle: FileHandle) -> PendingAttachment | None:
        """Read ``handle`` and stage it, replacing any earlier choice.

        Returns None when another read is still in progress or the read fails;
        a failed read leaves nothing staged.
        """
        if self._reading:
            return None
        self._reading = True
        try:
            pending = await read_attachment(handle)
        except AttachmentReadError as exc:
            self._pending = None
            LOGGER.warning(
                "attachment.read.failed",
                extra={
                    "event": "attachment.read.failed",
                    "file_name": handle.name,
                    "error": str(exc),
                },
            )
            self._notify(f"Could not read {handle.name}")
            return None
        finally:
            self._reading = False

        self._pending = pending
        LOGGER.info(
            "attachment.selected",
            extra={
                "event": "attachment.selected",
                "file_name": pending.name,
                "kind": pending.kind.value,
                "size": len(pending.content),
            },
        )
        self._notify(f"File attached: {pending.preview.label}")
        return pending

    def remove(self) -> None:
        """Discard the staged attachment, if any."""
        self._pending = None

    def take(self) -> Attachment | None:
        """Encode and clear the staged attachment."""
        pending, self._pending = self._pending, None
        if pending is None:
            return None
        return pending.encode()
