"""Tests for attachment reading, encoding, previews, and pending state."""

from __future__ import annotations

import asyncio
import base64
from pathlib import Path
import tempfile
import unittest
from unittest.mock import patch

from zen_chat.attachments import (
    AttachmentManager,
    LocalFile,
    encode_attachment,
    truncate_file_name,
)
from zen_chat.exceptions import AttachmentReadError
from zen_chat.models import AttachmentKind


class FakeHandle:
    """In-memory file handle; optionally fails or blocks on read."""

    def __init__(
        self,
        name: str,
        mime_type: str,
        content: bytes = b"",
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.name = name
        self.mime_type = mime_type
        self.content = content
        self.error = error
        self.gate = gate

    async def read(self) -> bytes:
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.content


class TruncateFileNameTests(unittest.TestCase):
    def test_long_name_is_shortened(self) -> None:
        self.assertEqual(truncate_file_name("annual-report-2024.pdf"), "annual-r....pdf")

    def test_short_name_unchanged(self) -> None:
        self.assertEqual(truncate_file_name("a.txt"), "a.txt")

    def test_boundary_length_unchanged(self) -> None:
        name = "abcdefghijkl.txt"
        self.assertEqual(len(name), 16)
        self.assertEqual(truncate_file_name(name), name)

    def test_empty_name(self) -> None:
        self.assertEqual(truncate_file_name(""), "")


class EncodeAttachmentTests(unittest.IsolatedAsyncioTestCase):
    async def test_encodes_base64_with_metadata(self) -> None:
        attachment = await encode_attachment(
            FakeHandle("notes.txt", "text/plain", b"hello")
        )
        self.assertEqual(attachment.data, base64.b64encode(b"hello").decode("ascii"))
        self.assertEqual(attachment.mime_type, "text/plain")
        self.assertEqual(attachment.name, "notes.txt")
        self.assertIs(attachment.kind, AttachmentKind.DOCUMENT)

    async def test_read_failure_raises_domain_error(self) -> None:
        with self.assertRaises(AttachmentReadError):
            await encode_attachment(
                FakeHandle("x.pdf", "application/pdf", error=OSError("denied"))
            )

    async def test_local_file_guesses_mime_type(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "photo.png"
            path.write_bytes(b"\x89PNG")
            handle = LocalFile(path)
            self.assertEqual(handle.mime_type, "image/png")
            attachment = await encode_attachment(handle)
            self.assertIs(attachment.kind, AttachmentKind.IMAGE)
            self.assertEqual(base64.b64decode(attachment.data), b"\x89PNG")

    async def test_local_file_missing_path_fails(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            with self.assertRaises(AttachmentReadError):
                await encode_attachment(LocalFile(Path(temp_dir) / "missing.txt"))


class AttachmentManagerTests(unittest.IsolatedAsyncioTestCase):
    async def test_select_document_sets_truncated_preview(self) -> None:
        manager = AttachmentManager()
        statuses: list[str] = []
        manager.on_status_update(statuses.append)
        pending = await manager.select(
            FakeHandle("annual-report-2024.pdf", "application/pdf", b"%PDF")
        )
        assert pending is not None
        self.assertIs(manager.pending, pending)
        preview = manager.preview
        assert preview is not None
        self.assertIs(preview.kind, AttachmentKind.DOCUMENT)
        self.assertEqual(preview.label, "annual-r....pdf")
        self.assertEqual(statuses, ["File attached: annual-r....pdf"])

    async def test_select_image_preview(self) -> None:
        manager = AttachmentManager()
        await manager.select(FakeHandle("a-very-long-picture-name.jpg", "image/jpeg"))
        preview = manager.preview
        assert preview is not None
        self.assertIs(preview.kind, AttachmentKind.IMAGE)
        self.assertEqual(preview.label, "a-very-long-picture-name.jpg")

    async def test_kind_is_resolved_once_per_read(self) -> None:
        manager = AttachmentManager()
        with patch.object(
            AttachmentKind, "from_mime_type", wraps=AttachmentKind.from_mime_type
        ) as resolve:
            pending = await manager.select(FakeHandle("notes.txt", "text/plain"))
            assert pending is not None
            for _ in range(3):
                self.assertIs(pending.kind, AttachmentKind.DOCUMENT)
                self.assertIs(manager.preview.kind, AttachmentKind.DOCUMENT)  # type: ignore[union-attr]
        self.assertEqual(resolve.call_count, 1)

    async def test_failed_read_clears_pending(self) -> None:
        manager = AttachmentManager()
        await manager.select(FakeHandle("ok.txt", "text/plain", b"ok"))
        with self.assertLogs("zen_chat.attachments", level="WARNING") as logs:
            result = await manager.select(
                FakeHandle("bad.txt", "text/plain", error=OSError("boom"))
            )
        self.assertIsNone(result)
        self.assertIsNone(manager.pending)
        self.assertIsNone(manager.preview)
        self.assertFalse(manager.is_reading)
        self.assertTrue(any("attachment.read.failed" in line for line in logs.output))

    async def test_second_select_while_reading_is_ignored(self) -> None:
        manager = AttachmentManager()
        gate = asyncio.Event()
        first = asyncio.create_task(
            manager.select(FakeHandle("a.txt", "text/plain", b"a", gate=gate))
        )
        await asyncio.sleep(0)
        self.assertTrue(manager.is_reading)
        second = await manager.select(FakeHandle("b.txt", "text/plain", b"b"))
        self.assertIsNone(second)
        gate.set()
        await first
        assert manager.pending is not None
        self.assertEqual(manager.pending.name, "a.txt")

    async def test_take_encodes_and_clears(self) -> None:
        manager = AttachmentManager()
        await manager.select(FakeHandle("a.txt", "text/plain", b"abc"))
        attachment = manager.take()
        assert attachment is not None
        self.assertEqual(attachment.data, "YWJj")
        self.assertIsNone(manager.pending)
        self.assertIsNone(manager.take())

    async def test_remove_discards(self) -> None:
        manager = AttachmentManager()
        await manager.select(FakeHandle("a.txt", "text/plain", b"abc"))
        manager.remove()
        self.assertIsNone(manager.pending)


if __name__ == "__main__":
    unittest.main()
