"""Tests for configuration loading and validation."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
import unittest
from unittest.mock import patch

from zen_chat.config import DEFAULT_CONFIG, ensure_config_dir, load_config


def _write(temp_dir: str, text: str) -> Path:
    config_path = Path(temp_dir) / "config.toml"
    config_path.write_text(text.strip(), encoding="utf-8")
    return config_path


@patch.dict(os.environ, {}, clear=True)
class ConfigTests(unittest.TestCase):
    """Validate config merge and fallback behavior."""

    def test_missing_config_uses_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config = load_config(config_path=Path(temp_dir) / "config.toml")
            self.assertEqual(config, DEFAULT_CONFIG)
            self.assertEqual(config["app"]["title"], "Chatbot")
            self.assertEqual(config["bot"]["name"], "Zen")
            self.assertEqual(config["completion"]["model"], "gemini-2.5-flash")
            self.assertEqual(config["ui"]["default_theme"], "light")
            self.assertTrue(config["persistence"]["enabled"])

    def test_partial_config_overrides_selected_values(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = _write(
                temp_dir,
                """
[bot]
name = "Sage"

[completion]
model = "gemini-2.0-pro"
retries = 2

[ui]
default_theme = "Dark"
                """,
            )
            config = load_config(config_path=config_path)
            self.assertEqual(config["bot"]["name"], "Sage")
            self.assertEqual(config["bot"]["greeting"], DEFAULT_CONFIG["bot"]["greeting"])
            self.assertEqual(config["completion"]["model"], "gemini-2.0-pro")
            self.assertEqual(config["completion"]["retries"], 2)
            self.assertEqual(
                config["completion"]["endpoint"], DEFAULT_CONFIG["completion"]["endpoint"]
            )
            self.assertEqual(config["ui"]["default_theme"], "dark")

    def test_invalid_values_fallback_to_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = _write(
                temp_dir,
                """
[completion]
timeout = -1
endpoint = "generativelanguage.googleapis.com"

[ui]
default_theme = "blue"
                """,
            )
            with self.assertLogs("zen_chat.config", level="WARNING"):
                config = load_config(config_path=config_path)
            self.assertEqual(config, DEFAULT_CONFIG)

    def test_unparseable_toml_falls_back_to_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = _write(temp_dir, "[completion\nmodel = ")
            with self.assertLogs("zen_chat.config", level="WARNING"):
                config = load_config(config_path=config_path)
            self.assertEqual(config, DEFAULT_CONFIG)

    def test_api_key_from_environment(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = _write(
                temp_dir,
                """
[completion]
api_key = "from-file"
                """,
            )
            self.assertEqual(
                load_config(config_path=config_path)["completion"]["api_key"], "from-file"
            )
            with patch.dict(os.environ, {"GEMINI_API_KEY": " from-env "}):
                config = load_config(config_path=config_path)
            self.assertEqual(config["completion"]["api_key"], "from-env")

    def test_zen_chat_variable_takes_precedence(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            with patch.dict(
                os.environ, {"ZEN_CHAT_API_KEY": "primary", "GEMINI_API_KEY": "secondary"}
            ):
                config = load_config(config_path=Path(temp_dir) / "missing.toml")
            self.assertEqual(config["completion"]["api_key"], "primary")

    def test_ensure_config_dir_creates_directory(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            target = Path(temp_dir) / "a" / "b"
            self.assertEqual(ensure_config_dir(target), target)
            self.assertTrue(target.is_dir())


if __name__ == "__main__":
    unittest.main()
