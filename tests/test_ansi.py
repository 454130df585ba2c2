"""Regression tests for ANSI-aware line shaping.

Covers width measurement, clipping, and ellipsis truncation of styled text.
These cases protect list rows and the detail viewport from misalignment.
"""

import os
import unittest
from unittest import mock

from reviewconductor import ansi as ansi_mod


class MeasurementTests(unittest.TestCase):
    def test_escape_sequences_take_no_columns(self) -> None:
        self.assertEqual(ansi_mod.display_width("\033[31mred\033[0m"), 3)
        self.assertEqual(ansi_mod.display_width("\033]8;;https://x\033\\link\033]8;;\033\\"), 4)

    def test_wide_and_tab_characters(self) -> None:
        self.assertEqual(ansi_mod.display_width("日本"), 4)
        self.assertEqual(ansi_mod.display_width("a\tb"), 9)

    def test_strip_ansi(self) -> None:
        self.assertEqual(ansi_mod.strip_ansi("\033[1;35mbold\033[0m"), "bold")


class ClipTests(unittest.TestCase):
    def test_clip_preserves_escapes(self) -> None:
        self.assertEqual(ansi_mod.clip_ansi_line("\033[31mabcdef\033[0m", 3), "\033[31mabc")

    def test_clip_does_not_split_wide_character(self) -> None:
        self.assertEqual(ansi_mod.clip_ansi_line("a日本", 2), "a")

    def test_truncate_adds_ellipsis(self) -> None:
        self.assertEqual(ansi_mod.truncate_ansi("abcdefghij", 6), "abc...")
        self.assertEqual(ansi_mod.truncate_ansi("short", 6), "short")
        self.assertEqual(ansi_mod.truncate_ansi("abcdef", 2), "..")

    def test_truncate_resets_styled_text(self) -> None:
        self.assertEqual(ansi_mod.truncate_ansi("\033[31mabcdefghij", 6), "\033[31mabc...\033[0m")

    def test_pad(self) -> None:
        self.assertEqual(ansi_mod.pad_ansi("\033[1mab\033[0m", 4), "\033[1mab\033[0m  ")


class ColorSwitchTests(unittest.TestCase):
    def test_no_color_disables_styling(self) -> None:
        with mock.patch.dict(os.environ, {"NO_COLOR": "1"}):
            self.assertFalse(ansi_mod.colors_enabled())
            self.assertEqual(ansi_mod.colorize("\033[31m", "x"), "x")
            self.assertEqual(ansi_mod.hyperlink("https://example.test", "x"), "x")

    def test_tty_enables_styling(self) -> None:
        with mock.patch.dict(os.environ, {"TERM": "xterm"}, clear=True), mock.patch.object(
            ansi_mod.sys, "stdout"
        ) as stdout:
            stdout.isatty.return_value = True
            self.assertEqual(ansi_mod.colorize("\033[31m", "x"), "\033[31mx\033[0m")
            self.assertEqual(
                ansi_mod.hyperlink("https://example.test", "x"),
                "\033]8;;https://example.test\033\\x\033]8;;\033\\",
            )


if __name__ == "__main__":
    unittest.main()
