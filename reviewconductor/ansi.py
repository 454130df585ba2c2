"""ANSI-aware text measurement and line shaping utilities.

Provides width measurement, clipping, and ellipsis truncation that preserve
escape sequences, so list rows and the detail viewport stay aligned when
renderers hand back pre-colored text.
"""

from __future__ import annotations

import os
import re
import sys
import unicodedata

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
OSC_ESCAPE_RE = re.compile(r"\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)")
TAB_STOP = 8
ELLIPSIS = "..."


def char_display_width(ch: str, col: int) -> int:
    """Return terminal column width for one character at visual column ``col``.

    Tabs expand to the next 8-column stop, combining marks consume no columns,
    and East Asian wide/fullwidth characters consume two.
    """
    if ch == "\t":
        return TAB_STOP - (col % TAB_STOP)
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def strip_ansi(text: str) -> str:
    """Remove SGR and OSC (hyperlink) sequences from ``text``."""
    return ANSI_ESCAPE_RE.sub("", OSC_ESCAPE_RE.sub("", text))


def display_width(text: str) -> int:
    """Return the number of terminal columns ``text`` occupies."""
    col = 0
    for ch in strip_ansi(text):
        col += char_display_width(ch, col)
    return col


def _match_escape(text: str, i: int) -> re.Match[str] | None:
    match = ANSI_ESCAPE_RE.match(text, i)
    if match is None:
        match = OSC_ESCAPE_RE.match(text, i)
    return match


def clip_ansi_line(text: str, max_cols: int) -> str:
    """Trim a styled line to at most ``max_cols`` display columns.

    ANSI escape sequences are preserved verbatim and do not count toward width.
    Tabs are expanded into spaces so clipping aligns with rendered terminal cells.
    """
    if max_cols <= 0 or not text:
        return ""

    out: list[str] = []
    col = 0
    i = 0
    n = len(text)
    while i < n and col < max_cols:
        if text[i] == "\x1b":
            match = _match_escape(text, i)
            if match:
                out.append(match.group(0))
                i = match.end()
                continue
        ch = text[i]
        w = char_display_width(ch, col)
        if col + w > max_cols:
            break
        out.append(" " * w if ch == "\t" else ch)
        col += w
        i += 1

    return "".join(out)


def truncate_ansi(text: str, max_cols: int) -> str:
    """Clip ``text`` to ``max_cols`` columns, marking the cut with ``...``.

    Text that already fits is returned unchanged. A reset is appended after
    the ellipsis whenever the clipped part carried escape sequences.
    """
    if max_cols <= 0:
        return ""
    if display_width(text) <= max_cols:
        return text
    if max_cols <= len(ELLIPSIS):
        return ELLIPSIS[:max_cols]
    clipped = clip_ansi_line(text, max_cols - len(ELLIPSIS))
    suffix = "\033[0m" if "\x1b" in clipped else ""
    return f"{clipped}{ELLIPSIS}{suffix}"


def pad_ansi(text: str, width: int) -> str:
    """Right-pad styled ``text`` with spaces to ``width`` display columns."""
    return text + " " * max(0, width - display_width(text))


def colors_enabled() -> bool:
    """Return whether colored output should be produced for stdout."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    try:
        return sys.stdout.isatty()
    except (AttributeError, ValueError):
        return False


def colorize(sgr: str, text: str) -> str:
    """Wrap ``text`` in an SGR sequence when colors are enabled."""
    if not text or not sgr or not colors_enabled():
        return text
    return f"{sgr}{text}\033[0m"


def hyperlink(url: str, text: str) -> str:
    """Return an OSC 8 terminal hyperlink, or plain ``text`` without colors."""
    if not url or not colors_enabled():
        return text
    return f"\033]8;;{url}\033\\{text}\033]8;;\033\\"
