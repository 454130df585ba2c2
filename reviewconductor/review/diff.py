"""Diff hunk trimming and Pygments-based terminal highlighting.

Also neutralizes terminal control bytes in remote text so comment bodies
cannot move the cursor or ring the bell inside the detail view.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache

from pygments import highlight
from pygments.formatters import TerminalFormatter
from pygments.lexers import DiffLexer, TextLexer, get_lexer_for_filename
from pygments.util import ClassNotFound

from ..ansi import colors_enabled

logger = logging.getLogger(__name__)

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")


def sanitize_terminal_text(source: str) -> str:
    """Escape terminal control bytes to avoid side effects (bell, cursor moves, etc.)."""
    if _CONTROL_RE.search(source) is None:
        return source
    return _CONTROL_RE.sub(lambda match: f"\\x{ord(match.group(0)):02x}", source)


def truncate_diff(diff_hunk: str, max_lines: int) -> str:
    """Keep the ``@@`` header plus the last ``max_lines`` lines of a hunk.

    Review comments anchor at the end of their hunk, so the tail carries the
    relevant context.
    """
    lines = diff_hunk.split("\n")
    header = [lines[0]] if lines and lines[0].startswith("@@") else []
    body = lines[len(header) :]
    if len(body) <= max_lines:
        return diff_hunk
    return "\n".join([*header, *body[-max_lines:]])


@lru_cache(maxsize=1)
def _formatter() -> TerminalFormatter:
    return TerminalFormatter()


def _highlight(source: str, lexer) -> str:
    if not colors_enabled():
        return source
    rendered = highlight(source, lexer, _formatter())
    # Pygments always terminates output with a newline.
    return rendered[:-1] if rendered.endswith("\n") and not source.endswith("\n") else rendered


def colorize_diff(diff_text: str) -> str:
    """Color a unified diff for the terminal; plain text when colors are off."""
    return _highlight(sanitize_terminal_text(diff_text), DiffLexer())


def colorize_code(source: str, path: str) -> str:
    """Highlight ``source`` with the lexer Pygments picks for ``path``."""
    try:
        lexer = get_lexer_for_filename(path, source)
    except ClassNotFound:
        logger.debug("no lexer for %s", path)
        lexer = TextLexer()
    return _highlight(sanitize_terminal_text(source), lexer)
