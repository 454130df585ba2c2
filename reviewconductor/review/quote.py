"""Markdown quoting helpers for replies to review comments."""

from __future__ import annotations

import re

_SUGGESTION_BLOCK_RE = re.compile(r"```suggestion[^\n]*\n.*?```", re.DOTALL)


def format_blockquote(text: str) -> str:
    """Prefix every line of ``text`` with ``> ``; empty text becomes ``>``."""
    if not text:
        return ">"
    return "\n".join(f"> {line}" for line in text.split("\n"))


def strip_suggestion_block(body: str) -> str:
    """Remove ```suggestion fenced blocks and surrounding whitespace."""
    return _SUGGESTION_BLOCK_RE.sub("", body).strip()


def format_diff_with_headers(diff_hunk: str, path: str) -> str:
    """Prepend git-style ``---``/``+++`` file headers to a bare hunk."""
    if not path or diff_hunk.startswith("--- "):
        return diff_hunk
    return f"--- a/{path}\n+++ b/{path}\n{diff_hunk}"


def format_quoted_reply(
    author: str,
    body: str,
    diff_hunk: str,
    path: str,
    include_context: bool,
) -> str:
    """Build the initial editor text for a quoted reply.

    With ``include_context`` the diff hunk comes first as a quoted ``diff``
    fence. The result ends with two newlines so the reply starts on a fresh
    line below the quote.
    """
    parts: list[str] = []
    if include_context and diff_hunk:
        parts.append("> ```diff")
        parts.extend(f"> {line}" for line in format_diff_with_headers(diff_hunk, path).split("\n"))
        parts.append("> ```")
        parts.append(">")

    parts.append(format_blockquote(f"@{author} wrote:"))
    parts.append(">")

    clean_body = strip_suggestion_block(body)
    if clean_body:
        parts.append(format_blockquote(clean_body))

    parts += ["", ""]
    return "\n".join(parts)
