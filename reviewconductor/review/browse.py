"""Review-comment browser built on the generic selector.

Comments are laid out as a tree: one header row per file, then each thread
root followed by a dimmed one-line preview row. ``build_browse_options`` wires
every selector callback to the review client.
"""

from __future__ import annotations

import logging
import re
import textwrap
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime, timezone

from ..ansi import colorize, colors_enabled, hyperlink, strip_ansi
from ..errors import ReviewConductorError
from ..runtime.external import open_url
from ..selector import EditFile, LaunchAgent, SelectorOptions
from ..selector.contract import SELECTED_MARKER
from ..ui_theme import DEFAULT_THEME
from .client import ReviewClient
from .diff import colorize_code, colorize_diff, sanitize_terminal_text, truncate_diff
from .models import ReviewComment
from .quote import format_quoted_reply, strip_suggestion_block

logger = logging.getLogger(__name__)

FILE = "file"
COMMENT = "comment"
COMMENT_PREVIEW = "comment_preview"

MAX_BODY_LINES = 200
MAX_REPLY_LINES = 100
CONTEXT_LINES = 8
WRAP_WIDTH = 80

REACTION_EMOJI = {
    "+1": "👍",
    "-1": "👎",
    "laugh": "😄",
    "confused": "😕",
    "heart": "❤️",
    "hooray": "🎉",
    "rocket": "🚀",
    "eyes": "👀",
}

_MARKDOWN_IMAGE_RE = re.compile(r"!\[.*?\]\(.*?\)")
_MARKDOWN_LINK_RE = re.compile(r"\[([^\]]*)\]\([^)]*\)")


@dataclass(frozen=True)
class BrowseItem:
    kind: str
    path: str
    comment: ReviewComment | None = None
    selected_comment_idx: int = 0

    @property
    def target(self) -> ReviewComment:
        """The thread entry picked via ``selected_comment_idx``."""
        if self.comment is None:
            raise ReviewConductorError("no comment on a file header")
        return self.comment.thread_entry(self.selected_comment_idx)


def build_comment_tree(comments: list[ReviewComment]) -> list[BrowseItem]:
    """Group comments by file (sorted by path), each file's comments by line."""
    by_path: dict[str, list[ReviewComment]] = {}
    for comment in comments:
        by_path.setdefault(comment.path, []).append(comment)

    items: list[BrowseItem] = []
    for path in sorted(by_path):
        items.append(BrowseItem(kind=FILE, path=path))
        for comment in sorted(by_path[path], key=lambda c: c.line):
            items.append(BrowseItem(kind=COMMENT, path=path, comment=comment))
            items.append(BrowseItem(kind=COMMENT_PREVIEW, path=path, comment=comment))
    return items


def strip_markdown_for_preview(text: str) -> str:
    """Drop markdown images and reduce links to their text."""
    text = _MARKDOWN_IMAGE_RE.sub("", text)
    text = _MARKDOWN_LINK_RE.sub(r"\1", text)
    return text.strip()


def format_relative_time(when: datetime, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    seconds = int((now - when).total_seconds())
    if seconds < 60:
        return "just now"
    for unit, size in (("year", 365 * 86400), ("month", 30 * 86400), ("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''} ago"
    return "just now"


def wrap_text(text: str, width: int = WRAP_WIDTH) -> str:
    out: list[str] = []
    for line in text.split("\n"):
        out.append(textwrap.fill(line, width=width) if len(line) > width else line)
    return "\n".join(out)


def _limit_lines(text: str, limit: int) -> str:
    lines = text.split("\n")
    if len(lines) <= limit:
        return text
    return "\n".join(lines[:limit]) + "\n\n...(truncated, content too long)"


class BrowseItemRenderer:
    """``ItemRenderer`` for ``BrowseItem`` rows."""

    def __init__(self, collapsed: set[str]) -> None:
        self.collapsed = collapsed

    def title(self, item: BrowseItem) -> str:
        theme = DEFAULT_THEME
        if item.kind == FILE:
            fancy = colors_enabled()
            if item.path in self.collapsed:
                icon = "▶" if fancy else "+"
            else:
                icon = "▼" if fancy else "-"
            label = f"{icon} 📂 {item.path}" if fancy else f"{icon} {item.path}"
            return colorize(theme.cyan, label)

        comment = item.comment
        assert comment is not None
        if item.kind == COMMENT_PREVIEW:
            lines = strip_suggestion_block(comment.body).split("\n")
            preview = lines[0] if lines else "..."
            if len(preview) > 80:
                preview = preview[:77] + "..."
            elif len(lines) > 1:
                preview += "..."
            return "      " + colorize(theme.dim, sanitize_terminal_text(preview))

        if comment.is_resolved():
            status = colorize(theme.success, "✓ resolved" if colors_enabled() else "[resolved]")
        else:
            status = colorize(theme.yellow, "○ unresolved" if colors_enabled() else "[unresolved]")
        author = colorize(theme.highlight, f"@{comment.author}")
        replies = f" +{len(comment.thread_comments)}" if comment.thread_comments else ""
        return f"  └── {author} #{comment.id} Line {comment.line}{replies} {status}"

    def description(self, item: BrowseItem) -> str:
        return ""

    def filter_value(self, item: BrowseItem) -> str:
        if item.comment is None:
            return item.path
        return f"{item.path} {strip_ansi(self.title(item))} {item.comment.body}"

    def is_skippable(self, item: BrowseItem) -> bool:
        return False

    def thread_comment_count(self, item: BrowseItem) -> int:
        if item.kind == FILE or item.comment is None:
            return 0
        return 1 + len(item.comment.thread_comments)

    def thread_comment_preview(self, item: BrowseItem, idx: int) -> str:
        if item.comment is None:
            return ""
        entry = item.comment.thread_entry(idx)
        body = strip_markdown_for_preview(entry.body)
        body = " ".join(
            line.strip() for line in body.split("\n") if line.strip() and not line.strip().startswith(">")
        )
        if len(body) > 100:
            body = body[:97] + "..."
        return f"@{entry.author}: {sanitize_terminal_text(body)}"

    def with_selected_comment(self, item: BrowseItem, idx: int) -> BrowseItem:
        return replace(item, selected_comment_idx=idx)

    def preview_with_highlight(self, item: BrowseItem, highlight_idx: int) -> str:
        if item.comment is None:
            return f"File: {item.path}\n\nSelect a comment below to view details."

        theme = DEFAULT_THEME
        comment = item.comment
        out: list[str] = []

        def marker(text: str) -> str:
            return colorize(theme.highlight, text)

        status = (
            colorize(theme.success, "resolved") if comment.is_resolved() else colorize(theme.yellow, "unresolved")
        )
        out.append(colorize(theme.cyan, f"Author: @{comment.author}"))
        out.append(colorize(theme.cyan, f"Location: {comment.path}:{comment.line}"))
        out.append(colorize(theme.cyan, "Status: ") + status)
        if comment.html_url:
            out.append(colorize(theme.cyan, "URL: ") + hyperlink(comment.html_url, comment.html_url))
        if comment.created_at is not None:
            out.append(colorize(theme.cyan, f"Time: {format_relative_time(comment.created_at)}"))
        if comment.is_outdated:
            out.append(colorize(theme.yellow, "⚠️  OUTDATED" if colors_enabled() else "OUTDATED"))

        body = strip_suggestion_block(comment.body)
        if body:
            if highlight_idx == 0:
                out += ["", marker(f"▶▶▶ {SELECTED_MARKER} COMMENT ◀◀◀")]
            out += ["", "--- Comment ---"]
            out.append(wrap_text(sanitize_terminal_text(_limit_lines(body, MAX_BODY_LINES))))
            if highlight_idx == 0:
                out.append(marker(f"▶▶▶ END {SELECTED_MARKER} ◀◀◀"))

        suggestion = comment.suggested_code
        if suggestion:
            out += ["", colorize(theme.cyan, "--- Suggested Code ---")]
            out.append(colorize_code(suggestion, comment.path))

        if comment.diff_hunk and len(comment.diff_hunk.split("\n")) > 2:
            out += ["", colorize(theme.cyan, "--- Context ---")]
            out.append(colorize_diff(truncate_diff(comment.diff_hunk, CONTEXT_LINES)))

        if comment.thread_comments:
            out += ["", "--- Replies ---"]
            for idx, reply in enumerate(comment.thread_comments, start=1):
                out.append("")
                if highlight_idx == idx:
                    out.append(marker(f"▶▶▶ {SELECTED_MARKER} REPLY ◀◀◀"))
                header = f"Reply {idx} by @{reply.author}"
                if reply.html_url:
                    header += f" | {hyperlink(reply.html_url, reply.html_url)}"
                if reply.created_at is not None:
                    header += f" | {format_relative_time(reply.created_at)}"
                out.append(header)
                out.append(wrap_text(sanitize_terminal_text(_limit_lines(reply.body, MAX_REPLY_LINES))))
                if highlight_idx == idx:
                    out.append(marker(f"▶▶▶ END {SELECTED_MARKER} ◀◀◀"))

        return "\n".join(out)


class BrowseActions:
    """Selector callbacks for one pull request."""

    def __init__(
        self,
        client: ReviewClient,
        pr_number: int,
        collapsed: set[str],
        *,
        opener: Callable[[str], None] = open_url,
    ) -> None:
        self.client = client
        self.pr_number = pr_number
        self.collapsed = collapsed
        self.opener = opener

    @staticmethod
    def _comment(item: BrowseItem, verb: str) -> ReviewComment:
        if item.comment is None:
            raise ReviewConductorError(f"cannot {verb} a file header")
        return item.comment

    def on_select(self, item: BrowseItem) -> str:
        if item.kind != FILE:
            return ""
        if item.path in self.collapsed:
            self.collapsed.discard(item.path)
            return f"Expanded {item.path}"
        self.collapsed.add(item.path)
        return f"Collapsed {item.path}"

    def on_open(self, item: BrowseItem) -> str:
        if item.comment is None:
            return ""
        url = item.target.html_url
        if not url:
            raise ReviewConductorError("comment has no URL")
        self.opener(url)
        return f"Opened comment {item.target.id} in browser"

    def filter(self, item: BrowseItem, hide_resolved: bool) -> bool:
        if item.kind != FILE and item.path in self.collapsed:
            return False
        if hide_resolved and item.comment is not None:
            return not item.comment.is_resolved()
        return True

    def is_resolved(self, item: BrowseItem) -> bool:
        return item.comment is not None and item.comment.is_resolved()

    def refresh(self) -> list[BrowseItem]:
        return build_comment_tree(self.client.fetch_review_comments(self.pr_number))

    def toggle_resolution(self, comment: ReviewComment) -> str:
        if not comment.thread_id:
            raise ReviewConductorError("comment has no thread ID")
        if comment.is_resolved():
            self.client.unresolve_thread(comment.thread_id)
            comment.resolved = False
            return "Marked as unresolved"
        self.client.resolve_thread(comment.thread_id)
        comment.resolved = True
        return "Marked as resolved"

    def resolve(self, item: BrowseItem) -> str:
        if item.comment is None:
            return ""
        return self.toggle_resolution(item.comment)

    def prepare_resolve_comment(self, item: BrowseItem) -> str:
        comment = self._comment(item, "comment on")
        if not comment.thread_id:
            raise ReviewConductorError("comment has no thread ID")
        return ""

    def _post_reply(self, comment: ReviewComment, body: str) -> ReviewComment:
        reply = self.client.reply_to_review_comment(self.pr_number, comment.id, body)
        comment.thread_comments.append(reply)
        return reply

    def complete_resolve_comment(self, item: BrowseItem, body: str) -> str:
        comment = self._comment(item, "comment on")
        reply = self._post_reply(comment, body)
        status = self.toggle_resolution(comment)
        if reply.html_url:
            return f"{status}\nPosted a comment: {reply.html_url}"
        return status

    def _prepare_quote(self, item: BrowseItem, include_context: bool) -> str:
        comment = self._comment(item, "quote reply to")
        entry = item.target
        return format_quoted_reply(entry.author, entry.body, comment.diff_hunk, comment.path, include_context)

    def prepare_quote(self, item: BrowseItem) -> str:
        return self._prepare_quote(item, include_context=False)

    def prepare_quote_context(self, item: BrowseItem) -> str:
        return self._prepare_quote(item, include_context=True)

    def complete_quote(self, item: BrowseItem, body: str) -> str:
        reply = self._post_reply(self._comment(item, "reply to"), body)
        if not reply.html_url:
            return f"Posted comment {reply.id}"
        return f"Posted a comment: {reply.html_url}"

    def agent(self, item: BrowseItem) -> LaunchAgent:
        comment = self._comment(item, "launch agent on")
        return LaunchAgent(f"Review comment on {comment.path}:{comment.line}\n\n{item.target.body}")

    def edit(self, item: BrowseItem) -> EditFile:
        comment = self._comment(item, "edit")
        return EditFile(path=comment.path, line=comment.line)

    def reaction_target(self, item: BrowseItem) -> int:
        self._comment(item, "react to")
        return item.target.id

    def complete_reaction(self, comment_id: int, reaction: str) -> str:
        self.client.add_reaction(comment_id, reaction)
        emoji = REACTION_EMOJI.get(reaction, reaction)
        try:
            repo = self.client.repo()
        except ReviewConductorError:
            return f"{emoji} reaction added."
        url = f"https://github.com/{repo}/pull/{self.pr_number}#discussion_r{comment_id}"
        return f"{emoji} reaction added: {url}"


def build_browse_options(
    client: ReviewClient,
    pr_number: int,
    items: list[BrowseItem],
    *,
    hide_resolved: bool = True,
    on_filter_change: Callable[[bool], None] | None = None,
    opener: Callable[[str], None] = open_url,
) -> SelectorOptions[BrowseItem]:
    """Return selector options with every review action wired to ``client``."""
    collapsed: set[str] = set()
    actions = BrowseActions(client, pr_number, collapsed, opener=opener)
    renderer = BrowseItemRenderer(collapsed)
    return SelectorOptions(
        items=items,
        renderer=renderer,
        title=f"Review comments on {client.repo()}#{pr_number}",
        on_select=actions.on_select,
        on_open=actions.on_open,
        filter_func=actions.filter,
        filter_default=hide_resolved,
        on_filter_change=on_filter_change,
        is_item_resolved=actions.is_resolved,
        refresh_items=actions.refresh,
        resolve_action=actions.resolve,
        resolve_comment_prepare=actions.prepare_resolve_comment,
        resolve_comment_complete=actions.complete_resolve_comment,
        quote_prepare=actions.prepare_quote,
        quote_complete=actions.complete_quote,
        quote_context_prepare=actions.prepare_quote_context,
        quote_context_complete=actions.complete_quote,
        agent_action=actions.agent,
        edit_action=actions.edit,
        reaction_action=actions.reaction_target,
        reaction_complete=actions.complete_reaction,
    )
