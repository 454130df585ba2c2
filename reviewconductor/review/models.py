"""Review comment records as returned by the review backend."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

_SUGGESTION_RE = re.compile(r"```suggestion[^\n]*\n(.*?)```", re.DOTALL)


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 timestamp such as ``2024-05-01T12:00:00Z``."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def extract_suggestion(body: str) -> str:
    """Return the code inside the first ```suggestion block of ``body``."""
    match = _SUGGESTION_RE.search(body)
    if match is None:
        return ""
    return match.group(1).rstrip("\n")


@dataclass
class ReviewComment:
    """Root comment of a review thread; replies live in ``thread_comments``."""

    id: int
    author: str
    body: str
    path: str = ""
    line: int = 0
    thread_id: str = ""
    diff_hunk: str = ""
    html_url: str = ""
    created_at: datetime | None = None
    is_outdated: bool = False
    resolved: bool = False
    thread_comments: list[ReviewComment] = field(default_factory=list)

    @property
    def suggested_code(self) -> str:
        return extract_suggestion(self.body)

    @property
    def has_suggestion(self) -> bool:
        return bool(self.suggested_code)

    def is_resolved(self) -> bool:
        return self.resolved

    def thread_entry(self, idx: int) -> ReviewComment:
        """Return the root comment for ``idx == 0``, else reply ``idx``."""
        if 0 < idx <= len(self.thread_comments):
            return self.thread_comments[idx - 1]
        return self

    @classmethod
    def from_rest(cls, data: dict) -> ReviewComment:
        """Build a comment from a REST ``pulls/comments`` payload."""
        user = data.get("user") or {}
        return cls(
            id=int(data.get("id") or 0),
            author=str(user.get("login") or "ghost"),
            body=str(data.get("body") or ""),
            path=str(data.get("path") or ""),
            line=int(data.get("line") or data.get("original_line") or 0),
            diff_hunk=str(data.get("diff_hunk") or ""),
            html_url=str(data.get("html_url") or ""),
            created_at=parse_timestamp(data.get("created_at")),
        )

    @classmethod
    def from_thread(cls, thread: dict) -> ReviewComment | None:
        """Build a root comment with replies from a GraphQL ``reviewThreads`` node.

        Returns ``None`` for threads without comments.
        """
        nodes = ((thread.get("comments") or {}).get("nodes")) or []
        if not nodes:
            return None
        comments = [_from_graphql_comment(node, thread) for node in nodes]
        root, replies = comments[0], comments[1:]
        root.thread_id = str(thread.get("id") or "")
        root.resolved = bool(thread.get("isResolved"))
        root.is_outdated = bool(thread.get("isOutdated"))
        root.thread_comments = replies
        return root


def _from_graphql_comment(node: dict, thread: dict) -> ReviewComment:
    author = node.get("author") or {}
    line = thread.get("line") or thread.get("originalLine") or 0
    return ReviewComment(
        id=int(node.get("databaseId") or 0),
        author=str(author.get("login") or "ghost"),
        body=str(node.get("body") or ""),
        path=str(thread.get("path") or ""),
        line=int(line),
        diff_hunk=str(node.get("diffHunk") or ""),
        html_url=str(node.get("url") or ""),
        created_at=parse_timestamp(node.get("createdAt")),
    )
