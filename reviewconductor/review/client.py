"""GitHub review backend driven through the ``gh`` CLI.

Threads and their resolution state come from the GraphQL API; replies and
reactions go through REST. Every failure surfaces as ``ReviewClientError``.
"""

from __future__ import annotations

import json
import logging
import subprocess
from typing import Protocol

from ..errors import ReviewClientError
from .models import ReviewComment

logger = logging.getLogger(__name__)

THREADS_QUERY = """
query($owner: String!, $name: String!, $number: Int!, $cursor: String) {
  repository(owner: $owner, name: $name) {
    pullRequest(number: $number) {
      reviewThreads(first: 100, after: $cursor) {
        pageInfo { hasNextPage endCursor }
        nodes {
          id
          isResolved
          isOutdated
          path
          line
          originalLine
          comments(first: 100) {
            nodes { databaseId body url createdAt diffHunk author { login } }
          }
        }
      }
    }
  }
}
"""

RESOLVE_MUTATION = """
mutation($threadId: ID!) {
  resolveReviewThread(input: {threadId: $threadId}) { thread { isResolved } }
}
"""

UNRESOLVE_MUTATION = """
mutation($threadId: ID!) {
  unresolveReviewThread(input: {threadId: $threadId}) { thread { isResolved } }
}
"""


class ReviewClient(Protocol):
    def repo(self) -> str: ...

    def fetch_review_comments(self, pr_number: int) -> list[ReviewComment]: ...

    def reply_to_review_comment(self, pr_number: int, comment_id: int, body: str) -> ReviewComment: ...

    def resolve_thread(self, thread_id: str) -> None: ...

    def unresolve_thread(self, thread_id: str) -> None: ...

    def add_reaction(self, comment_id: int, reaction: str) -> None: ...


class GhCliClient:
    """``ReviewClient`` backed by ``gh api`` subprocess calls."""

    def __init__(self, repo: str | None = None, gh: str = "gh") -> None:
        self._repo = repo
        self.gh = gh

    def _run(self, args: list[str]) -> str:
        cmd = [self.gh, *args]
        logger.debug("running %s", " ".join(cmd[:3]))
        try:
            completed = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except FileNotFoundError as exc:
            raise ReviewClientError(f"{self.gh} CLI not found; install it from https://cli.github.com") from exc
        except OSError as exc:
            raise ReviewClientError(f"failed to run {self.gh}: {exc}") from exc
        if completed.returncode != 0:
            message = completed.stderr.strip() or f"{self.gh} exited with status {completed.returncode}"
            raise ReviewClientError(message)
        return completed.stdout

    def _api(self, args: list[str]) -> object:
        output = self._run(["api", *args])
        if not output.strip():
            return None
        try:
            return json.loads(output)
        except ValueError as exc:
            raise ReviewClientError(f"unexpected response from {self.gh} api: {exc}") from exc

    def _graphql(self, query: str, **variables: object) -> dict:
        args = ["graphql", "-f", f"query={query}"]
        for name, value in variables.items():
            if value is None:
                continue
            flag = "-F" if isinstance(value, int) else "-f"
            args += [flag, f"{name}={value}"]
        response = self._api(args)
        if not isinstance(response, dict):
            raise ReviewClientError("empty GraphQL response")
        errors = response.get("errors")
        if errors:
            raise ReviewClientError("; ".join(str(err.get("message", err)) for err in errors))
        return response.get("data") or {}

    def repo(self) -> str:
        if self._repo is None:
            self._repo = self._run(["repo", "view", "--json", "nameWithOwner", "-q", ".nameWithOwner"]).strip()
            if not self._repo:
                raise ReviewClientError("could not determine repository")
        return self._repo

    def current_pr_number(self) -> int:
        """Return the number of the pull request for the checked-out branch."""
        output = self._run(["pr", "view", "--json", "number", "-q", ".number"]).strip()
        try:
            return int(output)
        except ValueError as exc:
            raise ReviewClientError("no pull request found for the current branch") from exc

    def fetch_review_comments(self, pr_number: int) -> list[ReviewComment]:
        owner, _, name = self.repo().partition("/")
        comments: list[ReviewComment] = []
        cursor: str | None = None
        while True:
            data = self._graphql(THREADS_QUERY, owner=owner, name=name, number=pr_number, cursor=cursor)
            pull = ((data.get("repository") or {}).get("pullRequest")) or None
            if pull is None:
                raise ReviewClientError(f"pull request #{pr_number} not found in {self.repo()}")
            threads = pull["reviewThreads"]
            for node in threads.get("nodes") or []:
                comment = ReviewComment.from_thread(node)
                if comment is not None:
                    comments.append(comment)
            page = threads.get("pageInfo") or {}
            if not page.get("hasNextPage"):
                break
            cursor = page.get("endCursor")
        logger.info("fetched %d review threads for #%d", len(comments), pr_number)
        return comments

    def reply_to_review_comment(self, pr_number: int, comment_id: int, body: str) -> ReviewComment:
        data = self._api(
            [
                "--method",
                "POST",
                f"repos/{self.repo()}/pulls/{pr_number}/comments/{comment_id}/replies",
                "-f",
                f"body={body}",
            ]
        )
        if not isinstance(data, dict):
            raise ReviewClientError("empty reply response")
        return ReviewComment.from_rest(data)

    def resolve_thread(self, thread_id: str) -> None:
        self._graphql(RESOLVE_MUTATION, threadId=thread_id)

    def unresolve_thread(self, thread_id: str) -> None:
        self._graphql(UNRESOLVE_MUTATION, threadId=thread_id)

    def add_reaction(self, comment_id: int, reaction: str) -> None:
        self._api(
            [
                "--method",
                "POST",
                f"repos/{self.repo()}/pulls/comments/{comment_id}/reactions",
                "-f",
                f"content={reaction}",
            ]
        )
