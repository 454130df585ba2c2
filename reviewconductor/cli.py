"""Command-line front door for review-conductor.

Parses CLI options, configures logging, and resolves the pull request.
Then dispatches into the interactive comment browser or opens a comment
directly.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys

from .errors import NoSelection, ReviewConductorError
from .review.browse import FILE, build_browse_options, build_comment_tree
from .review.client import GhCliClient
from .runtime.config import LOG_DIR, load_settings, save_hide_resolved
from .runtime.external import open_url
from .selector import select

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def configure_logging(debug: bool) -> None:
    """Send logs to ``debug.log`` in the user log dir, or discard them.

    The TUI owns the terminal, so nothing is ever logged to stderr.
    """
    root = logging.getLogger("reviewconductor")
    root.handlers.clear()
    root.propagate = False
    if not debug:
        root.addHandler(logging.NullHandler())
        return
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(LOG_DIR / "debug.log", encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="review-conductor",
        description="Browse and act on pull request review comments from the terminal.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    browse = sub.add_parser(
        "browse",
        help="Browse review comments interactively.",
        description=(
            "With no arguments, pick a comment of the current branch's PR interactively. "
            "With COMMENT_ID, open that comment. With PR COMMENT_ID, open it in the given PR."
        ),
    )
    browse.add_argument("ids", nargs="*", type=_positive_int, metavar="ID", help="COMMENT_ID, or PR COMMENT_ID.")
    browse.add_argument("--repo", default=None, help="Repository as OWNER/NAME (default: current repo).")
    browse.add_argument("--debug", action="store_true", help="Write debug logs to the user log directory.")
    browse.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    return parser


def open_comment_in_browser(client: GhCliClient, pr_number: int, comment_id: int) -> None:
    for comment in client.fetch_review_comments(pr_number):
        for entry in (comment, *comment.thread_comments):
            if entry.id == comment_id and entry.html_url:
                open_url(entry.html_url)
                return
    raise ReviewConductorError(f"comment ID {comment_id} not found in PR #{pr_number}")


def run_browse(client: GhCliClient, ids: list[int]) -> None:
    if len(ids) > 2:
        raise ReviewConductorError("expected at most two arguments: [PR] COMMENT_ID")
    if len(ids) == 2:
        open_comment_in_browser(client, ids[0], ids[1])
        return
    pr_number = client.current_pr_number()
    if len(ids) == 1:
        open_comment_in_browser(client, pr_number, ids[0])
        return

    comments = client.fetch_review_comments(pr_number)
    if not comments:
        print(f"No review comments found in PR #{pr_number}")
        return

    settings = load_settings()
    options = build_browse_options(
        client,
        pr_number,
        build_comment_tree(comments),
        hide_resolved=settings.hide_resolved,
        on_filter_change=save_hide_resolved,
    )
    try:
        selected = select(options, settings)
    except NoSelection:
        logger.info("browser closed without a selection")
        return
    if selected.kind == FILE or selected.comment is None:
        print("Selected a file header. Please select a comment.")
        return
    open_comment_in_browser(client, pr_number, selected.target.id)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and run the requested command.

    Errors are printed to stderr as ``error: <message>`` with exit status 1.
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.debug)
    if args.no_color:
        os.environ["NO_COLOR"] = "1"

    client = GhCliClient(repo=args.repo)
    try:
        run_browse(client, args.ids)
    except ReviewConductorError as exc:
        logger.error("%s", exc)
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
