"""Item and renderer contract between hosts and the selection engine.

The engine treats items as opaque values and only reaches into them through an
``ItemRenderer``. Thread-aware renderers report how many comments an item
carries; a count above one enables sub-selection of a single thread entry.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, TypeVar

T = TypeVar("T")

# Order is an external contract with the review backend.
REACTIONS: tuple[str, ...] = (
    "+1",
    "-1",
    "laugh",
    "confused",
    "heart",
    "hooray",
    "rocket",
    "eyes",
)

SELECTED_MARKER = "SELECTED"


class ItemRenderer(Protocol[T]):
    """Presentation and thread-navigation hooks for one item type."""

    def title(self, item: T) -> str: ...

    def description(self, item: T) -> str: ...

    def filter_value(self, item: T) -> str: ...

    def is_skippable(self, item: T) -> bool: ...

    def preview_with_highlight(self, item: T, highlight_idx: int) -> str:
        """Return detail text; ``highlight_idx < 0`` means no highlight."""
        ...

    def thread_comment_count(self, item: T) -> int: ...

    def thread_comment_preview(self, item: T, idx: int) -> str: ...

    def with_selected_comment(self, item: T, idx: int) -> T: ...


@dataclass(frozen=True)
class LaunchAgent:
    """Agent callback result asking the engine to run the agent with ``prompt``."""

    prompt: str


@dataclass(frozen=True)
class EditFile:
    """Edit callback result asking the engine to open ``path`` at ``line``."""

    path: str
    line: int = 0


def split_action_key(label: str) -> tuple[str, str]:
    """Split ``"r resolve"`` into ``("r", "resolve")``.

    A label without a space is treated as a bare key with an empty description.
    """
    key, _, description = label.strip().partition(" ")
    return key, description.strip()
