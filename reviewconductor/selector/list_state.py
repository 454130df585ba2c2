"""Visible projection of the item snapshot.

Filtering never mutates the snapshot: the projection is a list of snapshot
indices recomputed from the caller's predicate, the filter flag, and the text
query. The cursor follows the selected item across recomputations whenever it
stays visible.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Generic

from ..fuzzy import query_matches
from .contract import T


class ListState(Generic[T]):
    def __init__(
        self,
        items: Sequence[T],
        *,
        filter_func: Callable[[T, bool], bool] | None = None,
        filter_active: bool = False,
        filter_value: Callable[[T], str] | None = None,
    ) -> None:
        self.items: list[T] = list(items)
        self.filter_func = filter_func
        self.filter_active = filter_active
        self.filter_value = filter_value
        self.query = ""
        self.visible: list[int] = []
        self.cursor = 0
        self.refilter()

    def _is_visible(self, item: T) -> bool:
        if self.filter_func is not None and not self.filter_func(item, self.filter_active):
            return False
        if self.query and self.filter_value is not None:
            return query_matches(self.query, self.filter_value(item))
        return True

    def refilter(self) -> None:
        """Recompute the projection, keeping the cursor on the same item if visible."""
        previous = self.visible[self.cursor] if 0 <= self.cursor < len(self.visible) else None
        self.visible = [idx for idx, item in enumerate(self.items) if self._is_visible(item)]
        if previous is not None and previous in self.visible:
            self.cursor = self.visible.index(previous)
        else:
            self.cursor = max(0, min(self.cursor, len(self.visible) - 1))

    def toggle_filter(self) -> bool:
        self.filter_active = not self.filter_active
        self.refilter()
        return self.filter_active

    def set_query(self, query: str) -> None:
        self.query = query
        self.refilter()

    def replace_items(self, items: Sequence[T]) -> None:
        """Swap in a fresh snapshot, keeping the cursor position where possible."""
        self.items = list(items)
        self.visible = []
        self.refilter()

    def selected(self) -> T | None:
        if not self.visible:
            return None
        return self.items[self.visible[self.cursor]]

    def visible_items(self) -> list[T]:
        return [self.items[idx] for idx in self.visible]

    def move(self, delta: int) -> None:
        if not self.visible:
            self.cursor = 0
            return
        self.cursor = max(0, min(self.cursor + delta, len(self.visible) - 1))

    def move_to(self, index: int) -> None:
        self.cursor = 0
        self.move(index)

    def move_to_start(self) -> None:
        self.cursor = 0

    def move_to_end(self) -> None:
        self.move_to(len(self.visible) - 1)
