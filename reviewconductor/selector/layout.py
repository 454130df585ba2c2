"""Row budgets for the list and detail views.

Both the engine (paging, scroll clamping) and the view (painting) derive
their geometry from these helpers so the two always agree.
"""

from __future__ import annotations

LIST_HEADER_ROWS = 2
LIST_FOOTER_ROWS = 3
DETAIL_HEADER_ROWS = 2
DETAIL_FOOTER_ROWS = 2
MIN_WIDTH = 20


def list_rows(height: int) -> int:
    """Number of item rows that fit in the list view."""
    return max(1, height - LIST_HEADER_ROWS - LIST_FOOTER_ROWS)


def detail_rows(height: int) -> int:
    """Height of the detail viewport, never below one row."""
    return max(1, height - DETAIL_HEADER_ROWS - DETAIL_FOOTER_ROWS)


def max_detail_offset(content: str, height: int) -> int:
    return max(0, content.count("\n") + 1 - detail_rows(height))


def list_page(cursor: int, height: int) -> tuple[int, int]:
    """Return ``(start, rows)`` of the page containing ``cursor``."""
    rows = list_rows(height)
    return (cursor // rows) * rows, rows
