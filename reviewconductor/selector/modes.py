"""Mode state for the selection engine.

Exactly one of these frozen records is active at a time. Every modal state
entered from the list or the detail view carries ``origin``, the ``Normal`` or
``Detail`` mode to return to once it resolves.
"""

from __future__ import annotations

import enum
from collections.abc import Hashable
from dataclasses import dataclass
from typing import Any, Union

from ..runtime.external import EditorSession


class ThreadAction(enum.Enum):
    """Action that a thread sub-selection will execute on Enter."""

    QUOTE = "quote"
    QUOTE_CONTEXT = "quote+context"
    AGENT = "agent"
    REACT = "react"


@dataclass(frozen=True)
class Normal:
    """List view. ``query_editing`` is set while a ``/`` query is typed."""

    query_editing: bool = False


@dataclass(frozen=True)
class Detail:
    """Detail view of one item.

    ``generation`` identifies the most recent content load; results from an
    older load are dropped.
    """

    item: Any
    content: str = ""
    loading: bool = True
    offset: int = 0
    generation: int = 0


Origin = Union[Normal, Detail]


@dataclass(frozen=True)
class ThreadPick:
    """Sub-selection of one comment within a multi-comment thread."""

    action: ThreadAction
    key: str
    item: Any
    count: int
    origin: Origin
    index: int = 0
    highlighted: Detail | None = None


@dataclass(frozen=True)
class ReactionPick:
    """Cycling through the reaction catalog for ``target_id``."""

    target_id: Hashable
    key: str
    origin: Origin
    index: int = 0


@dataclass(frozen=True)
class EditorPending:
    """An editor session is running; the engine waits for its completion."""

    session: EditorSession
    origin: Origin


@dataclass(frozen=True)
class Confirmation:
    """Modal message dismissed by any key."""

    message: str
    origin: Origin


@dataclass(frozen=True)
class HelpOverlay:
    """Key reference overlay dismissed by any key."""

    prior: Origin


Mode = Union[Normal, Detail, ThreadPick, ReactionPick, EditorPending, Confirmation, HelpOverlay]


def base_view(mode: Mode) -> Origin:
    """Return the list/detail view that sits underneath ``mode``."""
    if isinstance(mode, (Normal, Detail)):
        return mode
    if isinstance(mode, HelpOverlay):
        return mode.prior
    if isinstance(mode, ThreadPick) and mode.highlighted is not None:
        return mode.highlighted
    return mode.origin
