"""Caller-facing configuration record for ``select()``."""

from __future__ import annotations

from collections.abc import Callable, Hashable, Sequence
from dataclasses import dataclass
from typing import Generic

from .contract import EditFile, ItemRenderer, LaunchAgent, T


@dataclass
class SelectorOptions(Generic[T]):
    """Items, renderer, and optional callbacks for one selector session.

    Every callback is optional; leaving one as ``None`` disables its key and
    removes its footer entry. Callbacks report success by returning a status
    string (possibly empty) and failure by raising.
    """

    items: Sequence[T] = ()
    renderer: ItemRenderer[T] | None = None
    title: str = "Select an item"

    on_select: Callable[[T], str] | None = None
    on_open: Callable[[T], str] | None = None

    filter_func: Callable[[T, bool], bool] | None = None
    filter_default: bool = False
    on_filter_change: Callable[[bool], None] | None = None
    is_item_resolved: Callable[[T], bool] | None = None

    refresh_items: Callable[[], Sequence[T]] | None = None

    resolve_action: Callable[[T], str] | None = None
    resolve_comment_prepare: Callable[[T], str] | None = None
    resolve_comment_complete: Callable[[T, str], str] | None = None
    quote_prepare: Callable[[T], str] | None = None
    quote_complete: Callable[[T, str], str] | None = None
    quote_context_prepare: Callable[[T], str] | None = None
    quote_context_complete: Callable[[T, str], str] | None = None
    agent_action: Callable[[T], str | LaunchAgent] | None = None
    edit_action: Callable[[T], str | EditFile] | None = None
    reaction_action: Callable[[T], Hashable] | None = None
    reaction_complete: Callable[[Hashable, str], str] | None = None

    resolve_key: str = "r resolve"
    resolve_key_alt: str = "u unresolve"
    resolve_comment_key: str = "R resolve+comment"
    resolve_comment_key_alt: str = "U unresolve+comment"
    quote_key: str = "Q quote"
    quote_context_key: str = "C quote+context"
    agent_key: str = "a agent"
    edit_key: str = "e edit"
    reaction_key: str = "x react"
