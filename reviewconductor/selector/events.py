"""Messages exchanged between the selection engine and the event loop.

Events flow into the engine from the loop's queue; commands flow out of the
engine and are carried out by the loop (worker threads or external runner).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


@dataclass(frozen=True)
class RefreshFinished:
    items: Sequence[Any] = ()
    error: str | None = None


@dataclass(frozen=True)
class DetailLoaded:
    generation: int
    content: str


@dataclass(frozen=True)
class EditorFinished:
    """Editor exited; ``error`` is set when it failed to start or exited non-zero."""

    error: str | None = None


@dataclass(frozen=True)
class AgentFinished:
    error: str | None = None


Event = Union[Resize, RefreshFinished, DetailLoaded, EditorFinished, AgentFinished]


@dataclass(frozen=True)
class LoadDetail:
    generation: int
    item: Any
    highlight_idx: int = -1


@dataclass(frozen=True)
class RefreshItems:
    pass


@dataclass(frozen=True)
class OpenEditor:
    path: Path
    line: int = 0


@dataclass(frozen=True)
class RunAgent:
    prompt: str


Command = Union[LoadDetail, RefreshItems, OpenEditor, RunAgent]
