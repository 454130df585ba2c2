"""Generic modal list/detail selector.

``select()`` takes over the terminal, lets the user browse ``options.items``
and run the configured actions, and returns the chosen item.
"""

from __future__ import annotations

import logging
import sys
from queue import Queue
from typing import TYPE_CHECKING

from ..ansi import colors_enabled
from ..errors import NoSelection
from ..ui_theme import DEFAULT_THEME, PLAIN_THEME
from .contract import REACTIONS, EditFile, ItemRenderer, LaunchAgent, T, split_action_key
from .engine import SelectionEngine
from .options import SelectorOptions

if TYPE_CHECKING:
    from ..runtime.config import Settings

logger = logging.getLogger(__name__)

__all__ = [
    "REACTIONS",
    "EditFile",
    "ItemRenderer",
    "LaunchAgent",
    "SelectionEngine",
    "SelectorOptions",
    "select",
    "split_action_key",
]


def select(options: SelectorOptions[T], settings: Settings | None = None) -> T:
    """Run the interactive selector and return the chosen item.

    Raises ``NoSelection`` when the user quits without choosing,
    ``TerminalError`` when the terminal cannot be driven, and
    ``EditorSessionError`` when an editor temp file cannot be created.
    """
    from ..runtime.config import load_settings
    from ..runtime.external import ExternalRunner
    from ..runtime.loop import run_selector_loop
    from ..runtime.terminal import TerminalController

    if settings is None:
        settings = load_settings()
    engine: SelectionEngine[T] = SelectionEngine(options, status_seconds=settings.status_seconds)
    terminal = TerminalController(sys.stdin.fileno(), sys.stdout.fileno())
    runner = ExternalRunner(terminal, editor=settings.editor, agent=settings.agent)
    theme = DEFAULT_THEME if colors_enabled() else PLAIN_THEME

    logger.info("selector started with %d items", len(engine.listing.items))
    run_selector_loop(engine, terminal, sys.stdin.fileno(), runner, Queue(), theme=theme)
    if not engine.has_result:
        raise NoSelection()
    return engine.result
