"""Main interactive event loop for the selector.

Coordinates rendering, key input, queued background events, and the commands
the engine schedules. This loop is intentionally wiring-heavy; state
transitions live in ``SelectionEngine``.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from queue import Empty, Queue

from ..input import UNKNOWN_KEY, read_key
from ..selector.engine import SelectionEngine
from ..selector.events import (
    AgentFinished,
    Command,
    EditorFinished,
    Event,
    LoadDetail,
    OpenEditor,
    RefreshItems,
    Resize,
    RunAgent,
)
from ..selector.view import render_frame
from ..ui_theme import DEFAULT_THEME, UITheme
from .external import ExternalRunner
from .terminal import TerminalController
from .workers import BackgroundTasks

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuntimeLoopTiming:
    """Timing constants controlling interactive loop behavior."""

    key_timeout_ms: int = 120


def _execute(
    command: Command,
    engine: SelectionEngine,
    runner: ExternalRunner,
    tasks: BackgroundTasks,
    events: Queue[Event],
) -> None:
    if isinstance(command, LoadDetail):
        tasks.load_detail(engine.renderer, command)
    elif isinstance(command, RefreshItems):
        refresh_items = engine.options.refresh_items
        if refresh_items is not None:
            tasks.refresh(refresh_items)
    elif isinstance(command, OpenEditor):
        events.put(EditorFinished(error=runner.edit(command.path, command.line)))
    elif isinstance(command, RunAgent):
        events.put(AgentFinished(error=runner.launch_agent(command.prompt)))


def run_selector_loop(
    engine: SelectionEngine,
    terminal: TerminalController,
    stdin_fd: int,
    runner: ExternalRunner,
    events: Queue[Event],
    timing: RuntimeLoopTiming = RuntimeLoopTiming(),
    theme: UITheme = DEFAULT_THEME,
) -> None:
    """Run the selector until the engine reports it is finished.

    Each iteration applies resize and queued events, carries out scheduled
    commands, repaints when dirty, and reads at most one key.
    """
    tasks = BackgroundTasks(events)
    try:
        with terminal.raw_mode():
            _loop(engine, terminal, stdin_fd, runner, tasks, events, timing, theme)
    finally:
        engine.discard_pending_session()


def _loop(
    engine: SelectionEngine,
    terminal: TerminalController,
    stdin_fd: int,
    runner: ExternalRunner,
    tasks: BackgroundTasks,
    events: Queue[Event],
    timing: RuntimeLoopTiming,
    theme: UITheme,
) -> None:
    skip_next_lf = False
    while not engine.finished:
        term = shutil.get_terminal_size((80, 24))
        if (term.columns, term.lines) != (engine.width, engine.height):
            engine.handle_event(Resize(term.columns, term.lines))

        while True:
            try:
                event = events.get_nowait()
            except Empty:
                break
            engine.handle_event(event)

        engine.tick()

        commands = engine.take_commands()
        for command in commands:
            logger.debug("executing %s", type(command).__name__)
            _execute(command, engine, runner, tasks, events)
        if commands:
            # External commands post their completion event synchronously.
            continue

        if engine.dirty:
            terminal.draw(render_frame(engine, term.columns, term.lines, theme))
            engine.dirty = False

        try:
            key = read_key(stdin_fd, timeout_ms=timing.key_timeout_ms)
        except KeyboardInterrupt:
            engine.handle_key("CTRL_C")
            continue
        if key in ("", UNKNOWN_KEY):
            continue
        if skip_next_lf and key == "ENTER_LF":
            skip_next_lf = False
            continue

        if key == "ENTER_CR":
            key = "ENTER"
            skip_next_lf = True
        elif key == "ENTER_LF":
            key = "ENTER"
            skip_next_lf = False
        else:
            skip_next_lf = False

        engine.handle_key(key)
