"""Modal selection engine.

Owns the item snapshot, the visible projection, and the current mode, and
turns key tokens and loop events into mode transitions. The engine performs no
I/O of its own: slow or interactive work (detail loads, refreshes, editor and
agent launches) is queued as commands that the event loop carries out, and
their outcomes come back as events.

Callback failures never escape: they become a red status line and the engine
stays in the mode that was active before the callback ran. The only errors
that propagate are ``EditorSessionError`` (temp file creation) and anything the
renderer itself raises.
"""

from __future__ import annotations

import enum
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Generic

from ..errors import SessionIOError
from ..input import KeyRegistry
from ..runtime.external import EditorSession, SessionAction, sanitize_editor_content
from .contract import REACTIONS, SELECTED_MARKER, EditFile, LaunchAgent, T, split_action_key
from .events import (
    AgentFinished,
    Command,
    DetailLoaded,
    EditorFinished,
    Event,
    LoadDetail,
    OpenEditor,
    RefreshFinished,
    RefreshItems,
    Resize,
    RunAgent,
)
from .layout import detail_rows, list_rows, max_detail_offset
from .list_state import ListState
from .modes import (
    Confirmation,
    Detail,
    EditorPending,
    HelpOverlay,
    Mode,
    Normal,
    Origin,
    ReactionPick,
    ThreadAction,
    ThreadPick,
)
from .options import SelectorOptions

logger = logging.getLogger(__name__)

STATUS_SECONDS = 3.0
CONFIRM_SUFFIX = "\n\nPress any key to continue..."
BACK_KEYS = ("ESC", "BACKSPACE", "LEFT", "h", "q")


class StatusKind(enum.Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class StatusLine:
    text: str
    kind: StatusKind
    expires_at: float


class _ActionAborted(Exception):
    """A callback failed and its error is already on the status line."""


class SelectionEngine(Generic[T]):
    """State machine behind ``select()``; see the module docstring."""

    def __init__(
        self,
        options: SelectorOptions[T],
        *,
        status_seconds: float = STATUS_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if options.renderer is None:
            raise ValueError("SelectorOptions.renderer is required")
        self.options = options
        self.renderer = options.renderer
        self.listing: ListState[T] = ListState(
            options.items,
            filter_func=options.filter_func,
            filter_active=options.filter_default,
            filter_value=self.renderer.filter_value,
        )
        self.status_seconds = status_seconds
        self.clock = clock
        self.status: StatusLine | None = None
        self.width = 80
        self.height = 24
        self.refreshing = False
        self.finished = False
        self.has_result = False
        self.result: T | None = None
        self.dirty = True
        self._mode: Mode = Normal()
        self._commands: list[Command] = []
        self._generation = 0

        self.thread_keys = {
            ThreadAction.QUOTE: split_action_key(options.quote_key)[0],
            ThreadAction.QUOTE_CONTEXT: split_action_key(options.quote_context_key)[0],
            ThreadAction.AGENT: split_action_key(options.agent_key)[0],
            ThreadAction.REACT: split_action_key(options.reaction_key)[0],
        }
        self.reaction_key = self.thread_keys[ThreadAction.REACT]
        self._normal_keys = self._build_normal_keys()
        self._detail_keys = self._build_detail_keys()

    # -- state ---------------------------------------------------------------

    @property
    def mode(self) -> Mode:
        return self._mode

    @mode.setter
    def mode(self, value: Mode) -> None:
        if type(value) is not type(self._mode):
            logger.debug("mode %s -> %s", type(self._mode).__name__, type(value).__name__)
        self._mode = value
        self.dirty = True

    def set_status(self, text: str, kind: StatusKind = StatusKind.INFO) -> None:
        self.status = StatusLine(text=text, kind=kind, expires_at=self.clock() + self.status_seconds)
        self.dirty = True

    def tick(self, now: float | None = None) -> None:
        """Expire the transient status line once its lifetime has passed."""
        now = self.clock() if now is None else now
        if self.status is not None and now >= self.status.expires_at:
            self.status = None
            self.dirty = True

    def take_commands(self) -> list[Command]:
        commands, self._commands = self._commands, []
        return commands

    def discard_pending_session(self) -> None:
        """Delete the temp file of an editor session that never completed."""
        mode = self._mode
        if isinstance(mode, EditorPending):
            mode.session.discard()
            self.mode = mode.origin

    def current_item(self) -> T | None:
        view = self._mode
        if isinstance(view, Detail):
            return view.item
        return self.listing.selected()

    # -- key bindings --------------------------------------------------------

    def _bind_actions(self, keys: KeyRegistry) -> KeyRegistry:
        opts = self.options
        if opts.on_open is not None:
            keys.bind("o", self._open)
        if opts.resolve_action is not None:
            keys.bind(
                (split_action_key(opts.resolve_key)[0], split_action_key(opts.resolve_key_alt)[0]),
                self._resolve,
            )
        if opts.resolve_comment_prepare is not None:
            keys.bind(
                (
                    split_action_key(opts.resolve_comment_key)[0],
                    split_action_key(opts.resolve_comment_key_alt)[0],
                ),
                lambda: self._start_editor_from_view(SessionAction.RESOLVE_COMMENT),
            )
        if opts.quote_prepare is not None:
            keys.bind(self.thread_keys[ThreadAction.QUOTE], lambda: self._thread_action(ThreadAction.QUOTE))
        if opts.quote_context_prepare is not None:
            keys.bind(
                self.thread_keys[ThreadAction.QUOTE_CONTEXT],
                lambda: self._thread_action(ThreadAction.QUOTE_CONTEXT),
            )
        if opts.agent_action is not None:
            keys.bind(self.thread_keys[ThreadAction.AGENT], lambda: self._thread_action(ThreadAction.AGENT))
        if opts.edit_action is not None:
            keys.bind(split_action_key(opts.edit_key)[0], self._edit)
        if opts.reaction_action is not None:
            keys.bind(self.reaction_key, lambda: self._thread_action(ThreadAction.REACT))
        return keys

    def _build_normal_keys(self) -> KeyRegistry:
        keys = KeyRegistry()
        keys.bind(("UP", "k"), lambda: self._move(-1))
        keys.bind(("DOWN", "j"), lambda: self._move(1))
        keys.bind(("PAGE_UP", "CTRL_B"), lambda: self._move(-list_rows(self.height)))
        keys.bind(("PAGE_DOWN", "CTRL_F"), lambda: self._move(list_rows(self.height)))
        keys.bind(("HOME", "g"), self.listing.move_to_start)
        keys.bind(("END", "G"), self.listing.move_to_end)
        keys.bind(("ENTER", "l", "RIGHT"), self._open_detail)
        keys.bind("/", self._start_query)
        keys.bind("ESC", self._clear_query)
        keys.bind("?", self._show_help)
        keys.bind("q", self._quit)
        if self.options.filter_func is not None:
            keys.bind(("h", "TAB"), self._toggle_filter)
        if self.options.refresh_items is not None:
            keys.bind("i", self._refresh)
        return self._bind_actions(keys)

    def _build_detail_keys(self) -> KeyRegistry:
        keys = KeyRegistry()
        keys.bind(BACK_KEYS, self._close_detail)
        keys.bind(("UP", "k"), lambda: self._scroll(-1))
        keys.bind(("DOWN", "j"), lambda: self._scroll(1))
        keys.bind(("PAGE_DOWN", "CTRL_F", " "), lambda: self._scroll(detail_rows(self.height)))
        keys.bind(("PAGE_UP", "CTRL_B"), lambda: self._scroll(-detail_rows(self.height)))
        keys.bind(("HOME", "g"), lambda: self._scroll(-self._detail_line_count()))
        keys.bind(("END", "G"), lambda: self._scroll(self._detail_line_count()))
        keys.bind("ENTER", self._choose)
        keys.bind("?", self._show_help)
        return self._bind_actions(keys)

    # -- dispatch ------------------------------------------------------------

    def handle_key(self, key: str) -> None:
        self.dirty = True
        if key == "CTRL_C":
            self._quit()
            return
        try:
            self._dispatch_key(key)
        except _ActionAborted:
            pass

    def _dispatch_key(self, key: str) -> None:
        mode = self._mode
        if isinstance(mode, HelpOverlay):
            self.mode = mode.prior
        elif isinstance(mode, Confirmation):
            self.mode = mode.origin
        elif isinstance(mode, EditorPending):
            logger.debug("ignoring key %r while editor is pending", key)
        elif isinstance(mode, ReactionPick):
            self._handle_reaction_key(key, mode)
        elif isinstance(mode, ThreadPick):
            self._handle_thread_pick_key(key, mode)
        elif isinstance(mode, Detail):
            self._detail_keys.dispatch(key)
        elif mode.query_editing:
            self._handle_query_key(key)
        else:
            self._normal_keys.dispatch(key)

    def handle_event(self, event: Event) -> None:
        self.dirty = True
        try:
            if isinstance(event, Resize):
                self.width, self.height = event.width, event.height
            elif isinstance(event, DetailLoaded):
                self._on_detail_loaded(event)
            elif isinstance(event, RefreshFinished):
                self._on_refresh_finished(event)
            elif isinstance(event, EditorFinished):
                self._on_editor_finished(event)
            elif isinstance(event, AgentFinished):
                self._on_agent_finished(event)
        except _ActionAborted:
            pass

    def _guard(self, func: Callable[..., Any], *args: Any) -> Any:
        try:
            return func(*args)
        except Exception as exc:
            name = getattr(func, "__name__", repr(func))
            logger.warning("callback %s failed: %s", name, exc, exc_info=True)
            self.set_status(f"Error: {exc}", StatusKind.ERROR)
            raise _ActionAborted from exc

    def _report(self, status: str) -> None:
        if status:
            self.set_status(status, StatusKind.SUCCESS)

    # -- list view -----------------------------------------------------------

    def _move(self, delta: int) -> None:
        self.listing.move(delta)

    def _quit(self) -> None:
        logger.debug("quit without selection")
        self.finished = True

    def _choose(self) -> None:
        item = self.current_item()
        if item is None:
            return
        self.result = item
        self.has_result = True
        self.finished = True

    def _show_help(self) -> None:
        view = self._mode
        if isinstance(view, (Normal, Detail)):
            self.mode = HelpOverlay(prior=view)

    def _start_query(self) -> None:
        self.mode = Normal(query_editing=True)

    def _clear_query(self) -> None:
        if self.listing.query:
            self.listing.set_query("")

    def _handle_query_key(self, key: str) -> None:
        query = self.listing.query
        if key == "ENTER":
            self.mode = Normal()
        elif key == "ESC":
            self.listing.set_query("")
            self.mode = Normal()
        elif key == "BACKSPACE":
            self.listing.set_query(query[:-1])
        elif key == "CTRL_U":
            self.listing.set_query("")
        elif key == "UP":
            self._move(-1)
        elif key == "DOWN":
            self._move(1)
        elif len(key) == 1 and key.isprintable():
            self.listing.set_query(query + key)

    def _toggle_filter(self) -> None:
        active = self.listing.toggle_filter()
        self.set_status("Hiding resolved" if active else "Showing all")
        if self.options.on_filter_change is not None:
            self._guard(self.options.on_filter_change, active)

    def _refresh(self) -> None:
        if self.refreshing:
            logger.debug("refresh already in flight")
            return
        self.refreshing = True
        self.set_status("Refreshing...")
        self._commands.append(RefreshItems())

    def _on_refresh_finished(self, event: RefreshFinished) -> None:
        self.refreshing = False
        if event.error is not None:
            logger.warning("refresh failed: %s", event.error)
            self.set_status(f"Refresh failed: {event.error}", StatusKind.ERROR)
            return
        self.listing.replace_items(event.items)
        logger.info("refreshed %d items", len(self.listing.items))
        self.set_status(f"Refreshed {len(self.listing.items)} items", StatusKind.SUCCESS)

    def _open(self) -> None:
        item = self.current_item()
        if item is not None:
            self._report(self._guard(self.options.on_open, item))

    # -- detail view ---------------------------------------------------------

    def _open_detail(self) -> None:
        item = self.listing.selected()
        if item is None:
            return
        if self.options.on_select is not None:
            status = self._guard(self.options.on_select, item)
            if status:
                self.listing.refilter()
                self.set_status(status)
                return
        self._generation += 1
        self.mode = Detail(item=item, generation=self._generation)
        self._commands.append(LoadDetail(self._generation, item))

    def _close_detail(self) -> None:
        self.mode = Normal()

    def _reload_detail(self, detail: Detail) -> Detail:
        self._generation += 1
        reloaded = replace(detail, generation=self._generation)
        self._commands.append(LoadDetail(self._generation, detail.item))
        return reloaded

    def _detail_line_count(self) -> int:
        view = self._mode
        return view.content.count("\n") + 1 if isinstance(view, Detail) else 0

    def _scroll(self, delta: int) -> None:
        view = self._mode
        if not isinstance(view, Detail):
            return
        limit = max_detail_offset(view.content, self.height)
        self.mode = replace(view, offset=max(0, min(view.offset + delta, limit)))

    def _on_detail_loaded(self, event: DetailLoaded) -> None:
        def apply(detail: Detail) -> Detail:
            if detail.generation != event.generation:
                return detail
            offset = 0 if detail.loading else min(detail.offset, max_detail_offset(event.content, self.height))
            return replace(detail, content=event.content, loading=False, offset=offset)

        mode = self._mode
        if isinstance(mode, Detail):
            self.mode = apply(mode)
        elif isinstance(mode, HelpOverlay) and isinstance(mode.prior, Detail):
            self.mode = replace(mode, prior=apply(mode.prior))
        elif isinstance(mode, (Confirmation, EditorPending, ReactionPick, ThreadPick)) and isinstance(
            mode.origin, Detail
        ):
            self.mode = replace(mode, origin=apply(mode.origin))
        else:
            logger.debug("dropping stale detail load %d", event.generation)

    # -- actions -------------------------------------------------------------

    def _view(self) -> Origin:
        view = self._mode
        assert isinstance(view, (Normal, Detail))
        return view

    def _resolve(self) -> None:
        view = self._view()
        item = self.current_item()
        if item is None:
            return
        status = self._guard(self.options.resolve_action, item)
        if isinstance(view, Detail):
            self.mode = self._reload_detail(view)
        self._report(status)

    def _edit(self) -> None:
        item = self.current_item()
        if item is None:
            return
        result = self._guard(self.options.edit_action, item)
        if isinstance(result, EditFile):
            self._commands.append(OpenEditor(Path(result.path), result.line))
        else:
            self._report(result)

    def _session_callbacks(
        self, action: SessionAction
    ) -> tuple[Callable[[T], str] | None, Callable[[T, str], str] | None]:
        opts = self.options
        if action is SessionAction.RESOLVE_COMMENT:
            return opts.resolve_comment_prepare, opts.resolve_comment_complete
        if action is SessionAction.QUOTE:
            return opts.quote_prepare, opts.quote_complete
        return opts.quote_context_prepare, opts.quote_context_complete

    def _start_editor_from_view(self, action: SessionAction) -> None:
        item = self.current_item()
        if item is not None:
            self._start_editor(item, action, self._view())

    def _start_editor(self, item: T, action: SessionAction, origin: Origin) -> None:
        prepare, _ = self._session_callbacks(action)
        if prepare is None:
            return
        content = self._guard(prepare, item)
        try:
            session = EditorSession.create(item, action, content)
        except SessionIOError as exc:
            self.set_status(str(exc), StatusKind.ERROR)
            return
        self.mode = EditorPending(session=session, origin=origin)
        self._commands.append(OpenEditor(session.path))

    def _on_editor_finished(self, event: EditorFinished) -> None:
        mode = self._mode
        if not isinstance(mode, EditorPending):
            if event.error is not None:
                self.set_status(f"Editor error: {event.error}", StatusKind.ERROR)
            return
        session, origin = mode.session, mode.origin
        self.mode = origin
        try:
            if event.error is not None:
                self.set_status(f"Editor error: {event.error}", StatusKind.ERROR)
                return
            try:
                text = session.read()
            except SessionIOError as exc:
                self.set_status(str(exc), StatusKind.ERROR)
                return
        finally:
            session.discard()

        content = sanitize_editor_content(text)
        if not content:
            self.set_status("Cancelled (empty content)")
            return
        _, complete = self._session_callbacks(session.action)
        if complete is None:
            return
        result = self._guard(complete, session.item, content)
        if isinstance(origin, Detail):
            origin = self._reload_detail(origin)
            self.mode = origin
        if "https://" in result:
            self.mode = Confirmation(message=result + CONFIRM_SUFFIX, origin=origin)
        else:
            self._report(result)

    def _thread_action(self, action: ThreadAction) -> None:
        view = self._view()
        item = self.current_item()
        if item is None:
            return
        count = self.renderer.thread_comment_count(item)
        if count > 1:
            pick = ThreadPick(action=action, key=self.thread_keys[action], item=item, count=count, origin=view)
            self.mode = self._highlight(pick)
            return
        self._run_thread_action(action, item, view)

    def _highlight(self, pick: ThreadPick) -> ThreadPick:
        origin = pick.origin
        if not isinstance(origin, Detail):
            return pick
        content = self.renderer.preview_with_highlight(pick.item, pick.index)
        lines = content.split("\n")
        marker = next((idx for idx, line in enumerate(lines) if SELECTED_MARKER in line), 0)
        offset = min(max(0, marker - detail_rows(self.height) // 3), max_detail_offset(content, self.height))
        return replace(pick, highlighted=replace(origin, content=content, loading=False, offset=offset))

    def _run_thread_action(self, action: ThreadAction, item: T, origin: Origin) -> None:
        if action is ThreadAction.QUOTE:
            self._start_editor(item, SessionAction.QUOTE, origin)
        elif action is ThreadAction.QUOTE_CONTEXT:
            self._start_editor(item, SessionAction.QUOTE_CONTEXT, origin)
        elif action is ThreadAction.AGENT:
            result = self._guard(self.options.agent_action, item)
            if isinstance(result, LaunchAgent):
                self._commands.append(RunAgent(result.prompt))
            else:
                self._report(result)
        else:
            target = self._guard(self.options.reaction_action, item)
            self.mode = ReactionPick(target_id=target, key=self.reaction_key, origin=origin)

    def _handle_thread_pick_key(self, key: str, pick: ThreadPick) -> None:
        if key == pick.key:
            self.mode = self._highlight(replace(pick, index=(pick.index + 1) % pick.count))
            return
        self.mode = pick.origin
        if key == "ENTER":
            stamped = self.renderer.with_selected_comment(pick.item, pick.index)
            self._run_thread_action(pick.action, stamped, pick.origin)
            return
        self.set_status("Selection cancelled")

    def _handle_reaction_key(self, key: str, pick: ReactionPick) -> None:
        if key == pick.key:
            self.mode = replace(pick, index=(pick.index + 1) % len(REACTIONS))
            return
        self.mode = pick.origin
        if key != "ENTER":
            self.set_status("Reaction cancelled")
            return
        complete = self.options.reaction_complete
        if complete is None:
            return
        message = self._guard(complete, pick.target_id, REACTIONS[pick.index])
        if message:
            self.mode = Confirmation(message=message + CONFIRM_SUFFIX, origin=pick.origin)

    def _on_agent_finished(self, event: AgentFinished) -> None:
        if event.error is not None:
            self.set_status(f"Agent error: {event.error}", StatusKind.ERROR)
        else:
            self.set_status("Agent completed", StatusKind.SUCCESS)
