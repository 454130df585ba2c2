"""Behavior tests for the modal selection engine.

Drives ``SelectionEngine`` directly with key tokens and loop events and
inspects the resulting mode, status line, and scheduled commands.
"""

from __future__ import annotations

import unittest
from pathlib import Path
from unittest import mock

from fakes import FakeClock, Note, NoteRenderer

from reviewconductor.errors import EditorSessionError
from reviewconductor.runtime.external import SessionAction
from reviewconductor.selector import REACTIONS, EditFile, LaunchAgent, SelectorOptions
from reviewconductor.selector.engine import SelectionEngine, StatusKind
from reviewconductor.selector.events import (
    AgentFinished,
    DetailLoaded,
    EditorFinished,
    LoadDetail,
    OpenEditor,
    RefreshFinished,
    RefreshItems,
    RunAgent,
)
from reviewconductor.selector.modes import (
    Confirmation,
    Detail,
    EditorPending,
    HelpOverlay,
    Normal,
    ReactionPick,
    ThreadAction,
    ThreadPick,
)


def _engine(items=None, **callbacks) -> SelectionEngine:
    if items is None:
        items = [Note("alpha"), Note("beta"), Note("gamma")]
    options = SelectorOptions(items=items, renderer=NoteRenderer(), **callbacks)
    return SelectionEngine(options, clock=FakeClock())


def _open_detail(engine: SelectionEngine, content: str = "line") -> Detail:
    engine.handle_key("ENTER")
    (load,) = engine.take_commands()
    engine.handle_event(DetailLoaded(generation=load.generation, content=content))
    assert isinstance(engine.mode, Detail)
    return engine.mode


def _pending_session(engine: SelectionEngine):
    mode = engine.mode
    assert isinstance(mode, EditorPending)
    return mode.session


class NavigationAndQuitTests(unittest.TestCase):
    def test_quit_and_ctrl_c_finish_without_selection(self) -> None:
        for key in ("q", "CTRL_C"):
            engine = _engine()
            engine.handle_key(key)
            self.assertTrue(engine.finished)
            self.assertFalse(engine.has_result)

    def test_ctrl_c_quits_from_modal_states(self) -> None:
        engine = _engine()
        engine.handle_key("?")
        engine.handle_key("CTRL_C")
        self.assertTrue(engine.finished)

    def test_enter_in_detail_chooses_item(self) -> None:
        engine = _engine()
        engine.handle_key("j")
        _open_detail(engine)
        engine.handle_key("ENTER")
        self.assertTrue(engine.finished)
        self.assertTrue(engine.has_result)
        self.assertEqual(engine.result.name, "beta")

    def test_cursor_movement_is_clamped(self) -> None:
        engine = _engine()
        engine.handle_key("k")
        self.assertEqual(engine.listing.cursor, 0)
        engine.handle_key("G")
        self.assertEqual(engine.listing.selected().name, "gamma")
        engine.handle_key("DOWN")
        self.assertEqual(engine.listing.cursor, 2)
        engine.handle_key("g")
        self.assertEqual(engine.listing.cursor, 0)

    def test_help_overlay_dismissed_by_any_key(self) -> None:
        engine = _engine()
        engine.handle_key("?")
        self.assertEqual(engine.mode, HelpOverlay(prior=Normal()))
        engine.handle_key("j")
        self.assertEqual(engine.mode, Normal())
        self.assertEqual(engine.listing.cursor, 0)

    def test_text_query_filters_and_escape_clears(self) -> None:
        engine = _engine()
        engine.handle_key("/")
        for ch in "gam":
            engine.handle_key(ch)
        self.assertEqual([n.name for n in engine.listing.visible_items()], ["gamma"])
        engine.handle_key("ENTER")
        self.assertEqual(engine.mode, Normal())
        self.assertEqual(engine.listing.query, "gam")
        engine.handle_key("ESC")
        self.assertEqual(len(engine.listing.visible_items()), 3)

    def test_status_line_expires(self) -> None:
        engine = _engine(filter_func=lambda item, active: True)
        engine.handle_key("h")
        self.assertIsNotNone(engine.status)
        engine.tick(engine.clock() + 10)
        self.assertIsNone(engine.status)


class DetailViewTests(unittest.TestCase):
    def test_enter_opens_loading_detail_and_schedules_load(self) -> None:
        engine = _engine()
        engine.handle_key("ENTER")
        self.assertIsInstance(engine.mode, Detail)
        self.assertTrue(engine.mode.loading)
        (command,) = engine.take_commands()
        self.assertIsInstance(command, LoadDetail)
        self.assertEqual(command.item.name, "alpha")

    def test_stale_detail_load_is_ignored(self) -> None:
        engine = _engine()
        engine.handle_key("ENTER")
        (first,) = engine.take_commands()
        engine.handle_key("ESC")
        engine.handle_key("ENTER")
        (second,) = engine.take_commands()

        engine.handle_event(DetailLoaded(generation=first.generation, content="old"))
        self.assertTrue(engine.mode.loading)
        engine.handle_event(DetailLoaded(generation=second.generation, content="new"))
        self.assertFalse(engine.mode.loading)
        self.assertEqual(engine.mode.content, "new")

    def test_back_keys_return_to_list(self) -> None:
        for key in ("ESC", "BACKSPACE", "LEFT", "h", "q"):
            engine = _engine()
            _open_detail(engine)
            engine.handle_key(key)
            self.assertEqual(engine.mode, Normal(), key)
            self.assertFalse(engine.finished)

    def test_paging_scrolls_within_content(self) -> None:
        engine = _engine()
        engine.height = 14
        _open_detail(engine, "\n".join(str(i) for i in range(40)))
        engine.handle_key("CTRL_F")
        self.assertEqual(engine.mode.offset, 10)
        engine.handle_key("G")
        self.assertEqual(engine.mode.offset, 30)
        engine.handle_key("CTRL_B")
        self.assertEqual(engine.mode.offset, 20)
        engine.handle_key("g")
        self.assertEqual(engine.mode.offset, 0)

    def test_non_empty_on_select_status_keeps_list(self) -> None:
        engine = _engine(on_select=lambda item: "Collapsed")
        engine.handle_key("ENTER")
        self.assertEqual(engine.mode, Normal())
        self.assertEqual(engine.status.text, "Collapsed")
        self.assertEqual(engine.take_commands(), [])


class CallbackFailureTests(unittest.TestCase):
    def test_failing_callback_leaves_normal_mode_unchanged(self) -> None:
        resolve = mock.Mock(side_effect=RuntimeError("nope"))
        engine = _engine(resolve_action=resolve)
        engine.handle_key("r")
        resolve.assert_called_once()
        self.assertEqual(engine.mode, Normal())
        self.assertEqual(engine.status.kind, StatusKind.ERROR)
        self.assertIn("nope", engine.status.text)

    def test_failing_callback_leaves_detail_mode_unchanged(self) -> None:
        engine = _engine(resolve_action=mock.Mock(side_effect=RuntimeError("nope")))
        detail = _open_detail(engine)
        engine.handle_key("r")
        self.assertEqual(engine.mode, detail)
        self.assertEqual(engine.take_commands(), [])

    def test_failing_preparer_does_not_start_editor(self) -> None:
        engine = _engine(resolve_comment_prepare=mock.Mock(side_effect=ValueError("no thread")))
        engine.handle_key("R")
        self.assertEqual(engine.mode, Normal())
        self.assertEqual(engine.take_commands(), [])

    def test_resolve_in_detail_reloads_content(self) -> None:
        def resolve(item: Note) -> str:
            item.resolved = not item.resolved
            return "Marked as resolved"

        engine = _engine(resolve_action=resolve)
        detail = _open_detail(engine)
        engine.handle_key("u")
        self.assertTrue(engine.listing.items[0].resolved)
        (command,) = engine.take_commands()
        self.assertIsInstance(command, LoadDetail)
        self.assertGreater(command.generation, detail.generation)
        self.assertEqual(engine.status.text, "Marked as resolved")


class DisabledCallbackTests(unittest.TestCase):
    def test_action_keys_are_noops_without_callbacks(self) -> None:
        engine = _engine()
        for key in ("r", "u", "R", "U", "Q", "C", "a", "e", "x", "o", "i", "h"):
            engine.handle_key(key)
            self.assertEqual(engine.mode, Normal(), key)
        self.assertIsNone(engine.status)
        self.assertEqual(engine.take_commands(), [])

    def test_custom_key_labels_rebind_actions(self) -> None:
        resolve = mock.Mock(return_value="")
        engine = _engine(resolve_action=resolve, resolve_key="z zap", resolve_key_alt="Z unzap")
        engine.handle_key("r")
        resolve.assert_not_called()
        engine.handle_key("Z")
        resolve.assert_called_once()


class FilterTests(unittest.TestCase):
    def test_filter_double_toggle_restores_visible_set(self) -> None:
        items = [Note("a"), Note("b", resolved=True), Note("c")]
        engine = _engine(items, filter_func=lambda item, active: not (active and item.resolved))
        before = engine.listing.visible_items()
        engine.handle_key("h")
        self.assertEqual([n.name for n in engine.listing.visible_items()], ["a", "c"])
        self.assertEqual(engine.status.text, "Hiding resolved")
        engine.handle_key("TAB")
        self.assertEqual(engine.listing.visible_items(), before)
        self.assertEqual(engine.status.text, "Showing all")

    def test_filter_change_is_reported(self) -> None:
        changes: list[bool] = []
        engine = _engine(filter_func=lambda item, active: True, on_filter_change=changes.append)
        engine.handle_key("h")
        engine.handle_key("h")
        self.assertEqual(changes, [True, False])


class RefreshTests(unittest.TestCase):
    def test_refresh_error_keeps_items_and_mode(self) -> None:
        engine = _engine(refresh_items=lambda: [])
        items = list(engine.listing.items)
        engine.handle_key("i")
        self.assertEqual(engine.take_commands(), [RefreshItems()])
        engine.handle_event(RefreshFinished(error="boom"))
        self.assertEqual(engine.mode, Normal())
        self.assertEqual(engine.listing.items, items)
        self.assertEqual(engine.status.kind, StatusKind.ERROR)
        self.assertIn("boom", engine.status.text)
        self.assertFalse(engine.refreshing)

    def test_refresh_replaces_snapshot(self) -> None:
        engine = _engine(refresh_items=lambda: [])
        engine.handle_key("i")
        engine.take_commands()
        engine.handle_event(RefreshFinished(items=[Note("fresh")]))
        self.assertEqual([n.name for n in engine.listing.items], ["fresh"])

    def test_second_refresh_while_in_flight_is_ignored(self) -> None:
        engine = _engine(refresh_items=lambda: [])
        engine.handle_key("i")
        engine.handle_key("i")
        self.assertEqual(engine.take_commands(), [RefreshItems()])


class ThreadPickTests(unittest.TestCase):
    def test_single_comment_and_non_threads_skip_thread_pick(self) -> None:
        for thread in ((), ("root",)):
            prepare = mock.Mock(return_value="quoted")
            engine = _engine([Note("a", thread=thread)], quote_prepare=prepare)
            engine.handle_key("Q")
            self.assertIsInstance(engine.mode, EditorPending)
            _pending_session(engine).discard()

    def test_cycling_visits_each_index_and_wraps(self) -> None:
        engine = _engine([Note("a", thread=("r0", "r1", "r2", "r3"))], agent_action=lambda item: "")
        engine.handle_key("a")
        seen = []
        for _ in range(4):
            self.assertIsInstance(engine.mode, ThreadPick)
            seen.append(engine.mode.index)
            engine.handle_key("a")
        self.assertEqual(seen, [0, 1, 2, 3])
        self.assertEqual(engine.mode.index, 0)

    def test_quote_cycle_then_enter_binds_selected_index(self) -> None:
        prepare = mock.Mock(return_value="> quoted\n\n")
        engine = _engine([Note("a", thread=("root", "r1", "r2"))], quote_prepare=prepare)

        engine.handle_key("Q")
        self.assertEqual((engine.mode.action, engine.mode.index, engine.mode.count), (ThreadAction.QUOTE, 0, 3))
        engine.handle_key("Q")
        engine.handle_key("Q")
        self.assertEqual(engine.mode.index, 2)
        engine.handle_key("Q")
        self.assertEqual(engine.mode.index, 0)

        engine.handle_key("ENTER")
        session = _pending_session(engine)
        try:
            stamped = prepare.call_args.args[0]
            self.assertEqual(stamped.selected, 0)
            self.assertEqual(session.item.selected, 0)
            self.assertEqual(session.action, SessionAction.QUOTE)
            self.assertEqual(session.path.read_text(encoding="utf-8"), "> quoted\n\n")
            self.assertEqual(engine.take_commands(), [OpenEditor(session.path)])
        finally:
            session.discard()

    def test_other_key_cancels_without_redispatch(self) -> None:
        items = [Note("a", thread=("root", "reply")), Note("b")]
        engine = _engine(items, quote_prepare=lambda item: "")
        engine.handle_key("Q")
        engine.handle_key("j")
        self.assertEqual(engine.mode, Normal())
        self.assertEqual(engine.listing.cursor, 0)
        self.assertEqual(engine.status.text, "Selection cancelled")

    def test_thread_pick_in_detail_highlights_and_restores(self) -> None:
        engine = _engine([Note("a", thread=("root", "reply"))], agent_action=lambda item: "")
        detail = _open_detail(engine, "plain")
        engine.handle_key("a")
        engine.handle_key("a")
        self.assertIn("SELECTED", engine.mode.highlighted.content)
        engine.handle_key("ESC")
        self.assertEqual(engine.mode, detail)

    def test_agent_launch_schedules_run(self) -> None:
        engine = _engine(
            [Note("a", thread=("root", "reply"))],
            agent_action=lambda item: LaunchAgent(f"fix {item.thread[item.selected]}"),
        )
        engine.handle_key("a")
        engine.handle_key("a")
        engine.handle_key("ENTER")
        self.assertEqual(engine.take_commands(), [RunAgent("fix reply")])
        engine.handle_event(AgentFinished(error="agent exited with status 2"))
        self.assertEqual(engine.status.kind, StatusKind.ERROR)

        engine.handle_event(AgentFinished(error=None))
        self.assertEqual(engine.status.text, "Agent completed")
        self.assertEqual(engine.status.kind, StatusKind.SUCCESS)


class ReactionPickTests(unittest.TestCase):
    def test_reaction_cycle_wraps_in_catalog_order(self) -> None:
        engine = _engine(reaction_action=lambda item: 7)
        engine.handle_key("x")
        order = []
        for _ in range(len(REACTIONS)):
            self.assertIsInstance(engine.mode, ReactionPick)
            order.append(REACTIONS[engine.mode.index])
            engine.handle_key("x")
        self.assertEqual(order, list(REACTIONS))
        self.assertEqual(engine.mode.index, 0)

    def test_enter_completes_reaction_and_confirms(self) -> None:
        complete = mock.Mock(return_value="👍 reaction added: https://example.test/1")
        engine = _engine(reaction_action=lambda item: 7, reaction_complete=complete)
        engine.handle_key("x")
        engine.handle_key("x")
        engine.handle_key("ENTER")
        complete.assert_called_once_with(7, "-1")
        self.assertIsInstance(engine.mode, Confirmation)
        engine.handle_key("z")
        self.assertEqual(engine.mode, Normal())

    def test_escape_cancels_reaction(self) -> None:
        complete = mock.Mock()
        engine = _engine(reaction_action=lambda item: 7, reaction_complete=complete)
        engine.handle_key("x")
        engine.handle_key("ESC")
        complete.assert_not_called()
        self.assertEqual(engine.mode, Normal())
        self.assertEqual(engine.status.text, "Reaction cancelled")

    def test_reaction_on_thread_picks_comment_first(self) -> None:
        target = mock.Mock(return_value=11)
        engine = _engine([Note("a", thread=("root", "reply"))], reaction_action=target)
        engine.handle_key("x")
        self.assertIsInstance(engine.mode, ThreadPick)
        engine.handle_key("x")
        engine.handle_key("ENTER")
        self.assertEqual(target.call_args.args[0].selected, 1)
        self.assertIsInstance(engine.mode, ReactionPick)
        self.assertEqual(engine.mode.target_id, 11)


class EditorSessionTests(unittest.TestCase):
    def test_comment_only_result_cancels_without_completer(self) -> None:
        complete = mock.Mock()
        engine = _engine(resolve_comment_prepare=lambda item: "", resolve_comment_complete=complete)
        engine.handle_key("R")
        session = _pending_session(engine)
        session.path.write_text("# Write your reply above\n# Lines starting with # are ignored\n", encoding="utf-8")

        engine.handle_event(EditorFinished())

        complete.assert_not_called()
        self.assertEqual(engine.mode, Normal())
        self.assertEqual(engine.status.text, "Cancelled (empty content)")
        self.assertFalse(session.path.exists())

    def test_completer_receives_sanitized_text(self) -> None:
        complete = mock.Mock(return_value="Marked as resolved")
        engine = _engine(resolve_comment_prepare=lambda item: "", resolve_comment_complete=complete)
        engine.handle_key("R")
        session = _pending_session(engine)
        session.path.write_text("## Heading\nbody\n# instructions\n", encoding="utf-8")

        engine.handle_event(EditorFinished())

        complete.assert_called_once()
        self.assertEqual(complete.call_args.args[1], "## Heading\nbody")
        self.assertEqual(engine.status.text, "Marked as resolved")
        self.assertFalse(session.path.exists())

    def test_result_with_url_shows_confirmation_over_detail(self) -> None:
        engine = _engine(
            resolve_comment_prepare=lambda item: "",
            resolve_comment_complete=lambda item, text: "Posted a comment: https://example.test/c/1",
        )
        _open_detail(engine)
        engine.handle_key("R")
        session = _pending_session(engine)
        session.path.write_text("thanks", encoding="utf-8")
        engine.take_commands()

        engine.handle_event(EditorFinished())

        self.assertIsInstance(engine.mode, Confirmation)
        self.assertIn("Press any key to continue", engine.mode.message)
        self.assertIsInstance(engine.mode.origin, Detail)
        self.assertIsInstance(engine.take_commands()[0], LoadDetail)
        engine.handle_key("q")
        self.assertIsInstance(engine.mode, Detail)

    def test_editor_error_discards_session(self) -> None:
        complete = mock.Mock()
        engine = _engine(quote_prepare=lambda item: "x", quote_complete=complete)
        engine.handle_key("Q")
        session = _pending_session(engine)

        engine.handle_event(EditorFinished(error="vim exited with status 1"))

        complete.assert_not_called()
        self.assertEqual(engine.mode, Normal())
        self.assertTrue(engine.status.text.startswith("Editor error:"))
        self.assertFalse(session.path.exists())

    def test_keys_are_ignored_while_editor_pending(self) -> None:
        engine = _engine(quote_prepare=lambda item: "x")
        engine.handle_key("Q")
        session = _pending_session(engine)
        try:
            engine.handle_key("q")
            self.assertFalse(engine.finished)
            self.assertIsInstance(engine.mode, EditorPending)
        finally:
            session.discard()

    def test_temp_file_creation_failure_is_fatal(self) -> None:
        engine = _engine(quote_prepare=lambda item: "x")
        with mock.patch(
            "reviewconductor.runtime.external.tempfile.mkstemp",
            side_effect=OSError("read-only file system"),
        ):
            with self.assertRaises(EditorSessionError):
                engine.handle_key("Q")

    def test_edit_action_opens_file_at_line(self) -> None:
        engine = _engine(edit_action=lambda item: EditFile("src/app.py", 42))
        engine.handle_key("e")
        self.assertEqual(engine.take_commands(), [OpenEditor(Path("src/app.py"), 42)])
        engine.handle_event(EditorFinished(error="vim exited with status 1"))
        self.assertEqual(engine.mode, Normal())
        self.assertEqual(engine.status.kind, StatusKind.ERROR)


if __name__ == "__main__":
    unittest.main()
