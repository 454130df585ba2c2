"""Tests for selector frame rendering.

Frames are rendered with the plain theme so assertions can compare text
directly without stripping escape sequences.
"""

from __future__ import annotations

import unittest

from fakes import FakeClock, Note, NoteRenderer

from reviewconductor.ansi import display_width
from reviewconductor.selector import SelectorOptions
from reviewconductor.selector.engine import SelectionEngine
from reviewconductor.selector.events import DetailLoaded, Resize
from reviewconductor.selector.view import detail_footer, list_footer, render_frame
from reviewconductor.ui_theme import PLAIN_THEME


def _engine(items=None, **callbacks) -> SelectionEngine:
    if items is None:
        items = [Note("alpha"), Note("beta"), Note("gamma")]
    options = SelectorOptions(items=items, renderer=NoteRenderer(), title="Notes", **callbacks)
    return SelectionEngine(options, clock=FakeClock())


def _frame(engine: SelectionEngine, width: int = 80, height: int = 24) -> list[str]:
    return render_frame(engine, width, height, PLAIN_THEME)


class FooterTests(unittest.TestCase):
    def test_footer_without_callbacks(self) -> None:
        options = SelectorOptions(renderer=NoteRenderer())
        self.assertEqual(list_footer(options, resolved=False, filter_active=False), "enter:view | ?:help | q:quit")

    def test_footer_lists_only_configured_actions(self) -> None:
        options = SelectorOptions(
            renderer=NoteRenderer(),
            resolve_action=lambda item: "",
            agent_action=lambda item: "",
            filter_func=lambda item, active: True,
        )
        footer = list_footer(options, resolved=False, filter_active=False)
        self.assertEqual(
            footer,
            "enter:view | r:resolve | a:agent | h:hide resolved | ?:help | q:quit",
        )
        self.assertNotIn("Q:quote", footer)

    def test_resolved_item_shows_alternate_label(self) -> None:
        options = SelectorOptions(renderer=NoteRenderer(), resolve_action=lambda item: "")
        self.assertIn("u:unresolve", list_footer(options, resolved=True, filter_active=False))
        self.assertIn("h:show all", list_footer(
            SelectorOptions(renderer=NoteRenderer(), filter_func=lambda item, active: True),
            resolved=False,
            filter_active=True,
        ))

    def test_detail_footer(self) -> None:
        options = SelectorOptions(renderer=NoteRenderer(), edit_action=lambda item: "")
        self.assertEqual(
            detail_footer(options, resolved=False),
            "q/esc:back | enter:choose | e:edit | ctrl+f/b:scroll",
        )


class FrameTests(unittest.TestCase):
    def test_frame_has_exact_height_and_fits_width(self) -> None:
        engine = _engine([Note("x" * 200)])
        for width, height in ((80, 24), (30, 8), (5, 1)):
            lines = render_frame(engine, width, height)
            self.assertEqual(len(lines), height)
            for line in lines:
                self.assertLessEqual(display_width(line), max(20, width))

    def test_list_frame_marks_cursor_row(self) -> None:
        engine = _engine()
        engine.handle_key("j")
        lines = _frame(engine)
        self.assertEqual(lines[0], "Notes")
        self.assertEqual(lines[1], "3 items")
        self.assertIn("> beta", lines)
        self.assertIn("  alpha", lines)

    def test_empty_list_shows_placeholder(self) -> None:
        lines = _frame(_engine([]))
        self.assertIn("  No items.", lines)

    def test_resize_changes_layout(self) -> None:
        engine = _engine([Note(f"n{i}") for i in range(50)])
        engine.handle_event(Resize(60, 10))
        self.assertEqual(len(_frame(engine, 60, 10)), 10)
        self.assertIn("page 1/10", _frame(engine, 60, 10)[-1])
        self.assertIn("page 1/3", _frame(engine, 60, 24)[-1])

    def test_query_prompt(self) -> None:
        engine = _engine()
        engine.handle_key("/")
        engine.handle_key("b")
        lines = _frame(engine)
        self.assertEqual(lines[1], "Filter: b█")

    def test_detail_frame_shows_loading_then_content(self) -> None:
        engine = _engine()
        engine.handle_key("ENTER")
        self.assertIn("Loading...", _frame(engine))
        (command,) = engine.take_commands()
        engine.handle_event(DetailLoaded(command.generation, "first\nsecond"))
        lines = _frame(engine)
        self.assertEqual(lines[0], "Detail View")
        self.assertEqual(lines[2:4], ["first", "second"])
        self.assertTrue(lines[-1].startswith("q/esc:back"))

    def test_thread_pick_prompt(self) -> None:
        engine = _engine([Note("a", thread=("root", "first reply", "second"))], quote_prepare=lambda item: "")
        engine.handle_key("Q")
        self.assertEqual(
            _frame(engine)[1],
            "Quote [1/3] root (Q=next, Enter=select, Esc=cancel)",
        )
        engine.handle_key("Q")
        self.assertIn("[2/3] first reply", _frame(engine)[1])

    def test_reaction_prompt(self) -> None:
        engine = _engine(reaction_action=lambda item: 1)
        engine.handle_key("x")
        engine.handle_key("x")
        self.assertEqual(_frame(engine)[1], "React: [2/8] -1 (x=next, Enter=add, Esc=cancel)")

    def test_help_overlay_is_boxed(self) -> None:
        engine = _engine(refresh_items=lambda: [])
        engine.handle_key("?")
        text = "\n".join(_frame(engine))
        self.assertIn("╭", text)
        self.assertIn("refresh", text)
        self.assertNotIn("resolve", text)

    def test_confirmation_wraps_message(self) -> None:
        engine = _engine(
            reaction_action=lambda item: 1,
            reaction_complete=lambda target, reaction: "👍 reaction added: https://example.test/" + "x" * 80,
        )
        engine.handle_key("x")
        engine.handle_key("ENTER")
        lines = _frame(engine, 40, 20)
        self.assertEqual(len(lines), 20)
        self.assertIn("Press any key to continue...", "\n".join(lines))


if __name__ == "__main__":
    unittest.main()
