"""Help overlay content and centred modal box rendering.

Help lines only list keys whose callbacks are configured. Rendering helpers
here are presentation-only and side-effect free.
"""

from __future__ import annotations

import textwrap

from ..ansi import clip_ansi_line, display_width, pad_ansi
from ..ui_theme import UITheme, paint
from .contract import split_action_key
from .options import SelectorOptions

BOX_MAX_WIDTH = 64


def _entry(theme: UITheme, keys: str, description: str) -> str:
    return f"  {paint(theme, theme.help_key, keys)} {description}"


def help_lines(options: SelectorOptions, theme: UITheme) -> list[str]:
    """Return the help overlay body for ``options``."""
    lines = [
        paint(theme, theme.help_heading, "List"),
        _entry(theme, "j/k Up/Down", "move"),
        _entry(theme, "g/G", "first/last"),
        _entry(theme, "Enter/l", "view detail"),
        _entry(theme, "/", "filter by text (Esc clears)"),
    ]
    if options.filter_func is not None:
        lines.append(_entry(theme, "h/Tab", "hide/show resolved"))
    if options.refresh_items is not None:
        lines.append(_entry(theme, "i", "refresh"))

    lines += [
        "",
        paint(theme, theme.help_heading, "Detail"),
        _entry(theme, "j/k Ctrl+F/B", "scroll"),
        _entry(theme, "Enter", "choose item"),
        _entry(theme, "Esc/q/h", "back to list"),
    ]

    actions: list[tuple[str, str]] = []
    if options.on_open is not None:
        actions.append(("o", "open in browser"))
    if options.resolve_action is not None:
        key, desc = split_action_key(options.resolve_key)
        alt_key, alt_desc = split_action_key(options.resolve_key_alt)
        actions.append((f"{key}/{alt_key}", f"{desc}/{alt_desc}"))
    if options.resolve_comment_prepare is not None:
        key, desc = split_action_key(options.resolve_comment_key)
        actions.append((key, f"{desc} (opens editor)"))
    for label, callback in (
        (options.quote_key, options.quote_prepare),
        (options.quote_context_key, options.quote_context_prepare),
        (options.agent_key, options.agent_action),
        (options.edit_key, options.edit_action),
        (options.reaction_key, options.reaction_action),
    ):
        if callback is not None:
            actions.append(split_action_key(label))
    if actions:
        lines += ["", paint(theme, theme.help_heading, "Actions")]
        lines += [_entry(theme, key, desc) for key, desc in actions]
        lines.append(
            paint(theme, theme.dim, "  On threads, press the action key again to pick a comment.")
        )

    lines += [
        "",
        paint(theme, theme.help_heading, "General"),
        _entry(theme, "?", "help"),
        _entry(theme, "q", "quit"),
        _entry(theme, "Ctrl+C", "quit immediately"),
        "",
        paint(theme, theme.dim, "Press any key to close"),
    ]
    return lines


def wrap_message(message: str, width: int) -> list[str]:
    """Word-wrap ``message`` to ``width`` columns, keeping blank lines."""
    out: list[str] = []
    for paragraph in message.split("\n"):
        if not paragraph.strip():
            out.append("")
            continue
        out.extend(textwrap.wrap(paragraph, width=max(1, width), break_long_words=True) or [""])
    return out


def box_frame(body: list[str], width: int, height: int, theme: UITheme) -> list[str]:
    """Render ``body`` in a rounded box centred in a ``width`` x ``height`` frame."""
    inner_w = max(1, min(BOX_MAX_WIDTH, width - 4) - 4)
    if body:
        inner_w = min(inner_w, max(display_width(line) for line in body))
    inner_w = max(inner_w, 1)
    body = body[: max(0, height - 4)]

    box_w = inner_w + 4
    border = theme.box_border
    top = paint(theme, border, "╭" + "─" * (inner_w + 2) + "╮")
    bottom = paint(theme, border, "╰" + "─" * (inner_w + 2) + "╯")
    side = paint(theme, border, "│")
    box = [top, f"{side}{' ' * (inner_w + 2)}{side}"]
    for line in body:
        box.append(f"{side} {pad_ansi(clip_ansi_line(line, inner_w), inner_w)} {side}")
    box += [f"{side}{' ' * (inner_w + 2)}{side}", bottom]

    x = max(0, (width - box_w) // 2)
    y = max(0, (height - len(box)) // 2)
    frame = [""] * height
    for i, line in enumerate(box):
        if y + i < height:
            frame[y + i] = " " * x + line
    return frame
