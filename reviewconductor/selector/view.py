"""Frame rendering for the selection engine.

``render_frame`` is a pure function of the engine state and the terminal
size: layout is recomputed on every call, so a resize between frames needs no
bookkeeping beyond the new dimensions.
"""

from __future__ import annotations

from ..ansi import clip_ansi_line, strip_ansi, truncate_ansi
from ..ui_theme import DEFAULT_THEME, UITheme, paint
from .contract import REACTIONS, split_action_key
from .engine import SelectionEngine, StatusKind
from .help import BOX_MAX_WIDTH, box_frame, help_lines, wrap_message
from .layout import MIN_WIDTH, detail_rows, list_page
from .modes import (
    Confirmation,
    Detail,
    EditorPending,
    HelpOverlay,
    Normal,
    ReactionPick,
    ThreadAction,
    ThreadPick,
    base_view,
)
from .options import SelectorOptions

FOOTER_SEPARATOR = " | "

_THREAD_LABELS = {
    ThreadAction.QUOTE: "Quote",
    ThreadAction.QUOTE_CONTEXT: "Quote+context",
    ThreadAction.AGENT: "Agent",
    ThreadAction.REACT: "React to",
}


def _action_label(label: str) -> str:
    key, desc = split_action_key(label)
    return f"{key}:{desc}" if desc else key


def action_entries(options: SelectorOptions, resolved: bool) -> list[str]:
    """Footer entries for configured item actions, in display order."""
    entries: list[str] = []
    if options.on_open is not None:
        entries.append("o:open")
    if options.resolve_action is not None:
        entries.append(_action_label(options.resolve_key_alt if resolved else options.resolve_key))
    if options.resolve_comment_prepare is not None:
        entries.append(
            _action_label(options.resolve_comment_key_alt if resolved else options.resolve_comment_key)
        )
    for label, callback in (
        (options.quote_key, options.quote_prepare),
        (options.quote_context_key, options.quote_context_prepare),
        (options.agent_key, options.agent_action),
        (options.edit_key, options.edit_action),
        (options.reaction_key, options.reaction_action),
    ):
        if callback is not None:
            entries.append(_action_label(label))
    return entries


def list_footer(options: SelectorOptions, *, resolved: bool, filter_active: bool) -> str:
    entries = ["enter:view", *action_entries(options, resolved)]
    if options.refresh_items is not None:
        entries.append("i:refresh")
    if options.filter_func is not None:
        entries.append("h:show all" if filter_active else "h:hide resolved")
    entries += ["?:help", "q:quit"]
    return FOOTER_SEPARATOR.join(entries)


def detail_footer(options: SelectorOptions, *, resolved: bool) -> str:
    entries = ["q/esc:back", "enter:choose", *action_entries(options, resolved), "ctrl+f/b:scroll"]
    return FOOTER_SEPARATOR.join(entries)


def _is_resolved(engine: SelectionEngine, item: object) -> bool:
    check = engine.options.is_item_resolved
    return item is not None and check is not None and bool(check(item))


def _status_text(engine: SelectionEngine, theme: UITheme) -> str:
    """Prompt for the active modal state, else the transient status line."""
    mode = engine.mode
    renderer = engine.renderer
    if isinstance(mode, ThreadPick):
        preview = renderer.thread_comment_preview(mode.item, mode.index)
        return paint(
            theme,
            theme.highlight,
            f"{_THREAD_LABELS[mode.action]} [{mode.index + 1}/{mode.count}] {preview} "
            f"({mode.key}=next, Enter=select, Esc=cancel)",
        )
    if isinstance(mode, ReactionPick):
        return paint(
            theme,
            theme.highlight,
            f"React: [{mode.index + 1}/{len(REACTIONS)}] {REACTIONS[mode.index]} "
            f"({mode.key}=next, Enter=add, Esc=cancel)",
        )
    if isinstance(mode, EditorPending):
        return paint(theme, theme.dim, "Waiting for editor...")
    if isinstance(mode, Normal) and mode.query_editing:
        return f"Filter: {engine.listing.query}█"
    status = engine.status
    if status is None:
        return ""
    color = {
        StatusKind.ERROR: theme.error,
        StatusKind.SUCCESS: theme.success,
        StatusKind.INFO: theme.dim,
    }[status.kind]
    return paint(theme, color, status.text)


def _item_row(engine: SelectionEngine, item: object, selected: bool, width: int, theme: UITheme) -> str:
    renderer = engine.renderer
    text = renderer.title(item)
    description = renderer.description(item)
    if description:
        text = f"{text} - {description}"
    max_cols = max(1, width - 4)
    if selected:
        return "> " + paint(theme, theme.selected, truncate_ansi(strip_ansi(text), max_cols))
    if renderer.is_skippable(item):
        return "  " + paint(theme, theme.skippable, truncate_ansi(strip_ansi(text), max_cols))
    return "  " + truncate_ansi(text, max_cols)


def _render_list(engine: SelectionEngine, width: int, height: int, theme: UITheme) -> list[str]:
    listing = engine.listing
    visible = listing.visible_items()
    selected = listing.selected()

    status = _status_text(engine, theme)
    if not status:
        summary = f"{len(visible)} items"
        if listing.query:
            summary += f' matching "{listing.query}"'
        if engine.refreshing:
            summary += " • refreshing"
        status = paint(theme, theme.dim, summary)

    lines = [paint(theme, theme.title, engine.options.title), status]
    start, rows = list_page(listing.cursor, height)
    if not visible:
        lines.append(paint(theme, theme.dim, "  No items."))
        rows -= 1
    for idx in range(start, start + rows):
        if idx < len(visible):
            lines.append(_item_row(engine, visible[idx], idx == listing.cursor, width, theme))
        else:
            lines.append("")

    footer = list_footer(
        engine.options,
        resolved=_is_resolved(engine, selected),
        filter_active=listing.filter_active,
    )
    pages = max(1, -(-len(visible) // max(1, rows)))
    pager = f"page {start // max(1, rows) + 1}/{pages}" if pages > 1 else ""
    lines += ["", paint(theme, theme.dim, footer), paint(theme, theme.dim, pager)]
    return lines


def _render_detail(
    engine: SelectionEngine,
    detail: Detail,
    width: int,
    height: int,
    theme: UITheme,
) -> list[str]:
    status = _status_text(engine, theme)
    header = paint(theme, theme.title, "Detail View")
    if status:
        header = f"{header}  {status}"

    rows = detail_rows(height)
    if detail.loading and not detail.content:
        body = [paint(theme, theme.dim, "Loading...")]
    else:
        body = detail.content.split("\n")[detail.offset : detail.offset + rows]
    body += [""] * (rows - len(body))

    footer = detail_footer(engine.options, resolved=_is_resolved(engine, detail.item))
    return [header, "", *body, "", paint(theme, theme.dim, footer)]


def render_frame(
    engine: SelectionEngine,
    width: int,
    height: int,
    theme: UITheme = DEFAULT_THEME,
) -> list[str]:
    """Return exactly ``height`` display lines, each clipped to ``width``."""
    width = max(MIN_WIDTH, width)
    height = max(1, height)
    mode = engine.mode

    if isinstance(mode, HelpOverlay):
        lines = box_frame(help_lines(engine.options, theme), width, height, theme)
    elif isinstance(mode, Confirmation):
        wrap_width = min(BOX_MAX_WIDTH, width - 4) - 4
        lines = box_frame(wrap_message(mode.message, wrap_width), width, height, theme)
    else:
        view = base_view(mode)
        if isinstance(view, Detail):
            lines = _render_detail(engine, view, width, height, theme)
        else:
            lines = _render_list(engine, width, height, theme)

    lines = lines[:height]
    lines += [""] * (height - len(lines))
    return [clip_ansi_line(line, width) for line in lines]
