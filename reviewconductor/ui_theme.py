"""UI theme definitions for the selector chrome.

Themes are UI-only ANSI palettes (list rows, status lines, boxes). Colors
inside item titles and previews are chosen by the renderer, not here.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class UITheme:
    """Semantic ANSI palette used by the selector view."""

    name: str
    reset: str
    title: str
    selected: str
    skippable: str
    dim: str
    error: str
    success: str
    box_border: str
    help_heading: str
    help_key: str
    highlight: str
    cyan: str
    yellow: str


DEFAULT_THEME = UITheme(
    name="default",
    reset="\033[0m",
    title="\033[1;38;5;205m",
    selected="\033[1;38;5;205m",
    skippable="\033[9;38;5;241m",
    dim="\033[38;5;241m",
    error="\033[31m",
    success="\033[32m",
    box_border="\033[38;5;205m",
    help_heading="\033[1;38;5;81m",
    help_key="\033[38;5;229m",
    highlight="\033[35m",
    cyan="\033[36m",
    yellow="\033[33m",
)

PLAIN_THEME = UITheme(
    name="plain",
    reset="",
    title="",
    selected="",
    skippable="",
    dim="",
    error="",
    success="",
    box_border="",
    help_heading="",
    help_key="",
    highlight="",
    cyan="",
    yellow="",
)


def paint(theme: UITheme, sgr: str, text: str) -> str:
    """Apply one theme color to ``text``; plain themes leave text untouched."""
    if not sgr or not text:
        return text
    return f"{sgr}{text}{theme.reset}"
