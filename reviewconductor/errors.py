"""Exception hierarchy shared by the selector, runtime, and review client.

Only ``EditorSessionError`` and ``TerminalError`` escape ``select()``;
every other failure is turned into a transient status line by the engine.
"""

from __future__ import annotations


class ReviewConductorError(Exception):
    """Base class for all errors raised by this package."""


class NoSelection(ReviewConductorError):
    """The user left the selector without choosing an item."""

    def __init__(self, message: str = "no item selected") -> None:
        super().__init__(message)


class EditorSessionError(ReviewConductorError):
    """Temporary file for an editor session could not be created."""


class SessionIOError(ReviewConductorError):
    """Temporary file for an editor session could not be written or read."""


class TerminalError(ReviewConductorError):
    """Terminal driver could not be initialised or restored."""


class ReviewClientError(ReviewConductorError):
    """A request against the review backend failed."""
