"""External process handoff for editor, agent, and browser commands.

Interactive commands run while the TUI is suspended: the runner leaves raw
mode and the alternate screen, blocks until the child exits, then restores the
terminal. Failures are returned as status strings instead of raised so the
event loop can post exactly one completion event per launch.
"""

from __future__ import annotations

import enum
import logging
import os
import shlex
import subprocess
import sys
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from ..errors import EditorSessionError, ReviewConductorError, SessionIOError

logger = logging.getLogger(__name__)

TEMP_FILE_PREFIX = "review-conductor-"
TEMP_FILE_SUFFIX = ".md"
EDITOR_ENV = "EDITOR"
AGENT_ENV = "REVIEW_CONDUCTOR_AGENT"
DEFAULT_EDITOR = "vim"
DEFAULT_AGENT = "claude"


class SessionAction(enum.Enum):
    """Which completer consumes an editor session's text."""

    RESOLVE_COMMENT = "resolve+comment"
    QUOTE = "quote"
    QUOTE_CONTEXT = "quote+context"


class ExternalKind(enum.Enum):
    EDITOR = "editor"
    AGENT = "agent"


@dataclass(frozen=True)
class EditorSession:
    """Temp file bound to the item snapshot whose reply is being written."""

    item: Any
    action: SessionAction
    path: Path

    @classmethod
    def create(cls, item: Any, action: SessionAction, content: str) -> EditorSession:
        """Create the session's temp file seeded with ``content``.

        Raises ``EditorSessionError`` when the file cannot be created and
        ``SessionIOError`` when it was created but could not be written.
        """
        try:
            fd, name = tempfile.mkstemp(prefix=TEMP_FILE_PREFIX, suffix=TEMP_FILE_SUFFIX)
        except OSError as exc:
            raise EditorSessionError(f"Failed to create temp file: {exc}") from exc
        path = Path(name)
        try:
            handle = os.fdopen(fd, "w", encoding="utf-8")
        except OSError as exc:
            os.close(fd)
            path.unlink(missing_ok=True)
            raise SessionIOError(f"Failed to write temp file: {exc}") from exc
        try:
            with handle:
                handle.write(content)
        except OSError as exc:
            path.unlink(missing_ok=True)
            raise SessionIOError(f"Failed to write temp file: {exc}") from exc
        logger.debug("created editor session %s for %s", path, action.value)
        return cls(item=item, action=action, path=path)

    def read(self) -> str:
        try:
            return self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SessionIOError(f"Failed to read temp file: {exc}") from exc

    def discard(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError:
            logger.warning("could not remove editor temp file %s", self.path)


def sanitize_editor_content(text: str) -> str:
    """Drop the trailing block of ``#`` comment lines, then trim whitespace.

    Comment lines at the start or in the middle of the text are kept so
    markdown headings in a reply survive.
    """
    lines = text.rstrip().split("\n")
    while lines and lines[-1].lstrip().startswith("#"):
        lines.pop()
    return "\n".join(lines).strip()


def _command_from_env(
    env_name: str,
    default: str,
    environ: Mapping[str, str] | None,
) -> list[str]:
    env = os.environ if environ is None else environ
    raw = env.get(env_name, "").strip() or default
    return shlex.split(raw) or shlex.split(default)


def editor_command(
    path: Path | str,
    line: int = 0,
    *,
    default: str = DEFAULT_EDITOR,
    environ: Mapping[str, str] | None = None,
) -> list[str]:
    """Return argv for ``$EDITOR`` (or ``default``) opening ``path`` at ``line``."""
    cmd = _command_from_env(EDITOR_ENV, default, environ)
    if line > 0:
        cmd.append(f"+{line}")
    cmd.append(str(path))
    return cmd


def agent_command(
    prompt: str,
    *,
    default: str = DEFAULT_AGENT,
    environ: Mapping[str, str] | None = None,
) -> list[str]:
    """Return argv for the coding agent with ``prompt`` as the final argument."""
    return [*_command_from_env(AGENT_ENV, default, environ), prompt]


def browser_command(url: str, platform: str | None = None) -> list[str]:
    platform = sys.platform if platform is None else platform
    if platform == "darwin":
        return ["open", url]
    if platform.startswith("win"):
        return ["cmd", "/c", "start", "", url]
    return ["xdg-open", url]


def open_url(url: str) -> None:
    """Start the platform browser on ``url`` without waiting for it.

    Raises ``ReviewConductorError`` when the browser command cannot start.
    """
    cmd = browser_command(url)
    logger.debug("opening %s with %s", url, cmd[0])
    try:
        subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError as exc:
        logger.warning("failed to open browser with %s: %s", cmd[0], exc)
        raise ReviewConductorError(f"failed to open browser: {exc}") from exc


class SuspendableTerminal(Protocol):
    def disable_tui_mode(self) -> None: ...

    def enable_tui_mode(self) -> None: ...


class ExternalRunner:
    """Run interactive commands with the terminal handed over to the child."""

    def __init__(
        self,
        terminal: SuspendableTerminal,
        *,
        editor: str = DEFAULT_EDITOR,
        agent: str = DEFAULT_AGENT,
    ) -> None:
        self.terminal = terminal
        self.editor = editor
        self.agent = agent

    def edit(self, path: Path | str, line: int = 0) -> str | None:
        return self.run(editor_command(path, line, default=self.editor), ExternalKind.EDITOR)

    def launch_agent(self, prompt: str) -> str | None:
        return self.run(agent_command(prompt, default=self.agent), ExternalKind.AGENT)

    def run(self, cmd: list[str], kind: ExternalKind) -> str | None:
        """Run ``cmd`` to completion; return an error message or ``None``."""
        logger.info("launching %s: %s", kind.value, cmd[0])
        self.terminal.disable_tui_mode()
        try:
            completed = subprocess.run(cmd, check=False)
        except OSError as exc:
            logger.warning("failed to launch %s: %s", kind.value, exc)
            return f"failed to launch {cmd[0]}: {exc}"
        finally:
            self.terminal.enable_tui_mode()
        logger.info("%s exited with status %s", kind.value, completed.returncode)
        if completed.returncode != 0:
            return f"{cmd[0]} exited with status {completed.returncode}"
        return None
