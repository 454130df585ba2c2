"""Persistent JSON config helpers.

Stores the default editor and agent commands, the initial hide-resolved
filter, and the transient status lifetime. All access is defensive: malformed
or missing config falls back to defaults.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir, user_log_dir

from .external import DEFAULT_AGENT, DEFAULT_EDITOR

logger = logging.getLogger(__name__)

APP_NAME = "review-conductor"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
LOG_DIR = Path(user_log_dir(APP_NAME, appauthor=False))
DEFAULT_STATUS_SECONDS = 3.0
MAX_STATUS_SECONDS = 60.0


@dataclass(frozen=True)
class Settings:
    editor: str = DEFAULT_EDITOR
    agent: str = DEFAULT_AGENT
    hide_resolved: bool = True
    status_seconds: float = DEFAULT_STATUS_SECONDS


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("ignoring unreadable config %s: %s", CONFIG_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Filesystem errors are logged and otherwise ignored; preferences are not
    worth failing a session over.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        logger.warning("could not save config %s: %s", CONFIG_PATH, exc)


def _load_command(data: dict[str, object], key: str, default: str) -> str:
    value = data.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _load_status_seconds(data: dict[str, object]) -> float:
    value = data.get("status_seconds")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_STATUS_SECONDS
    if value <= 0 or value > MAX_STATUS_SECONDS:
        return DEFAULT_STATUS_SECONDS
    return float(value)


def load_settings() -> Settings:
    """Read settings from the config file, substituting defaults per key."""
    data = load_config()
    hide_resolved = data.get("hide_resolved")
    return Settings(
        editor=_load_command(data, "editor", DEFAULT_EDITOR),
        agent=_load_command(data, "agent", DEFAULT_AGENT),
        hide_resolved=hide_resolved if isinstance(hide_resolved, bool) else True,
        status_seconds=_load_status_seconds(data),
    )


def save_hide_resolved(hide_resolved: bool) -> None:
    """Persist the hide-resolved filter preference as a boolean."""
    config = load_config()
    config["hide_resolved"] = bool(hide_resolved)
    save_config(config)
