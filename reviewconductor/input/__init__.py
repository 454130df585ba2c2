"""Keyboard decoding and dispatch primitives."""

from __future__ import annotations

from .key_registry import KeyBinding, KeyRegistry
from .reader import UNKNOWN_KEY, read_key

__all__ = ["KeyBinding", "KeyRegistry", "UNKNOWN_KEY", "read_key"]
