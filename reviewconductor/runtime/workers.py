"""Background workers for detail loads and item refreshes.

Each job runs on a daemon thread and reports back by putting exactly one
event on the loop's queue. Workers never touch engine state.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from queue import Queue
from typing import Any

from ..selector.contract import ItemRenderer
from ..selector.events import DetailLoaded, Event, LoadDetail, RefreshFinished

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """Start one-shot daemon threads that post their result onto ``events``."""

    def __init__(self, events: Queue[Event]) -> None:
        self.events = events

    def _start(self, name: str, job: Callable[[], Event]) -> threading.Thread:
        def run() -> None:
            self.events.put(job())

        thread = threading.Thread(target=run, name=name, daemon=True)
        thread.start()
        return thread

    def load_detail(self, renderer: ItemRenderer[Any], request: LoadDetail) -> threading.Thread:
        def job() -> Event:
            try:
                content = renderer.preview_with_highlight(request.item, request.highlight_idx)
            except Exception as exc:
                logger.warning("detail load %d failed: %s", request.generation, exc, exc_info=True)
                content = f"Failed to load detail: {exc}"
            return DetailLoaded(generation=request.generation, content=content)

        return self._start(f"review-conductor-detail-{request.generation}", job)

    def refresh(self, refresh_items: Callable[[], Sequence[Any]]) -> threading.Thread:
        def job() -> Event:
            try:
                items = list(refresh_items())
            except Exception as exc:
                logger.warning("refresh failed: %s", exc, exc_info=True)
                return RefreshFinished(error=str(exc))
            return RefreshFinished(items=items)

        return self._start("review-conductor-refresh", job)
