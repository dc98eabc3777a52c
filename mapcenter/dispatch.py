"""
Marshalling of callback results onto the UI thread.

Providers complete their work on background threads. Anything that
changes what the user sees (address text, overlays, viewport) is posted
to a ``UIDispatcher`` and executed later by the code that owns the UI,
which calls ``drain``. In the Streamlit app this is the script run.
"""

from __future__ import annotations

import logging
import queue
from typing import Callable

logger = logging.getLogger(__name__)


class UIDispatcher:
    """A FIFO of callables executed by the UI owner."""

    def __init__(self):
        self._queue: "queue.Queue[tuple]" = queue.Queue()

    def post(self, fn: Callable, *args) -> None:
        """Schedule ``fn(*args)``; safe to call from any thread."""
        self._queue.put((fn, args))

    def drain(self) -> int:
        """Run every queued callable in order and return how many ran."""
        count = 0
        while True:
            try:
                fn, args = self._queue.get_nowait()
            except queue.Empty:
                break
            fn(*args)
            count += 1
        if count:
            logger.debug("ran %d UI callbacks", count)
        return count
