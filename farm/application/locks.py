"""In-process mutual exclusion per favorite color."""

import threading
from collections.abc import Iterable, Iterator
from contextlib import ExitStack, contextmanager
from typing import Final

from ..domain.entities import Color


class ColorLocks:
    """One lock per color.

    Operations on different colors run in parallel; operations on the same
    color, including every cascading move they trigger, are serialized.
    """

    def __init__(self):
        self._locks: dict[Color, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, color: Color) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(color)
            if lock is None:
                lock = self._locks[color] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, colors: Iterable[Color]) -> Iterator[None]:
        """Hold the locks of all given colors.

        Locks are taken in a fixed order so that two batches touching
        overlapping colors cannot deadlock.
        """
        with ExitStack() as stack:
            for color in sorted(set(colors), key=lambda c: c.value):
                stack.enter_context(self._lock_for(color))
            yield

    def is_locked(self, color: Color) -> bool:
        return self._lock_for(color).locked()


# Process-wide registry shared by every allocator instance
color_locks: Final = ColorLocks()
