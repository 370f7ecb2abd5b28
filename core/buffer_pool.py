"""Fixed-depth free lists of numpy scratch buffers with scoped rentals."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Iterator

import numpy as np


class PoolExhaustedError(RuntimeError):
    """Raised when a bounded pool has no buffer left to hand out."""


class BufferPool:
    """Thread-safe pool of equally shaped 1-D buffers.

    At most ``depth`` idle buffers are retained. A rental beyond the idle
    supply allocates a fresh buffer unless ``max_outstanding`` caps the
    number of simultaneous rentals, in which case ``PoolExhaustedError`` is
    raised. Every rented buffer is distinct storage until it is returned.
    """

    def __init__(
        self,
        length: int,
        dtype: Any = np.uint8,
        depth: int = 1,
        max_outstanding: int | None = None,
        clear_on_return: bool = False,
    ) -> None:
        if length < 0:
            raise ValueError("length must be >= 0")
        if depth < 1:
            raise ValueError("depth must be >= 1")
        self.length = int(length)
        self.dtype = np.dtype(dtype)
        self.depth = int(depth)
        self.max_outstanding = max_outstanding
        self.clear_on_return = clear_on_return

        self._lock = threading.Lock()
        self._idle: list[np.ndarray] = [self._allocate() for _ in range(self.depth)]
        self._outstanding: dict[int, np.ndarray] = {}

    def _allocate(self) -> np.ndarray:
        return np.zeros(self.length, dtype=self.dtype)

    @property
    def outstanding(self) -> int:
        with self._lock:
            return len(self._outstanding)

    @property
    def idle(self) -> int:
        with self._lock:
            return len(self._idle)

    def rent(self) -> np.ndarray:
        """Take a buffer out of the pool; pair with ``give_back``."""
        with self._lock:
            if self.max_outstanding is not None and len(self._outstanding) >= self.max_outstanding:
                raise PoolExhaustedError(
                    f"Pool of {self.dtype} buffers (length {self.length}) has "
                    f"{len(self._outstanding)} outstanding rentals."
                )
            buffer = self._idle.pop() if self._idle else self._allocate()
            self._outstanding[id(buffer)] = buffer
        return buffer

    def give_back(self, buffer: np.ndarray) -> None:
        with self._lock:
            if self._outstanding.pop(id(buffer), None) is None:
                raise ValueError("Buffer was not rented from this pool or was already returned.")
            if self.clear_on_return:
                buffer.fill(0)
            if len(self._idle) < self.depth:
                self._idle.append(buffer)

    @contextmanager
    def lease(self) -> Iterator[np.ndarray]:
        """Rent a buffer for the duration of a ``with`` block."""
        buffer = self.rent()
        try:
            yield buffer
        finally:
            self.give_back(buffer)
