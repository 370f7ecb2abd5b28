"""Fitness provider contract consumed by the breaker."""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np


class FitnessProvider(ABC):
    """Scores candidate plaintext buffers; lower means more language-like."""

    @abstractmethod
    def score(self, buffer: np.ndarray, length: int | None = None) -> float:
        """Return the fitness of ``buffer[:length]``.

        Args:
            buffer (np.ndarray): Alphabet-index buffer, possibly a pooled
                scratch buffer longer than the text it holds.
            length (int | None): Number of leading entries to score. ``None``
                scores the whole buffer.

        Returns:
            float: Non-negative score; lower is better.

        Invariants:
            - Must not mutate ``buffer`` or any shared state.
            - Must be safe to call concurrently on disjoint buffers.
            - Must return a defined value for buffers shorter than the
              model window.
        """
