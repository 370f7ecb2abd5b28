"""Search unit of the breaker: a pooled key buffer plus its fitness."""

from __future__ import annotations

import math
from dataclasses import dataclass
from operator import attrgetter
from typing import Sequence

import numpy as np

from core.buffer_pool import BufferPool

by_fitness = attrgetter("fitness")


@dataclass(eq=False)
class Individual:
    """Candidate key; ``fitness`` is ``inf`` until evaluated, lower is better."""

    key: np.ndarray
    fitness: float = math.inf

    @classmethod
    def rent(cls, pool: BufferPool) -> "Individual":
        return cls(key=pool.rent())

    def release(self, pool: BufferPool) -> None:
        pool.give_back(self.key)
        self.key = np.empty(0, dtype=self.key.dtype)
        self.fitness = math.nan

    def copy_from(self, other: "Individual") -> None:
        np.copyto(self.key, other.key)
        self.fitness = other.fitness


def sort_by_fitness(individuals: list[Individual]) -> None:
    """Stable in-place ascending sort, index 0 is the best."""
    individuals.sort(key=by_fitness)


def mean_fitness(individuals: Sequence[Individual]) -> float:
    if not individuals:
        return math.nan
    return float(sum(individual.fitness for individual in individuals) / len(individuals))
