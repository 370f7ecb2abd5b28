"""Genetic operators over permutation keys.

All operators take an explicit ``numpy.random.Generator`` and never touch
global random state. Every operator maps permutations to permutations.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from evolution.individual import Individual


def rank_weights(population_size: int) -> np.ndarray:
    """Weight ``population_size - r`` for rank ``r`` (0 is the best)."""
    return np.arange(population_size, 0, -1, dtype=np.float64)


def select_parents(
    generation: Sequence[Individual],
    cumulative_weights: np.ndarray,
    rng: np.random.Generator,
) -> tuple[Individual, Individual]:
    """Draw two parents by rank weight, resampling the second on collision.

    A single-individual generation pairs the individual with itself.
    """
    first = _draw_rank(cumulative_weights, rng)
    second = first
    if len(generation) > 1:
        while second == first:
            second = _draw_rank(cumulative_weights, rng)
    return generation[first], generation[second]


def _draw_rank(cumulative_weights: np.ndarray, rng: np.random.Generator) -> int:
    target = rng.random() * cumulative_weights[-1]
    rank = int(np.searchsorted(cumulative_weights, target, side="right"))
    return min(rank, len(cumulative_weights) - 1)


def better_bias(better_fitness: float, worse_fitness: float) -> float:
    """Chance to inherit the better parent's gene when both are free."""
    total = better_fitness + worse_fitness
    if total <= 0.0:
        return 0.5
    return worse_fitness / total


def crossover(
    first: Individual,
    second: Individual,
    first_child: Individual,
    second_child: Individual,
    used: np.ndarray,
    rng: np.random.Generator,
) -> None:
    """Fill two child keys from one parent pair.

    ``used`` is an all-False boolean scratch buffer of alphabet length; it is
    left dirty on return.
    """
    if first.fitness < second.fitness:
        better, worse = first, second
    else:
        better, worse = second, first
    bias = better_bias(better.fitness, worse.fitness)

    better_genes = better.key.tolist()
    worse_genes = worse.key.tolist()

    _fill_child(first_child.key, better_genes, worse_genes, bias, used, rng)
    used.fill(False)
    _fill_child(second_child.key, better_genes, worse_genes, bias, used, rng)


def _fill_child(
    child_key: np.ndarray,
    better_genes: list[int],
    worse_genes: list[int],
    bias: float,
    used: np.ndarray,
    rng: np.random.Generator,
) -> None:
    left = list(range(len(better_genes)))
    for position, (better_gene, worse_gene) in enumerate(zip(better_genes, worse_genes)):
        better_used = bool(used[better_gene])
        worse_used = bool(used[worse_gene])

        if better_used != worse_used:
            value = worse_gene if better_used else better_gene
        elif not better_used:
            value = better_gene if rng.random() < bias else worse_gene
        else:
            value = left[int(rng.integers(len(left)))]

        child_key[position] = value
        used[value] = True
        left.remove(value)


def mutate(key: np.ndarray, swaps: int, rng: np.random.Generator) -> None:
    """Apply ``swaps`` random transpositions of two distinct positions."""
    length = len(key)
    if length < 2:
        return
    for _ in range(swaps):
        a = int(rng.integers(length))
        b = a
        while b == a:
            b = int(rng.integers(length))
        key[a], key[b] = key[b], key[a]


def mutation(
    children: Sequence[Individual],
    mutation_chance: float,
    max_genes_to_mutate: int,
    rng: np.random.Generator,
) -> int:
    """Mutate each child with ``mutation_chance``; return how many were mutated."""
    mutated = 0
    for child in children:
        if rng.random() < mutation_chance:
            swaps = int(rng.integers(1, max_genes_to_mutate)) if max_genes_to_mutate > 1 else 1
            mutate(child.key, swaps, rng)
            mutated += 1
    return mutated
