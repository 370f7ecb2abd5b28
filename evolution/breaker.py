"""Genetic-algorithm key search for monoalphabetic substitution ciphers."""

from __future__ import annotations

import itertools
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable

import numpy as np

from cipher.alphabet import Alphabet
from cipher.errors import InvalidParameterError
from cipher.machine import INDEX_DTYPE, SubstitutionCipherMachine
from core.buffer_pool import BufferPool
from core.deterministic_rng import DeterministicRNG
from evolution.individual import Individual, mean_fitness, sort_by_fitness
from evolution.operators import crossover, mutation, rank_weights, select_parents
from fitness.base import FitnessProvider

LOGGER = logging.getLogger(__name__)

TEXT_POOL_DEPTH = 10
KEY_POOL_DEPTH = 10
MARKS_POOL_DEPTH = 1

ProgressSink = Callable[[str], None]


@dataclass(frozen=True)
class GenerationStats:
    """Per-round record handed to the optional observer."""

    generation: int
    best_fitness: float
    mean_fitness: float


@dataclass(frozen=True)
class BreakSummary:
    """Outcome of one ``break_cipher`` call."""

    generations: int
    elapsed_seconds: float
    average_ms_per_generation: float
    best_fitness: float
    best_key: str


class SubstitutionCipherBreaker:
    """Recovers a substitution key from ciphertext alone.

    One instance owns one ciphertext (cleared once at construction) and the
    scratch pools used while searching. Crossover and mutation run on the
    calling thread; fitness evaluation fans out over a thread pool.
    """

    def __init__(
        self,
        alphabet: Alphabet,
        fitness: FitnessProvider,
        encoded_text: str,
        max_workers: int | None = None,
        rng: DeterministicRNG | None = None,
    ) -> None:
        self.machine = SubstitutionCipherMachine(alphabet)
        self.fitness = fitness
        self.max_workers = max_workers
        self.rng = rng or DeterministicRNG()

        self._text, self._symbols = self.machine.clear_with_symbols(encoded_text)
        self.text_length = len(self._text)
        self.alphabet_length = len(alphabet)

        self._text_pool = BufferPool(self.text_length, INDEX_DTYPE, depth=TEXT_POOL_DEPTH)
        self._key_pool = BufferPool(self.alphabet_length, INDEX_DTYPE, depth=KEY_POOL_DEPTH)
        self._marks_pool = BufferPool(self.alphabet_length, np.bool_, depth=MARKS_POOL_DEPTH, clear_on_return=True)

        self.last_summary: BreakSummary | None = None

    def break_cipher(
        self,
        population_size: int,
        generations_number: int,
        mutation_chance: float,
        max_genes_to_mutate: int,
        threshold_fitness: float,
        progress: ProgressSink | None = None,
        observer: Callable[[GenerationStats], None] | None = None,
        should_stop: Callable[[], bool] | None = None,
    ) -> str:
        """Search for the key and return the decoded text.

        The search ends once the best fitness is at or below
        ``threshold_fitness``, after ``generations_number`` rounds, or when
        ``should_stop`` returns true at a round boundary.

        Raises:
            InvalidParameterError: Any argument outside its range; raised
                before anything is allocated.
        """
        self.validate_parameters(population_size, generations_number, mutation_chance, max_genes_to_mutate, threshold_fitness)
        emit = progress or _discard

        raw_fitness = self.fitness.score(self._text, self.text_length)
        if raw_fitness < threshold_fitness:
            LOGGER.info("Ciphertext already scores %s below threshold %s; skipping search", raw_fitness, threshold_fitness)
            self.last_summary = BreakSummary(0, 0.0, 0.0, raw_fitness, str(self.machine.alphabet))
            return self.machine.repair(self._text, self._symbols)

        init_rng, crossover_rng, mutation_rng = self.rng.spawn(3)
        cumulative_weights = np.cumsum(rank_weights(population_size))

        generation: list[Individual] = []
        children: list[Individual] = []
        best = Individual.rent(self._key_pool)
        started = time.perf_counter()
        rounds = 0
        try:
            with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="fitness") as executor:
                for _ in range(population_size):
                    individual = Individual.rent(self._key_pool)
                    np.copyto(individual.key, self.machine.random_key(init_rng))
                    generation.append(individual)
                self._evaluate_all(executor, generation)
                sort_by_fitness(generation)
                best.copy_from(generation[0])

                for _ in range(2 * population_size):
                    children.append(Individual.rent(self._key_pool))

                while best.fitness > threshold_fitness and rounds < generations_number:
                    if should_stop is not None and should_stop():
                        LOGGER.info("Search stopped by caller after %d generations", rounds)
                        break

                    self._crossover(generation, children, cumulative_weights, crossover_rng)
                    mutation(children, mutation_chance, max_genes_to_mutate, mutation_rng)
                    self._evaluate_all(executor, children)

                    sort_by_fitness(children)
                    for survivor, child in zip(generation, children):
                        survivor.copy_from(child)
                    if generation[0].fitness < best.fitness:
                        best.copy_from(generation[0])

                    rounds += 1
                    emit(f"[Gen {rounds}] {best.fitness}")
                    if observer is not None:
                        observer(GenerationStats(rounds, best.fitness, mean_fitness(generation)))

            sort_by_fitness(generation)
            elapsed = time.perf_counter() - started
            summary = BreakSummary(
                generations=rounds,
                elapsed_seconds=elapsed,
                average_ms_per_generation=elapsed * 1000.0 / max(rounds, 1),
                best_fitness=best.fitness,
                best_key=self.machine.key_to_text(best.key),
            )
            result = self.machine.repair(self.machine.decode(self._text, best.key), self._symbols)
        finally:
            for individual in itertools.chain(generation, children, (best,)):
                individual.release(self._key_pool)

        self.last_summary = summary
        emit("")
        emit(f"[Total generations]   {summary.generations}")
        emit(f"[Total time(sec)]     {summary.elapsed_seconds}")
        emit(f"[Average ms/gen]      {summary.average_ms_per_generation}")
        emit(f"[Best fitness]        {summary.best_fitness}")
        emit(f"[Best key]            {summary.best_key}")
        LOGGER.info(
            "Search finished: %d generations in %.3fs, best fitness %s",
            summary.generations,
            summary.elapsed_seconds,
            summary.best_fitness,
        )
        return result

    def validate_parameters(
        self,
        population_size: int,
        generations_number: int,
        mutation_chance: float,
        max_genes_to_mutate: int,
        threshold_fitness: float,
    ) -> None:
        if population_size <= 0:
            raise InvalidParameterError("population_size", "must be > 0")
        if generations_number <= 0:
            raise InvalidParameterError("generations_number", "must be > 0")
        if not 0.0 <= mutation_chance <= 1.0:
            raise InvalidParameterError("mutation_chance", "must be in [0.0, 1.0]")
        if not 0 < max_genes_to_mutate <= self.alphabet_length:
            raise InvalidParameterError(
                "max_genes_to_mutate", f"must be in (0, {self.alphabet_length}]"
            )
        if not threshold_fitness >= 0.0:
            raise InvalidParameterError("threshold_fitness", "must be >= 0")

    def _crossover(
        self,
        generation: list[Individual],
        children: list[Individual],
        cumulative_weights: np.ndarray,
        rng: np.random.Generator,
    ) -> None:
        with self._marks_pool.lease() as used:
            for index in range(0, len(children), 2):
                first, second = select_parents(generation, cumulative_weights, rng)
                used.fill(False)
                crossover(first, second, children[index], children[index + 1], used, rng)

    def _evaluate_all(self, executor: ThreadPoolExecutor, individuals: list[Individual]) -> None:
        # Consuming the iterator is the barrier and re-raises worker failures.
        for _ in executor.map(self._evaluate, individuals):
            pass

    def _evaluate(self, individual: Individual) -> None:
        with self._text_pool.lease() as text_buffer, self._key_pool.lease() as subkey_buffer:
            self.machine.decode_into(text_buffer, subkey_buffer, self._text, individual.key)
            individual.fitness = self.fitness.score(text_buffer, self.text_length)


def _discard(_line: str) -> None:
    return None
