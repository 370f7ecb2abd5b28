"""Tests for the genetic-algorithm substitution cipher breaker."""

from __future__ import annotations

import numpy as np
import pytest

from cipher.alphabet import Alphabet
from cipher.errors import InvalidParameterError
from core.deterministic_rng import DeterministicRNG
from evolution.breaker import GenerationStats, SubstitutionCipherBreaker
from fitness.base import FitnessProvider


class HammingFitness(FitnessProvider):
    """Counts positions where the candidate differs from a known plaintext."""

    def __init__(self, alphabet: Alphabet, plaintext: str) -> None:
        self.target = np.array([alphabet.index_of(char) for char in plaintext], dtype=np.uint8)

    def score(self, buffer: np.ndarray, length: int | None = None) -> float:
        text = buffer if length is None else buffer[:length]
        return float(np.count_nonzero(text != self.target))


class FailingFitness(FitnessProvider):
    """Scores the ciphertext once, then fails on the first candidate."""

    def __init__(self) -> None:
        self.calls = 0

    def score(self, buffer: np.ndarray, length: int | None = None) -> float:
        self.calls += 1
        if self.calls > 1:
            raise RuntimeError("provider failure")
        return 5.0


def _breaker(fitness: FitnessProvider | None = None, text: str = "KHOOR ZRUOG", seed: int = 1) -> SubstitutionCipherBreaker:
    alphabet = Alphabet.english()
    return SubstitutionCipherBreaker(
        alphabet,
        fitness or HammingFitness(alphabet, "HELLOWORLD"),
        text,
        max_workers=4,
        rng=DeterministicRNG(seed),
    )


def _assert_pools_empty(breaker: SubstitutionCipherBreaker) -> None:
    assert breaker._text_pool.outstanding == 0
    assert breaker._key_pool.outstanding == 0
    assert breaker._marks_pool.outstanding == 0


@pytest.mark.parametrize(
    "overrides",
    [
        {"population_size": 0},
        {"generations_number": 0},
        {"mutation_chance": 1.5},
        {"mutation_chance": -0.1},
        {"max_genes_to_mutate": 0},
        {"max_genes_to_mutate": 27},
        {"threshold_fitness": -1.0},
    ],
)
def test_invalid_parameters_rejected(overrides: dict) -> None:
    params = {
        "population_size": 10,
        "generations_number": 5,
        "mutation_chance": 0.3,
        "max_genes_to_mutate": 4,
        "threshold_fitness": 0.0,
    }
    params.update(overrides)
    breaker = _breaker()

    with pytest.raises(InvalidParameterError):
        breaker.break_cipher(**params)
    _assert_pools_empty(breaker)


def test_fast_path_returns_ciphertext_below_threshold() -> None:
    breaker = _breaker()
    lines: list[str] = []

    result = breaker.break_cipher(10, 5, 0.3, 4, 11.0, progress=lines.append)

    assert result == "KHOOR ZRUOG"
    assert lines == []
    assert breaker.last_summary is not None
    assert breaker.last_summary.generations == 0


def test_breaks_caesar_shift_with_known_plaintext_fitness() -> None:
    breaker = _breaker()
    lines: list[str] = []

    result = breaker.break_cipher(200, 500, 0.3, 4, 0.0, progress=lines.append)

    assert result == "HELLO WORLD"
    assert breaker.last_summary is not None
    assert breaker.last_summary.best_fitness == 0.0
    assert lines[0].startswith("[Gen 1] ")
    assert lines[-1].startswith("[Best key]")
    _assert_pools_empty(breaker)


def test_best_fitness_never_increases() -> None:
    breaker = _breaker(seed=7)
    history: list[GenerationStats] = []

    breaker.break_cipher(20, 30, 0.5, 3, 0.0, observer=history.append)

    assert history
    assert [stats.generation for stats in history] == list(range(1, len(history) + 1))
    best = [stats.best_fitness for stats in history]
    assert all(later <= earlier for earlier, later in zip(best, best[1:]))
    assert all(stats.mean_fitness >= stats.best_fitness for stats in history)


def test_generation_limit_bounds_rounds() -> None:
    breaker = _breaker(seed=3)
    history: list[GenerationStats] = []

    breaker.break_cipher(4, 3, 0.3, 1, 0.0, observer=history.append)

    assert len(history) <= 3
    assert breaker.last_summary is not None
    assert breaker.last_summary.generations == len(history)


def test_population_of_one_runs() -> None:
    breaker = _breaker(seed=2)

    result = breaker.break_cipher(1, 5, 1.0, 2, 0.0)

    assert len(result) == len("KHOOR ZRUOG")
    assert result[5] == " "
    _assert_pools_empty(breaker)


def test_should_stop_ends_search_at_round_boundary() -> None:
    breaker = _breaker(seed=4)
    history: list[GenerationStats] = []

    breaker.break_cipher(
        10,
        100,
        0.3,
        4,
        0.0,
        observer=history.append,
        should_stop=lambda: len(history) >= 2,
    )

    assert len(history) <= 2
    _assert_pools_empty(breaker)


def test_provider_failure_propagates_and_releases_buffers() -> None:
    breaker = _breaker(FailingFitness())

    with pytest.raises(RuntimeError, match="provider failure"):
        breaker.break_cipher(10, 5, 0.3, 4, 0.0)

    _assert_pools_empty(breaker)


def test_same_seed_gives_same_result() -> None:
    first = _breaker(seed=99).break_cipher(30, 10, 0.4, 3, 0.0)
    second = _breaker(seed=99).break_cipher(30, 10, 0.4, 3, 0.0)

    assert first == second
