"""Tests for quadgram dataset loading and fitness scoring."""

from __future__ import annotations

import numpy as np
import pytest

from cipher.alphabet import Alphabet
from cipher.machine import SubstitutionCipherMachine
from fitness.quadgrams import SHORT_TEXT_SCORE, QuadgramDataset, QuadgramFitness

CORPUS = (
    "It was the best of times, it was the worst of times, it was the age of wisdom, "
    "it was the age of foolishness, it was the epoch of belief, it was the epoch of "
    "incredulity, it was the season of light, it was the season of darkness, it was "
    "the spring of hope, it was the winter of despair."
)


def test_from_file_skips_bad_rows_and_sums_duplicates(tmp_path) -> None:
    path = tmp_path / "quadgrams.txt"
    path.write_text(
        "# header\n"
        "TION 100\n"
        "tion 5\n"
        "\n"
        "ABC 3\n"
        "AB1C 3\n"
        "THER notanumber\n"
        "NTHE 40\n",
        encoding="utf-8",
    )

    dataset = QuadgramDataset.from_file(Alphabet.english(), path)

    assert dataset.counts == {"TION": 105, "NTHE": 40}
    assert dataset.total == 145


def test_from_file_without_usable_rows_raises(tmp_path) -> None:
    path = tmp_path / "empty.txt"
    path.write_text("# nothing here\n", encoding="utf-8")

    with pytest.raises(ValueError, match="No usable quadgrams"):
        QuadgramDataset.from_file(Alphabet.english(), path)


def test_english_scores_better_than_shuffled_text() -> None:
    alphabet = Alphabet.english()
    machine = SubstitutionCipherMachine(alphabet)
    fitness = QuadgramFitness(QuadgramDataset.from_text(alphabet, CORPUS))

    english = machine.clear("it was the age of wisdom it was the season of light")
    shuffled = np.random.default_rng(0).permutation(english)

    assert fitness.score(english) < fitness.score(shuffled)


def test_score_respects_length_and_short_text() -> None:
    alphabet = Alphabet.english()
    machine = SubstitutionCipherMachine(alphabet)
    fitness = QuadgramFitness(QuadgramDataset.from_text(alphabet, CORPUS))

    text = machine.clear("the season of light")
    padded = np.concatenate([text, np.full(20, 25, dtype=np.uint8)])

    assert fitness.score(padded, len(text)) == fitness.score(text)
    assert fitness.score(machine.clear("abc")) == SHORT_TEXT_SCORE
    assert fitness.score(text) > 0.0


def test_unseen_quadgrams_get_floor_score() -> None:
    alphabet = Alphabet.english()
    machine = SubstitutionCipherMachine(alphabet)
    dataset = QuadgramDataset(alphabet)
    dataset.add("ABCD", 10)
    fitness = QuadgramFitness(dataset)

    assert fitness.score(machine.clear("ZZZZ")) == pytest.approx(fitness.floor)
    assert fitness.score(machine.clear("ABCD")) == pytest.approx(0.0)


def test_sparse_table_matches_dense_scores() -> None:
    alphabet = Alphabet.english()
    machine = SubstitutionCipherMachine(alphabet)
    dataset = QuadgramDataset.from_text(alphabet, CORPUS)
    dense = QuadgramFitness(dataset)
    sparse = QuadgramFitness(dataset, dense_limit=0)

    assert dense.dense
    assert not sparse.dense
    for text in ("it was the age of wisdom", "zzzz qqqq xxxx", "spring of hope"):
        buffer = machine.clear(text)
        assert sparse.score(buffer) == pytest.approx(dense.score(buffer))


def test_full_byte_alphabet_uses_sparse_table() -> None:
    symbols = [chr(0x4E00 + offset) for offset in range(256)]
    alphabet = Alphabet(symbols)
    machine = SubstitutionCipherMachine(alphabet)
    dataset = QuadgramDataset(alphabet)
    dataset.add("".join(symbols[252:256]), 9)
    dataset.add("".join(symbols[0:4]), 1)

    fitness = QuadgramFitness(dataset)

    assert not fitness.dense
    assert fitness.score(machine.text_to_indices("".join(symbols[252:256]))) == pytest.approx(-np.log10(0.9))
    assert fitness.score(machine.text_to_indices("".join(symbols[100:104]))) == pytest.approx(fitness.floor)
    assert fitness.score(machine.text_to_indices("".join(symbols[0:5]))) == pytest.approx(
        (-np.log10(0.1) + fitness.floor) / 2
    )
