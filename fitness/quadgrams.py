"""Quadgram frequency statistics and the fitness function built on them."""

from __future__ import annotations

import logging
import math
from pathlib import Path

import numpy as np

from cipher.alphabet import Alphabet
from fitness.base import FitnessProvider

LOGGER = logging.getLogger(__name__)

GRAM_LENGTH = 4
SHORT_TEXT_SCORE = 0.0
_FLOOR_COUNT = 0.01
# 4M float64 entries (32 MB) covers alphabets of up to 45 symbols.
DENSE_TABLE_LIMIT = 1 << 22


class QuadgramDataset:
    """Quadgram counts keyed by an alphabet."""

    def __init__(self, alphabet: Alphabet) -> None:
        self.alphabet = alphabet
        self.counts: dict[str, int] = {}

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def add(self, gram: str, count: int) -> bool:
        """Accumulate ``count`` for ``gram``; return False if the gram is unusable."""
        gram = gram.upper()
        if len(gram) != GRAM_LENGTH or count <= 0:
            return False
        if any(symbol not in self.alphabet for symbol in gram):
            return False
        self.counts[gram] = self.counts.get(gram, 0) + int(count)
        return True

    @classmethod
    def from_file(cls, alphabet: Alphabet, path: str | Path) -> "QuadgramDataset":
        """Parse ``GRAM COUNT`` lines; comments (``#``) and blank lines are skipped."""
        dataset_path = Path(path)
        dataset = cls(alphabet)
        skipped = 0
        with dataset_path.open("r", encoding="utf-8") as handle:
            for line_number, raw_line in enumerate(handle, start=1):
                line = raw_line.strip()
                if not line or line.startswith("#"):
                    continue
                parts = line.split()
                if len(parts) != 2:
                    skipped += 1
                    continue
                try:
                    count = int(parts[1])
                except ValueError:
                    LOGGER.debug("Skipping line %d of %s: bad count %r", line_number, dataset_path, parts[1])
                    skipped += 1
                    continue
                if not dataset.add(parts[0], count):
                    skipped += 1

        if not dataset.counts:
            raise ValueError(f"No usable quadgrams in dataset file {dataset_path}")
        LOGGER.info("Loaded %d quadgrams from %s (%d lines skipped)", len(dataset.counts), dataset_path, skipped)
        return dataset

    @classmethod
    def from_text(cls, alphabet: Alphabet, corpus: str) -> "QuadgramDataset":
        """Count overlapping quadgrams of the alphabet characters in ``corpus``."""
        dataset = cls(alphabet)
        letters = "".join(char.upper() for char in corpus if char in alphabet)
        for start in range(len(letters) - GRAM_LENGTH + 1):
            dataset.add(letters[start : start + GRAM_LENGTH], 1)
        if not dataset.counts:
            raise ValueError("Corpus is too short to contain a single quadgram.")
        return dataset


class QuadgramFitness(FitnessProvider):
    """Mean negative log10 probability of overlapping quadgrams.

    Small alphabets get a dense table with ``alphabet_length ** 4`` entries
    indexed by gram code. Once that would exceed ``dense_limit`` entries,
    only the observed grams are kept as sorted codes and looked up with
    ``np.searchsorted``. Both forms are read-only after construction, so one
    instance is shared by all evaluation threads.
    """

    def __init__(self, dataset: QuadgramDataset, dense_limit: int = DENSE_TABLE_LIMIT) -> None:
        total = dataset.total
        if total <= 0:
            raise ValueError("Quadgram dataset is empty.")

        self.alphabet_length = len(dataset.alphabet)
        self.floor = -math.log10(_FLOOR_COUNT / total)

        codes = np.fromiter(
            (self._gram_index(dataset.alphabet, gram) for gram in dataset.counts),
            dtype=np.int64,
            count=len(dataset.counts),
        )
        scores = -np.log10(np.fromiter(dataset.counts.values(), dtype=np.float64, count=len(dataset.counts)) / total)

        self.dense = self.alphabet_length**GRAM_LENGTH <= dense_limit
        if self.dense:
            table = np.full(self.alphabet_length**GRAM_LENGTH, self.floor, dtype=np.float64)
            table[codes] = scores
            table.setflags(write=False)
            self._table = table
        else:
            order = np.argsort(codes)
            self._codes = codes[order]
            self._scores = scores[order]
            self._codes.setflags(write=False)
            self._scores.setflags(write=False)
        LOGGER.debug(
            "Quadgram table for %d symbols: %s, %d grams",
            self.alphabet_length,
            "dense" if self.dense else "sparse",
            len(codes),
        )

    def _gram_index(self, alphabet: Alphabet, gram: str) -> int:
        index = 0
        for symbol in gram:
            index = index * self.alphabet_length + int(alphabet.index_of(symbol))
        return index

    def score(self, buffer: np.ndarray, length: int | None = None) -> float:
        text = buffer if length is None else buffer[:length]
        windows = len(text) - GRAM_LENGTH + 1
        if windows <= 0:
            return SHORT_TEXT_SCORE

        values = text.astype(np.int64)
        n = self.alphabet_length
        index = values[:windows] * n
        index += values[1 : windows + 1]
        index *= n
        index += values[2 : windows + 2]
        index *= n
        index += values[3 : windows + 3]
        if self.dense:
            return float(self._table[index].mean())

        slots = np.searchsorted(self._codes, index)
        np.minimum(slots, len(self._codes) - 1, out=slots)
        found = self._codes[slots] == index
        return float(np.where(found, self._scores[slots], self.floor).mean())
