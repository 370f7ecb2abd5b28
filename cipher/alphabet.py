"""Ordered symbol set with stable byte-sized indices."""

from __future__ import annotations

import string
from typing import Iterable, Iterator

MAX_ALPHABET_LENGTH = 256


class Alphabet:
    """Bijection between uppercase symbols and indices ``0..len-1``.

    Symbols are uppercased on construction; lookups uppercase the queried
    character, so membership is case-insensitive.
    """

    def __init__(self, symbols: Iterable[str]) -> None:
        normalized = [str(symbol).upper() for symbol in symbols]
        if not normalized:
            raise ValueError("Alphabet must contain at least one symbol.")
        if len(normalized) > MAX_ALPHABET_LENGTH:
            raise ValueError(f"Alphabet must be no longer than {MAX_ALPHABET_LENGTH} symbols.")
        for symbol in normalized:
            if len(symbol) != 1:
                raise ValueError(f"Alphabet symbols must be single characters, got {symbol!r}.")

        self._symbols: tuple[str, ...] = tuple(normalized)
        self._index_by_symbol: dict[str, int] = {}
        for index, symbol in enumerate(self._symbols):
            if symbol in self._index_by_symbol:
                raise ValueError(f"Duplicate alphabet symbol {symbol!r} (comparison is case-insensitive).")
            self._index_by_symbol[symbol] = index

    @classmethod
    def english(cls) -> "Alphabet":
        return cls(string.ascii_uppercase)

    @property
    def symbols(self) -> tuple[str, ...]:
        return self._symbols

    def index_of(self, symbol: str) -> int | None:
        """Return the index of ``symbol`` (case-insensitive) or ``None``."""
        return self._index_by_symbol.get(symbol.upper())

    def symbol_at(self, index: int) -> str:
        return self._symbols[index]

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and symbol.upper() in self._index_by_symbol

    def __len__(self) -> int:
        return len(self._symbols)

    def __iter__(self) -> Iterator[str]:
        return iter(self._symbols)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Alphabet):
            return NotImplemented
        return self._symbols == other._symbols

    def __hash__(self) -> int:
        return hash(self._symbols)

    def __str__(self) -> str:
        return "".join(self._symbols)

    def __repr__(self) -> str:
        return f"Alphabet({str(self)!r})"
