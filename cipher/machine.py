"""Substitution cipher engine over alphabet-index buffers."""

from __future__ import annotations

from typing import Mapping, Sequence, Union

import numpy as np

from cipher.alphabet import Alphabet
from cipher.errors import InvalidKeyError, SymbolNotInAlphabetError

INDEX_DTYPE = np.uint8

KeyLike = Union[str, Sequence[int], np.ndarray]


class SubstitutionCipherMachine:
    """Encode and decode text under a permutation key.

    Text is handled in two forms: the raw string, and its "cleared" form, a
    ``uint8`` buffer of alphabet indices. Characters outside the alphabet are
    either dropped (``*_with_clearing``) or remembered by position and put
    back after substitution (``*_with_ignoring``).

    A key maps plain indices to cipher indices: ``key[plain] = cipher``.
    """

    def __init__(self, alphabet: Alphabet) -> None:
        if alphabet is None:
            raise ValueError("alphabet must not be None")
        self.alphabet = alphabet
        self.alphabet_length = len(alphabet)
        self._symbol_table = np.array(alphabet.symbols, dtype="<U1")
        self._positions = np.arange(self.alphabet_length, dtype=INDEX_DTYPE)

    # ------------------------------------------------------------------
    # String-level compositions
    # ------------------------------------------------------------------
    def encode_with_ignoring(self, source_text: str, key: KeyLike) -> str:
        key_buffer = self._coerce_key(key)
        text, symbols = self.clear_with_symbols(source_text)
        return self.repair(self.encode(text, key_buffer), symbols)

    def decode_with_ignoring(self, encoded_text: str, key: KeyLike) -> str:
        key_buffer = self._coerce_key(key)
        text, symbols = self.clear_with_symbols(encoded_text)
        return self.repair(self.decode(text, key_buffer), symbols)

    def encode_with_clearing(self, source_text: str, key: KeyLike) -> str:
        key_buffer = self._coerce_key(key)
        return self.indices_to_text(self.encode(self.clear(source_text), key_buffer))

    def decode_with_clearing(self, encoded_text: str, key: KeyLike) -> str:
        key_buffer = self._coerce_key(key)
        return self.indices_to_text(self.decode(self.clear(encoded_text), key_buffer))

    # ------------------------------------------------------------------
    # Buffer-level operations
    # ------------------------------------------------------------------
    def encode(self, source: np.ndarray, key: np.ndarray) -> np.ndarray:
        self.validate_key(key)
        encoded = np.empty(len(source), dtype=INDEX_DTYPE)
        self.encode_into(encoded, source, key)
        return encoded

    def decode(self, encoded: np.ndarray, key: np.ndarray) -> np.ndarray:
        self.validate_key(key)
        decoded = np.empty(len(encoded), dtype=INDEX_DTYPE)
        subkey = np.empty(self.alphabet_length, dtype=INDEX_DTYPE)
        self.decode_into(decoded, subkey, encoded, key)
        return decoded

    def encode_into(self, out: np.ndarray, source: np.ndarray, key: np.ndarray) -> np.ndarray:
        """Write ``key[source[i]]`` into ``out``; ``key`` is not validated."""
        length = len(source)
        np.take(key, source, out=out[:length], mode="clip")
        return out

    def decode_into(
        self,
        out: np.ndarray,
        subkey_buffer: np.ndarray,
        encoded: np.ndarray,
        key: np.ndarray,
    ) -> np.ndarray:
        """Decode into caller-owned buffers without allocating.

        ``subkey_buffer`` receives the inverse permutation
        (``subkey[key[x]] = x``) and is then used as the lookup table.
        ``key`` is not validated.
        """
        length = len(encoded)
        subkey = subkey_buffer[: self.alphabet_length]
        subkey[key[: self.alphabet_length]] = self._positions
        np.take(subkey, encoded, out=out[:length], mode="clip")
        return out

    # ------------------------------------------------------------------
    # Normalization
    # ------------------------------------------------------------------
    def clear(self, text: str) -> np.ndarray:
        """Return the indices of alphabet characters in ``text``, others dropped."""
        indices = self.alphabet.index_of
        cleared = [index for index in map(indices, text) if index is not None]
        return np.array(cleared, dtype=INDEX_DTYPE)

    def clear_with_symbols(self, text: str) -> tuple[np.ndarray, dict[int, str]]:
        """Split ``text`` into alphabet indices and position-keyed foreign characters.

        Foreign characters are stored uppercased; letter case of the source is
        not recoverable.
        """
        cleared: list[int] = []
        symbols: dict[int, str] = {}
        for position, char in enumerate(text):
            upper = char.upper()
            if len(upper) != 1:
                upper = char
            index = self.alphabet.index_of(upper)
            if index is None:
                symbols[position] = upper
            else:
                cleared.append(index)
        return np.array(cleared, dtype=INDEX_DTYPE), symbols

    def repair(self, indices: np.ndarray, symbols: Mapping[int, str]) -> str:
        """Render ``indices`` and reinsert ``symbols`` at their original offsets."""
        rendered = self.indices_to_text(indices)
        total = len(rendered) + len(symbols)
        for position in symbols:
            if not 0 <= position < total:
                raise ValueError(f"External symbol position {position} outside text of length {total}.")

        letters = iter(rendered)
        return "".join(symbols[position] if position in symbols else next(letters) for position in range(total))

    # ------------------------------------------------------------------
    # Conversions and keys
    # ------------------------------------------------------------------
    def indices_to_text(self, indices: np.ndarray, length: int | None = None) -> str:
        view = np.asarray(indices)[: len(indices) if length is None else length]
        return "".join(self._symbol_table[view].tolist())

    def text_to_indices(self, text: str) -> np.ndarray:
        """Strict conversion: every character must belong to the alphabet."""
        converted = np.empty(len(text), dtype=INDEX_DTYPE)
        for position, char in enumerate(text):
            index = self.alphabet.index_of(char)
            if index is None:
                raise SymbolNotInAlphabetError(char, position)
            converted[position] = index
        return converted

    def parse_key(self, key_text: str) -> np.ndarray:
        key = self.text_to_indices(key_text)
        self.validate_key(key)
        return key

    def validate_key(self, key: Sequence[int] | np.ndarray) -> None:
        values = np.asarray(key)
        if values.ndim != 1 or len(values) != self.alphabet_length:
            raise InvalidKeyError(
                f"Key must contain exactly {self.alphabet_length} entries, got {values.size}."
            )
        if not np.issubdtype(values.dtype, np.integer):
            raise InvalidKeyError("Key entries must be integer alphabet indices.")
        if int(values.min()) < 0 or int(values.max()) >= self.alphabet_length:
            raise InvalidKeyError("Key entries must lie in [0, alphabet length).")
        if len(np.unique(values)) != self.alphabet_length:
            raise InvalidKeyError("Key must be a permutation: every index exactly once.")

    def random_key(self, rng: np.random.Generator) -> np.ndarray:
        return rng.permutation(self.alphabet_length).astype(INDEX_DTYPE)

    def key_to_text(self, key: np.ndarray) -> str:
        return self.indices_to_text(key, self.alphabet_length)

    def _coerce_key(self, key: KeyLike) -> np.ndarray:
        if isinstance(key, str):
            return self.parse_key(key)
        self.validate_key(key)
        return np.asarray(key, dtype=INDEX_DTYPE)
