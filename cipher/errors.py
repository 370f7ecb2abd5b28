"""Exception taxonomy for cipher and breaker boundaries."""

from __future__ import annotations


class CipherError(ValueError):
    """Base class for rejected cipher inputs."""


class InvalidKeyError(CipherError):
    """Raised when a key is not a permutation of the alphabet indices."""


class SymbolNotInAlphabetError(CipherError):
    """Raised when key text references a character absent from the alphabet."""

    def __init__(self, symbol: str, position: int | None = None) -> None:
        self.symbol = symbol
        self.position = position
        where = f" at position {position}" if position is not None else ""
        super().__init__(f"Symbol {symbol!r}{where} is not in the alphabet.")


class InvalidParameterError(CipherError):
    """Raised when a breaker argument is outside its accepted range."""

    def __init__(self, name: str, message: str) -> None:
        self.name = name
        super().__init__(f"{name} {message}")
