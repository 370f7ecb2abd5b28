"""Deterministic RNG container handing out independent numpy generators."""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass, field

import numpy as np


@dataclass
class DeterministicRNG:
    """Owns named RNG streams without touching global random state.

    A ``None`` seed draws one from a high-entropy source; the drawn value is
    kept on ``seed`` so a run can be reproduced.
    """

    seed: int | None = None
    _streams: dict[str, np.random.Generator] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.seed is None:
            self.seed = secrets.randbits(63)
        self.seed = int(self.seed)
        self._sequence = np.random.SeedSequence(self.seed)

    def stream(self, name: str) -> np.random.Generator:
        """Return independent deterministic stream by name."""
        if name not in self._streams:
            # Stable cross-process derivation instead of built-in hash().
            digest = hashlib.sha256(f"{self.seed}:{name}".encode("utf-8")).digest()
            derived_seed = int.from_bytes(digest[:8], byteorder="big", signed=False)
            self._streams[name] = np.random.default_rng(derived_seed)
        return self._streams[name]

    def spawn(self, count: int) -> list[np.random.Generator]:
        """Return ``count`` fresh generators, one per concurrent task."""
        return [np.random.default_rng(child) for child in self._sequence.spawn(count)]
