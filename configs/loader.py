"""Configuration loading and validation utilities for breaker runs."""

from __future__ import annotations

import json
import string
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from cipher.errors import InvalidParameterError


_REQUIRED_KEYS: tuple[str, ...] = (
    "population_size",
    "generations",
    "mutation_chance",
    "max_genes_to_mutate",
    "threshold_fitness",
)

DEFAULT_ALPHABET = string.ascii_uppercase


@dataclass(frozen=True)
class BreakerConfig:
    """Validated breaker configuration container.

    Provides typed field access for the search parameters and dictionary-style
    access for optional settings such as ``quadgrams`` or ``max_workers``.
    """

    population_size: int
    generations: int
    mutation_chance: float
    max_genes_to_mutate: int
    threshold_fitness: float
    alphabet: str = DEFAULT_ALPHABET
    seed: int | None = None
    extras: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a search field first, then an optional setting from ``extras``."""
        if hasattr(self, key):
            return getattr(self, key)
        return self.extras.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        """Return a full dictionary view of the configuration."""
        payload = {
            "population_size": self.population_size,
            "generations": self.generations,
            "mutation_chance": self.mutation_chance,
            "max_genes_to_mutate": self.max_genes_to_mutate,
            "threshold_fitness": self.threshold_fitness,
            "alphabet": self.alphabet,
            "seed": self.seed,
        }
        payload.update(self.extras)
        return payload


class ConfigLoader:
    """Load and validate breaker configuration files (YAML or JSON)."""

    @staticmethod
    def load(path: str | Path) -> BreakerConfig:
        """Load a single breaker config from ``path``.

        Args:
            path: Path to a YAML or JSON config file.

        Returns:
            A validated ``BreakerConfig`` instance.
        """
        payload = _read_config_payload(path)
        if not isinstance(payload, Mapping):
            raise ValueError("Config file must contain a mapping object.")
        return build_config(payload)


def _read_config_payload(path: str | Path) -> Any:
    """Read raw config payload from JSON or YAML file."""
    config_path = Path(path)
    suffix = config_path.suffix.lower()
    content = config_path.read_text(encoding="utf-8")

    if suffix == ".json":
        return json.loads(content)
    if suffix in {".yaml", ".yml"}:
        return yaml.safe_load(content)
    raise ValueError(f"Unsupported config extension: {suffix}")


def build_config(payload: Mapping[str, Any]) -> BreakerConfig:
    """Validate raw mapping and build ``BreakerConfig``."""
    missing = [key for key in _REQUIRED_KEYS if key not in payload]
    if missing:
        raise ValueError(f"Missing required config keys: {', '.join(missing)}")

    alphabet = str(payload.get("alphabet") or DEFAULT_ALPHABET).upper()
    seed = payload.get("seed")

    config = BreakerConfig(
        population_size=int(payload["population_size"]),
        generations=int(payload["generations"]),
        mutation_chance=float(payload["mutation_chance"]),
        max_genes_to_mutate=int(payload["max_genes_to_mutate"]),
        threshold_fitness=float(payload["threshold_fitness"]),
        alphabet=alphabet,
        seed=None if seed is None else int(seed),
        extras={k: v for k, v in payload.items() if k not in _REQUIRED_KEYS and k not in {"alphabet", "seed"}},
    )
    validate_config(config)
    return config


def validate_config(config: BreakerConfig) -> None:
    """Raise ``InvalidParameterError`` for any out-of-range search parameter."""
    alphabet_length = len(config.alphabet)
    if len(set(config.alphabet)) != alphabet_length or alphabet_length == 0:
        raise InvalidParameterError("alphabet", "must be a non-empty string of distinct symbols")
    if config.population_size <= 0:
        raise InvalidParameterError("population_size", "must be > 0")
    if config.generations <= 0:
        raise InvalidParameterError("generations", "must be > 0")
    if not 0.0 <= config.mutation_chance <= 1.0:
        raise InvalidParameterError("mutation_chance", "must be in [0.0, 1.0]")
    if not 0 < config.max_genes_to_mutate <= alphabet_length:
        raise InvalidParameterError("max_genes_to_mutate", f"must be in (0, {alphabet_length}]")
    if not config.threshold_fitness >= 0.0:
        raise InvalidParameterError("threshold_fitness", "must be >= 0")
