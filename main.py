"""Component wiring shared by the CLI and desktop entry points."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from cipher.alphabet import Alphabet
from configs.loader import BreakerConfig, ConfigLoader
from core.session import CipherSession
from data.logger import BreakLogger
from evolution.breaker import ProgressSink
from fitness.quadgrams import QuadgramDataset, QuadgramFitness

LOGGER = logging.getLogger(__name__)


def load_fitness(alphabet: Alphabet, quadgrams_path: str | Path) -> QuadgramFitness:
    """Load a quadgram dataset file into a fitness provider."""
    dataset = QuadgramDataset.from_file(alphabet, quadgrams_path)
    return QuadgramFitness(dataset)


def build_session(config: BreakerConfig, quadgrams_path: str | Path | None = None) -> CipherSession:
    """Build a session from configuration; the dataset is optional for encode/decode."""
    alphabet = Alphabet(config.alphabet)
    path = quadgrams_path or config.get("quadgrams")
    fitness = load_fitness(alphabet, path) if path else None
    max_workers = config.get("max_workers")
    return CipherSession(
        alphabet,
        fitness=fitness,
        max_workers=int(max_workers) if max_workers else None,
        seed=config.seed,
    )


def run_break(
    session: CipherSession,
    config: BreakerConfig,
    text: str,
    logger: BreakLogger | None = None,
    progress: ProgressSink | None = None,
) -> tuple[str, str | None]:
    """Break ``text`` synchronously; return the plaintext and the logged run id."""
    breaker = session.create_breaker(text)
    run_id: str | None = None
    observer = None
    if logger is not None:
        run_id = logger.start_run(config.to_dict(), seed=session.rng.seed, metadata={"text_length": breaker.text_length})
        observer = logger.observer(run_id)

    plaintext = breaker.break_cipher(
        population_size=config.population_size,
        generations_number=config.generations,
        mutation_chance=config.mutation_chance,
        max_genes_to_mutate=config.max_genes_to_mutate,
        threshold_fitness=config.threshold_fitness,
        progress=progress,
        observer=observer,
    )
    if logger is not None and run_id is not None and breaker.last_summary is not None:
        logger.finish_run(run_id, breaker.last_summary)
    return plaintext, run_id


def main(config_path: str = "configs/default_breaker.yaml", quadgrams_path: str | None = None) -> int:
    """Break ciphertext read from stdin using ``config_path``; return an exit code."""
    logging.basicConfig(level=logging.INFO)
    config = ConfigLoader.load(config_path)
    try:
        session = build_session(config, quadgrams_path=quadgrams_path)
    except (OSError, ValueError) as exc:
        LOGGER.error("Cannot load quadgram dataset: %s", exc)
        return 2
    try:
        if session.fitness is None:
            LOGGER.error("No quadgram dataset configured; set `quadgrams` in %s", config_path)
            return 2
        plaintext, _ = run_break(session, config, sys.stdin.read(), progress=print)
    finally:
        session.close()
    print(plaintext)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
