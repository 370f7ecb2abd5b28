"""Host-side session state shared by the CLI and the desktop front end."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

from cipher.alphabet import Alphabet
from cipher.errors import InvalidKeyError, SymbolNotInAlphabetError
from cipher.machine import SubstitutionCipherMachine
from configs.loader import BreakerConfig
from core.deterministic_rng import DeterministicRNG
from evolution.breaker import GenerationStats, ProgressSink, SubstitutionCipherBreaker
from fitness.base import FitnessProvider

LOGGER = logging.getLogger(__name__)


class CipherSession:
    """Owns the alphabet, cipher machine, fitness provider and job gate.

    At most one job runs at a time. ``try_submit`` hands the job to a
    single background worker and returns its ``Future``; while a job is in
    flight further requests are dropped (``None`` is returned), not queued.
    """

    def __init__(
        self,
        alphabet: Alphabet,
        fitness: FitnessProvider | None = None,
        max_workers: int | None = None,
        seed: int | None = None,
    ) -> None:
        self.alphabet = alphabet
        self.machine = SubstitutionCipherMachine(alphabet)
        self.fitness = fitness
        self.max_workers = max_workers
        self.rng = DeterministicRNG(seed)

        self._gate = threading.Semaphore(1)
        self._busy = threading.Event()
        self._stop_event = threading.Event()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="cipher-job")

    @property
    def busy(self) -> bool:
        return self._busy.is_set()

    def validate_key_text(self, key_text: str) -> str:
        """Normalize user key text and check it is a permutation of the alphabet.

        Characters are uppercased and repeated characters dropped before the
        check, so the returned key has each symbol exactly once.
        """
        key = "".join(dict.fromkeys(char.upper() for char in key_text))
        for position, symbol in enumerate(key):
            if symbol not in self.alphabet:
                raise SymbolNotInAlphabetError(symbol, position)
        if len(key) != len(self.alphabet):
            raise InvalidKeyError(f"Key must be a permutation of the {len(self.alphabet)}-symbol alphabet.")
        return key

    def random_key_text(self) -> str:
        return self.machine.key_to_text(self.machine.random_key(self.rng.stream("key")))

    def encode(self, text: str, key_text: str) -> str:
        return self.machine.encode_with_ignoring(text, self.validate_key_text(key_text))

    def decode(self, text: str, key_text: str) -> str:
        return self.machine.decode_with_ignoring(text, self.validate_key_text(key_text))

    def create_breaker(self, text: str) -> SubstitutionCipherBreaker:
        if self.fitness is None:
            raise RuntimeError("Session has no fitness provider; load a quadgram dataset first.")
        return SubstitutionCipherBreaker(
            self.alphabet,
            self.fitness,
            text,
            max_workers=self.max_workers,
            rng=DeterministicRNG(int(self.rng.stream("breaker").integers(0, 2**63 - 1))),
        )

    def try_submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future | None:
        """Run ``fn`` in the background unless another job is in flight."""
        if not self._gate.acquire(blocking=False):
            LOGGER.info("Job %s dropped: another job is still running", getattr(fn, "__name__", fn))
            return None
        self._busy.set()

        # Released inside the job so the gate is open before the result is visible.
        def job() -> Any:
            try:
                return fn(*args, **kwargs)
            finally:
                self._release_gate()

        try:
            return self._executor.submit(job)
        except Exception:
            self._release_gate()
            raise

    def submit_encode(self, text: str, key_text: str) -> Future | None:
        key = self.validate_key_text(key_text)
        return self.try_submit(self.machine.encode_with_ignoring, text, key)

    def submit_decode(self, text: str, key_text: str) -> Future | None:
        key = self.validate_key_text(key_text)
        return self.try_submit(self.machine.decode_with_ignoring, text, key)

    def submit_break(
        self,
        text: str,
        config: BreakerConfig,
        progress: ProgressSink | None = None,
        observer: Callable[[GenerationStats], None] | None = None,
    ) -> Future | None:
        """Validate synchronously, then run the search in the background.

        A request made while another job is in flight is dropped before the
        ciphertext is cleared or any search buffers are allocated.
        """
        if self.busy:
            LOGGER.info("Break request dropped: another job is still running")
            return None
        # Any cancel() from here on applies to this job, even before the worker starts it.
        self._stop_event.clear()
        breaker = self.create_breaker(text)
        self._validate_config(breaker, config)
        return self.try_submit(self._run_breaker, breaker, config, progress, observer)

    def cancel(self) -> None:
        """Ask a running search to stop at its next generation boundary."""
        self._stop_event.set()

    def close(self) -> None:
        self.cancel()
        self._executor.shutdown(wait=True)

    def _run_breaker(
        self,
        breaker: SubstitutionCipherBreaker,
        config: BreakerConfig,
        progress: ProgressSink | None,
        observer: Callable[[GenerationStats], None] | None,
    ) -> str:
        return breaker.break_cipher(
            population_size=config.population_size,
            generations_number=config.generations,
            mutation_chance=config.mutation_chance,
            max_genes_to_mutate=config.max_genes_to_mutate,
            threshold_fitness=config.threshold_fitness,
            progress=progress,
            observer=observer,
            should_stop=self._stop_event.is_set,
        )

    @staticmethod
    def _validate_config(breaker: SubstitutionCipherBreaker, config: BreakerConfig) -> None:
        breaker.validate_parameters(
            config.population_size,
            config.generations,
            config.mutation_chance,
            config.max_genes_to_mutate,
            config.threshold_fitness,
        )

    def _release_gate(self) -> None:
        self._busy.clear()
        self._gate.release()
