"""Tests for pooled scratch buffers and the deterministic RNG."""

from __future__ import annotations

import numpy as np
import pytest

from core.buffer_pool import BufferPool, PoolExhaustedError
from core.deterministic_rng import DeterministicRNG


def test_lease_returns_buffer_to_pool() -> None:
    pool = BufferPool(8, depth=2)

    with pool.lease() as buffer:
        assert buffer.shape == (8,)
        assert pool.outstanding == 1

    assert pool.outstanding == 0
    assert pool.idle == 2


def test_lease_returns_buffer_on_error() -> None:
    pool = BufferPool(4)

    with pytest.raises(RuntimeError):
        with pool.lease():
            raise RuntimeError("boom")

    assert pool.outstanding == 0


def test_outstanding_rentals_are_distinct_storage() -> None:
    pool = BufferPool(4, depth=1)

    rented = [pool.rent() for _ in range(3)]
    for index, buffer in enumerate(rented):
        buffer.fill(index)

    assert [int(buffer[0]) for buffer in rented] == [0, 1, 2]
    for buffer in rented:
        pool.give_back(buffer)
    assert pool.idle == 1


def test_bounded_pool_raises_when_exhausted() -> None:
    pool = BufferPool(4, max_outstanding=1)
    first = pool.rent()

    with pytest.raises(PoolExhaustedError):
        pool.rent()

    pool.give_back(first)
    pool.give_back(pool.rent())


def test_give_back_rejects_foreign_buffer() -> None:
    pool = BufferPool(4)

    with pytest.raises(ValueError):
        pool.give_back(np.zeros(4, dtype=np.uint8))


def test_clear_on_return_zeroes_buffer() -> None:
    pool = BufferPool(3, dtype=np.bool_, clear_on_return=True)

    with pool.lease() as marks:
        marks[:] = True

    with pool.lease() as marks:
        assert not marks.any()


def test_rng_streams_are_reproducible() -> None:
    first = DeterministicRNG(11)
    second = DeterministicRNG(11)

    assert first.stream("key").integers(0, 1000) == second.stream("key").integers(0, 1000)
    assert [g.random() for g in first.spawn(3)] == [g.random() for g in second.spawn(3)]


def test_rng_without_seed_records_drawn_seed() -> None:
    rng = DeterministicRNG()

    assert isinstance(rng.seed, int)
    assert DeterministicRNG(rng.seed).stream("x").random() == rng.stream("x").random()
