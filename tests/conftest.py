"""
zkdlog test fixtures
"""

import asyncio

import pytest

from zkdlog.curve import Scalar, G
from zkdlog.rng import SecureRandom
from zkdlog.statement import SessionContext, Statement, Witness


@pytest.fixture
def rng() -> SecureRandom:
    """Fresh OS-backed random source."""
    return SecureRandom()


@pytest.fixture
def context() -> SessionContext:
    """Session context from the reference scenario."""
    return SessionContext("sid", 1)


@pytest.fixture
def fixed_witness() -> Witness:
    """Deterministic witness for reproducible statements."""
    return Witness(Scalar(0x1D2C3B4A59687766554433221100FFEEDDCCBBAA99887766554433221100AA55))


@pytest.fixture
def witness(rng) -> Witness:
    """Random witness."""
    return Witness.random(rng)


@pytest.fixture
def statement(witness) -> Statement:
    """Honest statement for the random witness."""
    return Statement.from_witness(witness, G)


@pytest.fixture
def async_runner():
    """Helper for running async functions in tests."""
    def runner(coro):
        loop = asyncio.new_event_loop()
        try:
            return loop.run_until_complete(coro)
        finally:
            loop.close()
    return runner
