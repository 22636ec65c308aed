"""
Exception hierarchy for zkdlog.

A failed verification is never an exception: ``verify`` returns
``False``.  Exceptions are reserved for malformed input, a broken
random source, and rendezvous failures in the calling protocol.
"""

from __future__ import annotations


class ZKDlogError(Exception):
    """Base class for all zkdlog errors."""


class InvalidInputError(ZKDlogError, ValueError):
    """Malformed scalar / point bytes or an invalid session context."""


class RandomnessFailure(ZKDlogError):
    """The secure random source is unavailable; proving must abort."""


# ── rendezvous ──────────────────────────────────────────────────────────
class RendezvousError(ZKDlogError):
    """Base class for rendezvous barrier failures."""

    def __init__(self, pair_id: str, message: str) -> None:
        super().__init__(f"{message} (pair id {pair_id!r})")
        self.pair_id = pair_id


class RendezvousTimeout(RendezvousError):
    """No second party arrived in time; retry with a fresh id."""


class RendezvousConflict(RendezvousError):
    """The id already has two parties."""
