"""
Public statement, private witness and session context of a DLOG proof.

A proof only means something relative to the exact
``(SessionContext, Statement)`` it was produced for.  None of these
objects carries identity beyond its field values, and none is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .curve import Scalar, Point, G
from .errors import InvalidInputError
from .hash import MAX_PARTY_ID, encode_session_id
from .rng import SecureRandom


@dataclass(frozen=True)
class SessionContext:
    """
    Domain-separation tag binding a proof to one protocol run and party.

    Any "already used" bookkeeping for a context belongs to the calling
    protocol, not here.
    """

    session_id: str
    party_id: int

    def __post_init__(self) -> None:
        if not isinstance(self.session_id, str) or not self.session_id:
            raise InvalidInputError("session id must be a non-empty string")
        encode_session_id(self.session_id)
        if (not isinstance(self.party_id, int)
                or isinstance(self.party_id, bool)
                or not 0 <= self.party_id <= MAX_PARTY_ID):
            raise InvalidInputError(
                f"party id must be an unsigned 64-bit int, got {self.party_id!r}")


@dataclass(frozen=True)
class Witness:
    """The secret scalar  x.  Never transmitted."""

    secret: Scalar = field(repr=False)

    @classmethod
    def random(cls, rng: Optional[SecureRandom] = None) -> Witness:
        return cls(secret=(rng or SecureRandom()).random_scalar())

    def __repr__(self) -> str:
        return "Witness(<redacted>)"


@dataclass(frozen=True)
class Statement:
    """Public claim  public = x · base."""

    base: Point
    public: Point

    @classmethod
    def from_witness(cls, witness: Witness, base: Point = G) -> Statement:
        return cls(base=base, public=witness.secret * base)

    def holds_for(self, witness: Witness) -> bool:
        """Check the relation directly (prover-side sanity check)."""
        return witness.secret * self.base == self.public
