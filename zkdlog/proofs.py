"""
Non-interactive Schnorr proof of knowledge of a discrete logarithm.

Proves knowledge of  x  such that  Y = x·G  without revealing x, bound
to a session id and a party id.  Made non-interactive via Fiat-Shamir
in the Random Oracle Model.

    prove:   r ←$ Z_q*,   T = r·G,   c = H(sid, pid, [G, Y, T]),
             S = r + c·x  (mod q)
    verify:  S·G  ==  T + c·Y

Completeness:  S·G = r·G + c·x·G = T + c·Y.
Soundness:     a prover without x succeeds with probability ≈ 1/q.
Zero-knowledge: r is uniform and independent of x, so S = r + c·x
reveals nothing about x beyond the relation.

The nonce r must never be reused under the same x: two proofs
(T, S1), (T, S2) with c1 ≠ c2 give  x = (S1 - S2) / (c1 - c2).
Every call to ``prove`` therefore draws a fresh r.

Wire format (65 bytes):  T (33 B compressed, identity = 0x00 × 33)  ‖
S (32 B big-endian).

References
----------
- Schnorr (1989). "Efficient Identification and Signatures for Smart
  Cards."  CRYPTO 1989.
- Fiat, Shamir (1986). "How to Prove Yourself."  CRYPTO 1986.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .curve import Scalar, Point, G, COMPRESSED_BYTES, SCALAR_BYTES
from .errors import InvalidInputError
from .hash import challenge
from .rng import SecureRandom
from .statement import SessionContext, Statement, Witness

logger = logging.getLogger(__name__)

PROOF_BYTES = COMPRESSED_BYTES + SCALAR_BYTES


@dataclass(frozen=True)
class DLogProof:
    """
    Non-interactive proof of knowledge of  x  such that  Y = x·G.

    Transcript: (T, S)  where  T = r·G,  S = r + c·x,
    c = H(sid, pid, [G, Y, T]).
    """

    t: Point
    s: Scalar

    @staticmethod
    def prove(
        session_id: str,
        party_id: int,
        secret: Scalar,
        public: Point,
        base: Point = G,
        rng: Optional[SecureRandom] = None,
    ) -> DLogProof:
        """
        Produce a DLOG proof for  (secret, public = secret·base).

        Parameters
        ----------
        session_id : str
            Non-empty protocol-run identifier.
        party_id : int
            Prover's party index, unsigned 64-bit.
        secret : Scalar
            The witness *x*.  Not checked against *public*; an
            inconsistent pair yields a proof that fails to verify.
        public : Point
            The statement *Y = x·base*.
        base : Point
            Base point *G*, the curve generator by default.
        rng : SecureRandom or None
            Nonce source.  A fresh ``SecureRandom`` when None.

        Raises
        ------
        InvalidInputError
            Empty session id or out-of-range party id.
        RandomnessFailure
            The random source is unavailable.
        """
        ctx = SessionContext(session_id, party_id)
        if rng is None:
            rng = SecureRandom()
        r = rng.random_scalar()
        t = r * base
        c = challenge(ctx.session_id, ctx.party_id, [base, public, t])
        s = r + c * secret
        return DLogProof(t=t, s=s)

    def verify(
        self,
        session_id: str,
        party_id: int,
        public: Point,
        base: Point = G,
    ) -> bool:
        """
        Verify this proof against statement  Y = public.

        Check:  S·G  ==  T + c·Y.  Never raises; any malformed input is
        simply a rejection.
        """
        if not (isinstance(self.t, Point) and isinstance(self.s, Scalar)):
            logger.debug("rejecting proof with malformed components")
            return False
        if not (isinstance(public, Point) and isinstance(base, Point)):
            logger.debug("rejecting proof against malformed statement")
            return False
        if not isinstance(session_id, str) or not session_id:
            logger.debug("rejecting proof with empty or non-str session id")
            return False
        try:
            if self.t.is_inf():
                # T = r·G with r ≠ 0 is never the identity
                logger.debug("rejecting proof with identity commitment")
                return False
            c = challenge(session_id, party_id, [base, public, self.t])
            lhs = self.s * base
            rhs = self.t + (c * public)
            ok = lhs == rhs
        except (InvalidInputError, ValueError, TypeError, AttributeError) as e:
            logger.debug("rejecting proof: %s", e)
            return False
        if not ok:
            logger.debug(
                "DLOG proof mismatch for session %r party %d",
                session_id, party_id,
            )
        return ok

    # ── convenience over the data model ────────────────────────────────
    @classmethod
    def prove_statement(
        cls,
        context: SessionContext,
        statement: Statement,
        witness: Witness,
        rng: Optional[SecureRandom] = None,
    ) -> DLogProof:
        return cls.prove(
            context.session_id, context.party_id,
            witness.secret, statement.public, statement.base, rng,
        )

    def verify_statement(
        self,
        context: SessionContext,
        statement: Statement,
    ) -> bool:
        return self.verify(
            context.session_id, context.party_id,
            statement.public, statement.base,
        )

    # ── wire codec ─────────────────────────────────────────────────────
    def to_bytes(self) -> bytes:
        return self.t.to_bytes_compressed() + self.s.to_bytes()

    @classmethod
    def from_bytes(cls, data: bytes) -> DLogProof:
        """
        Parse untrusted proof bytes.

        Raises ``InvalidInputError`` on a wrong length, an invalid
        point, or  S ≥ q.
        """
        if not isinstance(data, (bytes, bytearray)):
            raise InvalidInputError(
                f"proof must be bytes, got {type(data).__name__}")
        if len(data) != PROOF_BYTES:
            raise InvalidInputError(
                f"proof must be {PROOF_BYTES} bytes, got {len(data)}")
        t = Point.from_bytes(bytes(data[:COMPRESSED_BYTES]))
        s = Scalar.from_bytes(bytes(data[COMPRESSED_BYTES:]))
        return cls(t=t, s=s)


# ── functional API ──────────────────────────────────────────────────────

def prove(
    session_id: str,
    party_id: int,
    x: Scalar,
    y: Point,
    base: Point = G,
    rng: Optional[SecureRandom] = None,
) -> DLogProof:
    """``DLogProof.prove`` with the calling protocol's argument order."""
    return DLogProof.prove(session_id, party_id, x, y, base, rng)


def verify(
    proof: DLogProof,
    session_id: str,
    party_id: int,
    y: Point,
    base: Point = G,
) -> bool:
    if not isinstance(proof, DLogProof):
        logger.debug("rejecting non-proof object %s", type(proof).__name__)
        return False
    return proof.verify(session_id, party_id, y, base)


def verify_bytes(
    data: bytes,
    session_id: str,
    party_id: int,
    y: Point,
    base: Point = G,
) -> bool:
    """Verify serialized proof bytes received from an untrusted peer."""
    try:
        proof = DLogProof.from_bytes(data)
    except InvalidInputError as e:
        logger.debug("rejecting unparseable proof: %s", e)
        return False
    return proof.verify(session_id, party_id, y, base)
