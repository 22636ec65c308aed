"""
zkdlog: non-interactive zero-knowledge proofs of discrete-log knowledge.

A Schnorr proof of knowledge of  x  with  Y = x·G  on secp256k1, made
non-interactive via Fiat-Shamir and bound to a session id and party id.
Intended for DKG / threshold-signature handshakes where each party must
show it knows the secret behind the point it published.

Security: completeness, special soundness and honest-verifier
zero-knowledge of the Schnorr sigma protocol; non-interactive soundness
in the Random Oracle Model.

Quick start
-----------
::

    from zkdlog import G, SecureRandom, prove, verify, verify_bytes

    rng = SecureRandom()
    x = rng.random_scalar()
    y = x * G

    proof = prove("sid", 1, x, y, G, rng=rng)
    assert verify(proof, "sid", 1, y, G)

    wire = proof.to_bytes()           # 65 bytes: T ‖ S
    assert verify_bytes(wire, "sid", 1, y, G)
"""

__version__ = "0.1.0"

# ── core types ──────────────────────────────────────────────────────────
from .curve import Scalar, Point, G, ORDER

# ── data model ──────────────────────────────────────────────────────────
from .statement import SessionContext, Statement, Witness

# ── randomness ──────────────────────────────────────────────────────────
from .rng import SecureRandom, random_scalar

# ── proofs ──────────────────────────────────────────────────────────────
from .hash import challenge
from .proofs import DLogProof, PROOF_BYTES, prove, verify, verify_bytes

# ── errors ──────────────────────────────────────────────────────────────
from .errors import (
    ZKDlogError,
    InvalidInputError,
    RandomnessFailure,
    RendezvousError,
    RendezvousTimeout,
    RendezvousConflict,
)

__all__ = [
    # version
    "__version__",
    # core
    "Scalar", "Point", "G", "ORDER",
    # data model
    "SessionContext", "Statement", "Witness",
    # randomness
    "SecureRandom", "random_scalar",
    # proofs
    "challenge", "DLogProof", "PROOF_BYTES", "prove", "verify", "verify_bytes",
    # errors
    "ZKDlogError", "InvalidInputError", "RandomnessFailure",
    "RendezvousError", "RendezvousTimeout", "RendezvousConflict",
]
