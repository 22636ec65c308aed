"""
Fiat-Shamir challenge derivation for DLOG proofs.

Every hash call includes a domain tag so that challenges computed here
are independent of any other SHA-256 use in the calling protocol.

Convention follows BIP-340 tagged hashes:

    H_tag(x) = SHA-256( SHA-256(tag) ‖ SHA-256(tag) ‖ x )

Transcript body, in this order:

    len(sid) : u32 BE ‖ sid : UTF-8 ‖ pid : u64 BE ‖ n : u32 BE ‖ P_1 ‖ … ‖ P_n

with each point in 33-byte compressed form.  The session id is
length-prefixed and the party id is fixed width, so two different
``(sid, pid)`` pairs can never serialise to the same byte string.
"""

from __future__ import annotations

import hashlib
from typing import Sequence, Union

from .curve import Scalar, Point
from .errors import InvalidInputError

# ── domain tags ─────────────────────────────────────────────────────────
_TAG_DLOG = b"zkdlog/v1/dlog_proof"

PARTY_ID_BYTES = 8
MAX_PARTY_ID = (1 << (8 * PARTY_ID_BYTES)) - 1


# ── internal helpers ────────────────────────────────────────────────────
def _tagged_hasher(tag: bytes) -> "hashlib._Hash":
    """Return a SHA-256 context pre-loaded with the BIP-340 tag prefix."""
    tag_hash = hashlib.sha256(tag).digest()
    h = hashlib.sha256()
    h.update(tag_hash)
    h.update(tag_hash)
    return h


def encode_session_id(session_id: Union[str, bytes]) -> bytes:
    if isinstance(session_id, str):
        try:
            raw = session_id.encode("utf-8")
        except UnicodeEncodeError as e:
            raise InvalidInputError(f"session id is not valid UTF-8: {e}") from e
    elif isinstance(session_id, (bytes, bytearray)):
        raw = bytes(session_id)
    else:
        raise InvalidInputError(
            f"session id must be str or bytes, got {type(session_id).__name__}")
    return len(raw).to_bytes(4, "big") + raw


def encode_party_id(party_id: int) -> bytes:
    # bool is an int subclass; reject it so True never aliases party 1
    if not isinstance(party_id, int) or isinstance(party_id, bool):
        raise InvalidInputError(
            f"party id must be int, got {type(party_id).__name__}")
    if not 0 <= party_id <= MAX_PARTY_ID:
        raise InvalidInputError(f"party id {party_id} outside u64 range")
    return party_id.to_bytes(PARTY_ID_BYTES, "big")


def encode_points(points: Sequence[Point]) -> bytes:
    parts = [len(points).to_bytes(4, "big")]
    for p in points:
        if not isinstance(p, Point):
            raise InvalidInputError(
                f"expected Point in transcript, got {type(p).__name__}")
        parts.append(p.to_bytes_compressed())
    return b"".join(parts)


# ── public hash functions ───────────────────────────────────────────────
def challenge(
    session_id: Union[str, bytes],
    party_id: int,
    points: Sequence[Point],
) -> Scalar:
    r"""
    Fiat-Shamir challenge  c = H(sid, pid, P_1, …, P_n)  mod q.

    Pure and deterministic.  The point order is significant; DLOG proofs
    always pass  [G, Y, T].
    """
    h = _tagged_hasher(_TAG_DLOG)
    h.update(encode_session_id(session_id))
    h.update(encode_party_id(party_id))
    h.update(encode_points(points))
    return Scalar.from_bytes_reduce(h.digest())
