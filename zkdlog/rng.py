"""
Secure randomness for nonce and witness sampling.

The random source is passed explicitly into proving instead of being
read from process-wide state.  ``SecureRandom`` draws straight from the
OS CSPRNG on every call and holds no buffer, so concurrent callers
(threads or one instance shared between them) never observe correlated
or repeated output.

A source that fails is fatal: nothing here falls back to ``random`` or
any other weaker generator.
"""

from __future__ import annotations

import secrets
from typing import Callable, Optional

from .curve import Scalar, ORDER, SCALAR_BYTES
from .errors import RandomnessFailure

# rejection sampling accepts with probability ≈ 1 - 2^-128 on secp256k1,
# so exhausting this is a broken source, not bad luck
MAX_SAMPLING_ATTEMPTS = 128


class SecureRandom:
    """
    Byte source backed by ``secrets.token_bytes`` (``os.urandom``).

    ``source`` can be overridden for testing; it must return exactly the
    number of bytes requested.
    """

    def __init__(
        self,
        source: Optional[Callable[[int], bytes]] = None,
    ) -> None:
        self._source = source if source is not None else secrets.token_bytes

    def random_bytes(self, n: int) -> bytes:
        try:
            data = self._source(n)
        except (OSError, NotImplementedError) as e:
            raise RandomnessFailure(f"secure random source failed: {e}") from e
        if not isinstance(data, (bytes, bytearray)):
            raise RandomnessFailure(
                f"secure random source returned {type(data).__name__}")
        if len(data) != n:
            raise RandomnessFailure(
                f"secure random source returned {len(data)} bytes, "
                f"expected {n}"
            )
        return bytes(data)

    def random_scalar(self) -> Scalar:
        """Uniform in [1, q-1] via rejection sampling."""
        for _ in range(MAX_SAMPLING_ATTEMPTS):
            c = int.from_bytes(self.random_bytes(SCALAR_BYTES), "big")
            if 0 < c < ORDER:
                return Scalar(c)
        raise RandomnessFailure(
            "secure random source produced no usable scalar in "
            f"{MAX_SAMPLING_ATTEMPTS} attempts"
        )


def random_scalar(rng: Optional[SecureRandom] = None) -> Scalar:
    """Sample a non-zero scalar from *rng* (a fresh ``SecureRandom`` if None)."""
    return (rng or SecureRandom()).random_scalar()
