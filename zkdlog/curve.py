"""
Elliptic curve arithmetic on secp256k1 via libsecp256k1.

Every group operation (scalar multiplication, point addition) is
delegated to the C library ``coincurve``, which wraps Bitcoin Core's
libsecp256k1.  Its tweak-multiply is constant time with respect to the
scalar, so multiplying by a secret or a nonce does not leak bit
patterns through timing.

Scalars are plain Python integers reduced modulo the group order; no
field arithmetic over the base field is done here.

Encoding
--------
- Points: SEC 1 compressed, 33 bytes.  The identity (point at infinity)
  is encoded as 33 zero bytes.
- Scalars: 32 bytes, big-endian, strictly below ``ORDER``.

References
----------
- SEC 1 v2 §2.3.3    point-to-octet-string conversion
- SEC 2 v2 §2.4.1    secp256k1 domain parameters
"""

from __future__ import annotations

from typing import Optional

from coincurve import PrivateKey as _SK, PublicKey as _PK

from .errors import InvalidInputError

# ── secp256k1 constants ─────────────────────────────────────────────────
ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SCALAR_BYTES = 32
COMPRESSED_BYTES = 33
IDENTITY_BYTES = b"\x00" * COMPRESSED_BYTES


# ── Scalar  (Z_q arithmetic, pure Python) ───────────────────────────────
class Scalar:
    """Element of the scalar field  Z_q  where *q* = ``ORDER``."""

    __slots__ = ("_v",)

    def __init__(self, value: int) -> None:
        self._v = value % ORDER

    @classmethod
    def zero(cls) -> Scalar:
        return cls(0)

    @classmethod
    def one(cls) -> Scalar:
        return cls(1)

    @classmethod
    def max(cls) -> Scalar:
        """Largest reduced scalar,  q - 1."""
        return cls(ORDER - 1)

    @classmethod
    def from_bytes(cls, data: bytes) -> Scalar:
        """Strict decoding: exactly 32 bytes, value below *q*."""
        if not isinstance(data, (bytes, bytearray)):
            raise InvalidInputError(
                f"scalar must be bytes, got {type(data).__name__}")
        if len(data) != SCALAR_BYTES:
            raise InvalidInputError(
                f"need {SCALAR_BYTES} bytes, got {len(data)}")
        v = int.from_bytes(data, "big")
        if v >= ORDER:
            raise InvalidInputError("scalar out of range")
        return cls(v)

    @classmethod
    def from_bytes_reduce(cls, data: bytes) -> Scalar:
        """Hash-output safe: reduce arbitrary length modulo *q*."""
        return cls(int.from_bytes(data, "big"))

    def to_bytes(self) -> bytes:
        return self._v.to_bytes(SCALAR_BYTES, "big")

    @property
    def value(self) -> int:
        return self._v

    def is_zero(self) -> bool:
        return self._v == 0

    # arithmetic -------------------------------------------------------------
    def __add__(self, o: Scalar) -> Scalar:
        if not isinstance(o, Scalar):
            return NotImplemented
        return Scalar(self._v + o._v)

    def __sub__(self, o: Scalar) -> Scalar:
        if not isinstance(o, Scalar):
            return NotImplemented
        return Scalar(self._v - o._v)

    def __mul__(self, o):
        if isinstance(o, Scalar):
            return Scalar(self._v * o._v)
        if isinstance(o, Point):
            return o._smul(self)
        return NotImplemented

    def __neg__(self) -> Scalar:
        return Scalar(-self._v)

    # comparison / hashing ---------------------------------------------------
    def __eq__(self, o: object) -> bool:
        if isinstance(o, Scalar):
            return self._v == o._v
        if isinstance(o, int):
            return self._v == o % ORDER
        return False

    def __hash__(self) -> int:
        return hash(self._v)

    def __bool__(self) -> bool:
        return self._v != 0

    def __repr__(self) -> str:
        h = hex(self._v)
        return f"Scalar(0x{h[2:10]}…)" if len(h) > 14 else f"Scalar({h})"


# ── Point  (secp256k1 group element via libsecp256k1) ───────────────────
class Point:
    """
    Point on secp256k1.

    The identity (point at infinity) is represented by a flag rather than
    a ``coincurve.PublicKey``; libsecp256k1 refuses to hold or serialise
    the identity, but  Y = 0·G  is a legal public point here.
    """

    __slots__ = ("_pk", "_inf")

    def __init__(self, *, pk: Optional[_PK] = None, infinity: bool = False):
        if pk is None and not infinity:
            raise InvalidInputError("point needs a public key or infinity=True")
        self._pk: Optional[_PK] = pk
        self._inf: bool = infinity

    @classmethod
    def generator(cls) -> Point:
        """Standard base point *G*."""
        return cls(pk=_SK(Scalar.one().to_bytes()).public_key)

    @classmethod
    def identity(cls) -> Point:
        """Point at infinity, the additive identity."""
        return cls(infinity=True)

    @classmethod
    def from_scalar(cls, s: Scalar) -> Point:
        """Compute *s · G*."""
        if s.is_zero():
            return cls.identity()
        return cls(pk=_SK(s.to_bytes()).public_key)

    @classmethod
    def from_bytes(cls, data: bytes) -> Point:
        """
        Decode a 33-byte compressed point.

        Raises ``InvalidInputError`` on a wrong length, a bad prefix, or
        an x-coordinate with no point on the curve.
        """
        if not isinstance(data, (bytes, bytearray)):
            raise InvalidInputError(
                f"point must be bytes, got {type(data).__name__}")
        data = bytes(data)
        if len(data) != COMPRESSED_BYTES:
            raise InvalidInputError(
                f"need {COMPRESSED_BYTES} bytes, got {len(data)}")
        if data == IDENTITY_BYTES:
            return cls.identity()
        if data[0] not in (0x02, 0x03):
            raise InvalidInputError(f"bad point prefix 0x{data[0]:02x}")
        try:
            pk = _PK(data)
        except (ValueError, TypeError) as e:
            raise InvalidInputError(f"not a curve point: {e}") from e
        return cls(pk=pk)

    # serialisation ----------------------------------------------------------
    def to_bytes_compressed(self) -> bytes:
        if self._inf:
            return IDENTITY_BYTES
        return self._pk.format(compressed=True)  # type: ignore[union-attr]

    def to_bytes(self) -> bytes:
        return self.to_bytes_compressed()

    def is_inf(self) -> bool:
        return self._inf

    # group operations -------------------------------------------------------
    def _smul(self, s: Scalar) -> Point:
        """Scalar multiplication  s · self  (constant time in *s*)."""
        if self._inf or s.is_zero():
            return Point.identity()
        return Point(pk=self._pk.multiply(s.to_bytes()))  # type: ignore

    def __neg__(self) -> Point:
        if self._inf:
            return self
        raw = bytearray(self._pk.format(compressed=True))  # type: ignore
        raw[0] ^= 0x01            # 0x02 ↔ 0x03 flip parity
        return Point(pk=_PK(bytes(raw)))

    def __add__(self, o: Point) -> Point:
        if not isinstance(o, Point):
            return NotImplemented
        if self._inf:
            return o
        if o._inf:
            return self
        # P + (-P) = O
        if self._pk.format() == (-o)._pk.format():  # type: ignore
            return Point.identity()
        return Point(pk=_PK.combine_keys(
            [self._pk, o._pk]))  # type: ignore[list-item]

    def __eq__(self, o: object) -> bool:
        # canonical encodings, never internal coordinates
        if not isinstance(o, Point):
            return False
        return self.to_bytes_compressed() == o.to_bytes_compressed()

    def __hash__(self) -> int:
        return hash(self.to_bytes())

    def __repr__(self) -> str:
        if self._inf:
            return "Point(∞)"
        return f"Point(0x{self.to_bytes().hex()[:32]}…)"


# ── module-level generator ──────────────────────────────────────────────
G = Point.generator()
