"""Native key variants.

A native key is one of four frozen dataclasses, each carrying its own
curve identity as data: ``ECKey``, ``OKPKey``, ``RSAKey`` and
``BLSKey``. Conversions to and from ``cryptography`` key objects happen
only at this boundary; everything above dispatches on the variant.
"""

import secrets
from dataclasses import dataclass, field, replace
from typing import Any, ClassVar, Union

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa, x25519
from py_ecc.bls.g2_primitives import G2_to_signature
from py_ecc.optimized_bls12_381 import G2, curve_order, multiply

from kmsjwk.core.errors import UnsupportedKeyTypeError
from kmsjwk.core.key_types import (
    BLS12381_G2,
    ED25519,
    X25519,
    Curve,
    KeyFamily,
    curve_from_crypto,
)

_RAW_PUBLIC = dict(
    encoding=serialization.Encoding.Raw,
    format=serialization.PublicFormat.Raw,
)
_RAW_PRIVATE = dict(
    encoding=serialization.Encoding.Raw,
    format=serialization.PrivateFormat.Raw,
    encryption_algorithm=serialization.NoEncryption(),
)


@dataclass(frozen=True)
class ECKey:
    """Elliptic-curve key: affine point, optional private scalar."""
    family: ClassVar[KeyFamily] = KeyFamily.EC

    curve: Curve
    x: int
    y: int
    d: int | None = None
    # secp256k1 DER algorithm identifier form the key was read from
    der_oid: str | None = field(default=None, compare=False)

    @property
    def is_private(self) -> bool:
        return self.d is not None

    def public(self) -> "ECKey":
        return replace(self, d=None)

    def point_bytes(self) -> bytes:
        """Uncompressed point ``0x04 || X || Y``, zero-padded to field width."""
        size = self.curve.size
        return b"\x04" + self.x.to_bytes(size, "big") + self.y.to_bytes(size, "big")

    def to_cryptography(self) -> ec.EllipticCurvePublicKey | ec.EllipticCurvePrivateKey:
        """Build a ``cryptography`` key; raises ValueError for off-curve points."""
        public_numbers = ec.EllipticCurvePublicNumbers(self.x, self.y, self.curve.crypto_curve())
        if self.d is None:
            return public_numbers.public_key()
        return ec.EllipticCurvePrivateNumbers(self.d, public_numbers).private_key()

    @classmethod
    def from_cryptography(cls, key: ec.EllipticCurvePublicKey | ec.EllipticCurvePrivateKey) -> "ECKey":
        curve = curve_from_crypto(key.curve)
        if curve is None:
            raise UnsupportedKeyTypeError(f"unsupported EC curve: {key.curve.name}")
        if isinstance(key, ec.EllipticCurvePrivateKey):
            numbers = key.private_numbers()
            public = numbers.public_numbers
            return cls(curve=curve, x=public.x, y=public.y, d=numbers.private_value)
        public = key.public_numbers()
        return cls(curve=curve, x=public.x, y=public.y)


@dataclass(frozen=True)
class OKPKey:
    """Octet key pair (Ed25519 or X25519): raw public bytes, optional seed."""
    family: ClassVar[KeyFamily] = KeyFamily.OKP

    curve: Curve
    x: bytes
    d: bytes | None = None

    @property
    def is_private(self) -> bool:
        return self.d is not None

    def public(self) -> "OKPKey":
        return replace(self, d=None)

    def to_cryptography(self) -> Any:
        if self.curve == ED25519:
            if self.d is not None:
                return ed25519.Ed25519PrivateKey.from_private_bytes(self.d)
            return ed25519.Ed25519PublicKey.from_public_bytes(self.x)
        if self.d is not None:
            return x25519.X25519PrivateKey.from_private_bytes(self.d)
        return x25519.X25519PublicKey.from_public_bytes(self.x)

    @classmethod
    def from_cryptography(cls, key: Any) -> "OKPKey":
        if isinstance(key, ed25519.Ed25519PrivateKey):
            return cls(
                curve=ED25519,
                x=key.public_key().public_bytes(**_RAW_PUBLIC),
                d=key.private_bytes(**_RAW_PRIVATE),
            )
        if isinstance(key, ed25519.Ed25519PublicKey):
            return cls(curve=ED25519, x=key.public_bytes(**_RAW_PUBLIC))
        if isinstance(key, x25519.X25519PrivateKey):
            return cls(
                curve=X25519,
                x=key.public_key().public_bytes(**_RAW_PUBLIC),
                d=key.private_bytes(**_RAW_PRIVATE),
            )
        if isinstance(key, x25519.X25519PublicKey):
            return cls(curve=X25519, x=key.public_bytes(**_RAW_PUBLIC))
        raise UnsupportedKeyTypeError(f"not an octet key pair: {type(key).__name__}")


@dataclass(frozen=True)
class RSAKey:
    """RSA key: modulus and exponent, optional private and CRT values."""
    family: ClassVar[KeyFamily] = KeyFamily.RSA
    curve: ClassVar[None] = None

    n: int
    e: int
    d: int | None = None
    p: int | None = None
    q: int | None = None
    dp: int | None = None
    dq: int | None = None
    qi: int | None = None

    @property
    def is_private(self) -> bool:
        return self.d is not None

    @property
    def key_size(self) -> int:
        return self.n.bit_length()

    def public(self) -> "RSAKey":
        return RSAKey(n=self.n, e=self.e)

    def to_cryptography(self) -> rsa.RSAPublicKey | rsa.RSAPrivateKey:
        public_numbers = rsa.RSAPublicNumbers(self.e, self.n)
        if self.d is None:
            return public_numbers.public_key()
        if None in (self.p, self.q):
            raise ValueError("RSA private key requires p and q")
        dp = self.dp if self.dp is not None else rsa.rsa_crt_dmp1(self.d, self.p)
        dq = self.dq if self.dq is not None else rsa.rsa_crt_dmq1(self.d, self.q)
        qi = self.qi if self.qi is not None else rsa.rsa_crt_iqmp(self.p, self.q)
        return rsa.RSAPrivateNumbers(
            self.p, self.q, self.d, dp, dq, qi, public_numbers
        ).private_key()

    @classmethod
    def from_cryptography(cls, key: rsa.RSAPublicKey | rsa.RSAPrivateKey) -> "RSAKey":
        if isinstance(key, rsa.RSAPrivateKey):
            numbers = key.private_numbers()
            public = numbers.public_numbers
            return cls(
                n=public.n, e=public.e, d=numbers.d, p=numbers.p, q=numbers.q,
                dp=numbers.dmp1, dq=numbers.dmq1, qi=numbers.iqmp,
            )
        public = key.public_numbers()
        return cls(n=public.n, e=public.e)


@dataclass(frozen=True)
class BLSKey:
    """BBS+ key on BLS12-381: compressed G2 public point, optional scalar."""
    family: ClassVar[KeyFamily] = KeyFamily.BLS
    curve: ClassVar[Curve] = BLS12381_G2

    x: bytes
    d: int | None = None

    @property
    def is_private(self) -> bool:
        return self.d is not None

    def public(self) -> "BLSKey":
        return BLSKey(x=self.x)

    @classmethod
    def from_private(cls, d: int) -> "BLSKey":
        """Derive the public point ``d * G2`` for a private scalar."""
        if not 0 < d < curve_order:
            raise ValueError("BLS private scalar out of range")
        return cls(x=bytes(G2_to_signature(multiply(G2, d))), d=d)

    @classmethod
    def generate(cls) -> "BLSKey":
        return cls.from_private(secrets.randbelow(curve_order - 1) + 1)


NativeKey = Union[ECKey, OKPKey, RSAKey, BLSKey]
NATIVE_KEY_TYPES = (ECKey, OKPKey, RSAKey, BLSKey)


def to_native_key(key: Any) -> NativeKey | None:
    """Convert a native variant or a ``cryptography`` key object.

    Returns None when the value is not a recognized key.
    """
    if isinstance(key, NATIVE_KEY_TYPES):
        return key
    if isinstance(key, (ec.EllipticCurvePublicKey, ec.EllipticCurvePrivateKey)):
        return ECKey.from_cryptography(key)
    if isinstance(key, (
        ed25519.Ed25519PublicKey, ed25519.Ed25519PrivateKey,
        x25519.X25519PublicKey, x25519.X25519PrivateKey,
    )):
        return OKPKey.from_cryptography(key)
    if isinstance(key, (rsa.RSAPublicKey, rsa.RSAPrivateKey)):
        return RSAKey.from_cryptography(key)
    return None
