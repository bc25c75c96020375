"""Curve and key type registry.

Maps every key type issued by a key-management backend to the key
family, curve and binary encoding its public key bytes use. The type
tag is authoritative: a 32-byte string is an Ed25519 key or an X25519
key only because the tag says so.

All tables are built once at import time and exposed read-only.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from cryptography.hazmat.primitives.asymmetric import ec

from kmsjwk.core.errors import UnsupportedKeyTypeError


class KeyType(str, Enum):
    """Key types understood by the key-management backend."""
    # Symmetric (no public key)
    AES128GCM = "AES128GCM"
    AES256GCM = "AES256GCM"
    AES256GCM_NO_PREFIX = "AES256GCMNoPrefix"
    CHACHA20_POLY1305 = "ChaCha20Poly1305"
    XCHACHA20_POLY1305 = "XChaCha20Poly1305"
    HMAC_SHA256_TAG256 = "HMACSHA256Tag256"

    # ECDSA, ASN.1 DER SubjectPublicKeyInfo
    ECDSA_P256_DER = "ECDSAP256DER"
    ECDSA_P384_DER = "ECDSAP384DER"
    ECDSA_P521_DER = "ECDSAP521DER"
    ECDSA_SECP256K1_DER = "SECP256K1DER"

    # ECDSA, IEEE-P1363 uncompressed point
    ECDSA_P256_IEEE_P1363 = "ECDSAP256IEEEP1363"
    ECDSA_P384_IEEE_P1363 = "ECDSAP384IEEEP1363"
    ECDSA_P521_IEEE_P1363 = "ECDSAP521IEEEP1363"
    ECDSA_SECP256K1_IEEE_P1363 = "SECP256K1IEEEP1363"

    # Octet key pairs, raw bytes
    ED25519 = "ED25519"
    X25519_ECDH_KW = "X25519ECDHKW"

    # ECDH key wrapping, flattened JSON coordinates
    NISTP256_ECDH_KW = "NISTP256ECDHKW"
    NISTP384_ECDH_KW = "NISTP384ECDHKW"
    NISTP521_ECDH_KW = "NISTP521ECDHKW"

    # BBS+ over BLS12-381, compressed G2 point
    BLS12381_G2 = "BLS12381G2"

    # RSA, ASN.1 DER SubjectPublicKeyInfo
    RSA_RS256 = "RSARS256"
    RSA_PS256 = "RSAPS256"


class KeyFamily(str, Enum):
    """Key families."""
    EC = "EC"
    OKP = "OKP"
    RSA = "RSA"
    BLS = "BLS"
    SYMMETRIC = "SYMMETRIC"


class KeyEncoding(str, Enum):
    """Binary layouts of exported public key bytes."""
    IEEE_P1363 = "ieee-p1363"  # 0x04 || X || Y, fixed width
    DER = "der"                # SubjectPublicKeyInfo
    RAW = "raw"                # OKP key verbatim
    KW_JSON = "kw-json"        # {"x", "y", "curve", "type"} JSON
    BLS_G2 = "bls-g2"          # 96-byte compressed G2 point
    NONE = "none"              # no public key


@dataclass(frozen=True)
class Curve:
    """A named curve.

    Attributes:
        name: JWK ``crv`` value
        family: Key family using this curve
        kty: JWK ``kty`` value
        size: Field width in bytes (EC), key size (OKP) or compressed
            point size (BLS)
        oid: Dotted namedCurve object identifier, EC only
        crypto_name: Curve name used by ``cryptography``, EC only
    """
    name: str
    family: KeyFamily
    kty: str
    size: int
    oid: str | None = None
    crypto_name: str | None = None

    @property
    def point_size(self) -> int:
        """Length of an uncompressed point (EC) or of the raw key."""
        if self.family == KeyFamily.EC:
            return 1 + 2 * self.size
        return self.size

    def crypto_curve(self) -> ec.EllipticCurve:
        """Return the ``cryptography`` curve instance for an EC curve."""
        if self.crypto_name is None:
            raise UnsupportedKeyTypeError(f"{self.name} is not an elliptic curve")
        return _EC_CURVE_CLASSES[self.crypto_name]()


@dataclass(frozen=True)
class KeySpec:
    """Family, curve and encoding for one key type."""
    key_type: KeyType
    family: KeyFamily
    encoding: KeyEncoding
    curve: Curve | None = None

    @property
    def kty(self) -> str | None:
        if self.curve is not None:
            return self.curve.kty
        if self.family == KeyFamily.RSA:
            return "RSA"
        return None


_EC_CURVE_CLASSES = {
    "secp256r1": ec.SECP256R1,
    "secp384r1": ec.SECP384R1,
    "secp521r1": ec.SECP521R1,
    "secp256k1": ec.SECP256K1,
}

P256 = Curve("P-256", KeyFamily.EC, "EC", 32, "1.2.840.10045.3.1.7", "secp256r1")
P384 = Curve("P-384", KeyFamily.EC, "EC", 48, "1.3.132.0.34", "secp384r1")
P521 = Curve("P-521", KeyFamily.EC, "EC", 66, "1.3.132.0.35", "secp521r1")
SECP256K1 = Curve("secp256k1", KeyFamily.EC, "EC", 32, "1.3.132.0.10", "secp256k1")
ED25519 = Curve("Ed25519", KeyFamily.OKP, "OKP", 32)
X25519 = Curve("X25519", KeyFamily.OKP, "OKP", 32)
BLS12381_G2 = Curve("BLS12381_G2", KeyFamily.BLS, "EC", 96)

CURVES: Mapping[str, Curve] = MappingProxyType({
    c.name: c for c in (P256, P384, P521, SECP256K1, ED25519, X25519, BLS12381_G2)
})

# Alternative spellings seen in backend output
_CURVE_ALIASES: Mapping[str, Curve] = MappingProxyType({
    "secp256r1": P256,
    "prime256v1": P256,
    "secp384r1": P384,
    "secp521r1": P521,
    "SECP256K1": SECP256K1,
    "BLS12381G2": BLS12381_G2,
})

_CURVES_BY_OID: Mapping[str, Curve] = MappingProxyType({
    c.oid: c for c in CURVES.values() if c.oid
})


def _spec(key_type: KeyType, family: KeyFamily, encoding: KeyEncoding, curve: Curve | None = None):
    return key_type, KeySpec(key_type, family, encoding, curve)


KEY_SPECS: Mapping[KeyType, KeySpec] = MappingProxyType(dict([
    _spec(KeyType.AES128GCM, KeyFamily.SYMMETRIC, KeyEncoding.NONE),
    _spec(KeyType.AES256GCM, KeyFamily.SYMMETRIC, KeyEncoding.NONE),
    _spec(KeyType.AES256GCM_NO_PREFIX, KeyFamily.SYMMETRIC, KeyEncoding.NONE),
    _spec(KeyType.CHACHA20_POLY1305, KeyFamily.SYMMETRIC, KeyEncoding.NONE),
    _spec(KeyType.XCHACHA20_POLY1305, KeyFamily.SYMMETRIC, KeyEncoding.NONE),
    _spec(KeyType.HMAC_SHA256_TAG256, KeyFamily.SYMMETRIC, KeyEncoding.NONE),
    _spec(KeyType.ECDSA_P256_DER, KeyFamily.EC, KeyEncoding.DER, P256),
    _spec(KeyType.ECDSA_P384_DER, KeyFamily.EC, KeyEncoding.DER, P384),
    _spec(KeyType.ECDSA_P521_DER, KeyFamily.EC, KeyEncoding.DER, P521),
    _spec(KeyType.ECDSA_SECP256K1_DER, KeyFamily.EC, KeyEncoding.DER, SECP256K1),
    _spec(KeyType.ECDSA_P256_IEEE_P1363, KeyFamily.EC, KeyEncoding.IEEE_P1363, P256),
    _spec(KeyType.ECDSA_P384_IEEE_P1363, KeyFamily.EC, KeyEncoding.IEEE_P1363, P384),
    _spec(KeyType.ECDSA_P521_IEEE_P1363, KeyFamily.EC, KeyEncoding.IEEE_P1363, P521),
    _spec(KeyType.ECDSA_SECP256K1_IEEE_P1363, KeyFamily.EC, KeyEncoding.IEEE_P1363, SECP256K1),
    _spec(KeyType.ED25519, KeyFamily.OKP, KeyEncoding.RAW, ED25519),
    _spec(KeyType.X25519_ECDH_KW, KeyFamily.OKP, KeyEncoding.RAW, X25519),
    _spec(KeyType.NISTP256_ECDH_KW, KeyFamily.EC, KeyEncoding.KW_JSON, P256),
    _spec(KeyType.NISTP384_ECDH_KW, KeyFamily.EC, KeyEncoding.KW_JSON, P384),
    _spec(KeyType.NISTP521_ECDH_KW, KeyFamily.EC, KeyEncoding.KW_JSON, P521),
    _spec(KeyType.BLS12381_G2, KeyFamily.BLS, KeyEncoding.BLS_G2, BLS12381_G2),
    _spec(KeyType.RSA_RS256, KeyFamily.RSA, KeyEncoding.DER),
    _spec(KeyType.RSA_PS256, KeyFamily.RSA, KeyEncoding.DER),
]))


def to_key_type(value: "KeyType | str") -> KeyType:
    """Coerce a tag to a KeyType, rejecting anything not registered."""
    if isinstance(value, KeyType):
        return value
    try:
        return KeyType(value)
    except ValueError:
        raise UnsupportedKeyTypeError(f"invalid key type: {value}", key_type=str(value)) from None


def spec_for_type(key_type: "KeyType | str") -> KeySpec:
    """Get the registry entry for a key type.

    Raises:
        UnsupportedKeyTypeError: If the tag is not registered
    """
    return KEY_SPECS[to_key_type(key_type)]


def curve_for_type(key_type: "KeyType | str") -> Curve | None:
    """Get the curve of a key type, or None for RSA and symmetric types."""
    return spec_for_type(key_type).curve


def curve_by_name(name: str) -> Curve | None:
    """Look up a curve by JWK ``crv`` name or a known alias."""
    return CURVES.get(name) or _CURVE_ALIASES.get(name)


def curve_by_oid(oid: str) -> Curve | None:
    """Look up an EC curve by namedCurve object identifier."""
    return _CURVES_BY_OID.get(oid)


def curve_from_crypto(curve: ec.EllipticCurve) -> Curve | None:
    """Map a ``cryptography`` curve instance to its registry entry."""
    for candidate in CURVES.values():
        if candidate.crypto_name == curve.name:
            return candidate
    return None


def list_key_types() -> list[KeySpec]:
    """List every registered key type."""
    return list(KEY_SPECS.values())
