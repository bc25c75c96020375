"""kmsjwk - JSON Web Keys for key-management backends.

Converts the public key bytes a KMS exports into JWKs and back:
- EC keys on P-256/384/521 and secp256k1 (IEEE P1363, DER, KW JSON)
- Ed25519 and X25519 octet key pairs
- RSA (DER SubjectPublicKeyInfo)
- BBS+ keys on BLS12-381 G2
"""

from kmsjwk.core.errors import (
    CurveMismatchError,
    EmptyInputError,
    InvalidEncodingError,
    InvalidKeySizeError,
    KeyConversionError,
    KeyCreationError,
    UnsupportedKeyTypeError,
)
from kmsjwk.core.jwk import JWK
from kmsjwk.core.jwk_adapter import (
    jwk_from_key,
    jwk_from_x25519_key,
    pub_key_bytes_to_jwk,
    pub_key_bytes_to_key,
    pub_key_to_bytes,
    public_key_from_jwk,
)
from kmsjwk.core.key_creator import KeyCreator
from kmsjwk.core.key_types import KeyType
from kmsjwk.core.keys import BLSKey, ECKey, OKPKey, RSAKey
from kmsjwk.schemas.jwk import PublicKeyView

__version__ = "0.1.0"

__all__ = [
    "JWK",
    "KeyType",
    "KeyCreator",
    "PublicKeyView",
    "ECKey",
    "OKPKey",
    "RSAKey",
    "BLSKey",
    "pub_key_bytes_to_key",
    "pub_key_bytes_to_jwk",
    "jwk_from_key",
    "jwk_from_x25519_key",
    "public_key_from_jwk",
    "pub_key_to_bytes",
    "KeyConversionError",
    "UnsupportedKeyTypeError",
    "InvalidEncodingError",
    "InvalidKeySizeError",
    "CurveMismatchError",
    "KeyCreationError",
    "EmptyInputError",
]
