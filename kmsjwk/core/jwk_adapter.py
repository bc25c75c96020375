"""JWK adapter.

Converts between the public key bytes a key-management backend exports
and JSON Web Keys:

    pub_key_bytes_to_key(data, key_type)  -> native key
    pub_key_bytes_to_jwk(data, key_type)  -> JWK
    jwk_from_key(key)                     -> JWK
    jwk_from_x25519_key(data)             -> JWK
    public_key_from_jwk(jwk)              -> PublicKeyView
    pub_key_to_bytes(key, key_type)       -> bytes

Going from bytes, the key type is authoritative for ``kty``/``crv``; the
bytes alone cannot tell Ed25519 from X25519. Going from a native key,
the key carries its own curve.
"""

from typing import Any

from kmsjwk.core.codec import decode_okp_raw, decode_public_key, encode_public_key
from kmsjwk.core.errors import (
    EmptyInputError,
    InvalidKeySizeError,
    KeyConversionError,
    KeyCreationError,
    UnsupportedKeyTypeError,
)
from kmsjwk.core.jwk import JWK, key_kty_crv
from kmsjwk.core.key_types import X25519, KeyFamily, KeySpec, KeyType, spec_for_type
from kmsjwk.core.keys import BLSKey, ECKey, NativeKey, OKPKey, RSAKey, to_native_key
from kmsjwk.core.logging import get_logger, log_operation
from kmsjwk.schemas.jwk import PublicKeyView

logger = get_logger(__name__)


def _lookup(key_type: KeyType | str, operation: str) -> KeySpec:
    try:
        spec = spec_for_type(key_type)
    except UnsupportedKeyTypeError as e:
        raise UnsupportedKeyTypeError(e.reason, operation=operation, key_type=str(key_type)) from None
    if spec.family == KeyFamily.SYMMETRIC:
        raise UnsupportedKeyTypeError(
            f"invalid key type: {spec.key_type.value} has no public key",
            operation=operation,
            key_type=spec.key_type.value,
        )
    return spec


@log_operation("pub_key_bytes_to_key")
def pub_key_bytes_to_key(data: bytes, key_type: KeyType | str) -> NativeKey:
    """Decode public key bytes exported for ``key_type``.

    Raises:
        UnsupportedKeyTypeError: Unknown or symmetric key type
        EmptyInputError: ``data`` is None
        InvalidEncodingError: Bytes do not parse as the type's encoding
        InvalidKeySizeError: Wrong length for a fixed-width key
        CurveMismatchError: Bytes encode a key on another curve
    """
    operation = "pub_key_bytes_to_key"
    spec = _lookup(key_type, operation)
    if data is None:
        raise EmptyInputError("public key bytes are empty", operation=operation, key_type=spec.key_type.value)

    try:
        return decode_public_key(data, spec)
    except KeyConversionError as e:
        if e.operation is not None:
            raise
        raise type(e)(e.reason, operation=operation, key_type=spec.key_type.value) from e


@log_operation("pub_key_bytes_to_jwk")
def pub_key_bytes_to_jwk(data: bytes, key_type: KeyType | str, kid: str | None = None) -> JWK:
    """Decode public key bytes and wrap them in a JWK.

    ``kty``/``crv`` come from the registry entry of ``key_type``.
    """
    spec = _lookup(key_type, "pub_key_bytes_to_jwk")
    key = pub_key_bytes_to_key(data, spec.key_type)
    return JWK(
        key=key,
        kty=spec.kty,
        crv=spec.curve.name if spec.curve is not None else None,
        kid=kid,
    )


@log_operation("jwk_from_key")
def jwk_from_key(
    key: Any,
    kid: str | None = None,
    use: str | None = None,
    alg: str | None = None,
) -> JWK:
    """Build a JWK from a native key or a ``cryptography`` key object.

    Raises:
        KeyCreationError: ``key`` is None or not a supported key
    """
    if key is None:
        raise KeyCreationError("key is empty", operation="create JWK")
    try:
        native = to_native_key(key)
    except UnsupportedKeyTypeError as e:
        raise KeyCreationError(e.reason, operation="create JWK") from e
    if native is None:
        raise KeyCreationError(f"unsupported key type {type(key).__name__}", operation="create JWK")

    kty, crv = key_kty_crv(native)
    return JWK(key=native, kty=kty, crv=crv, kid=kid, use=use, alg=alg)


def jwk_from_x25519_key(data: bytes, kid: str | None = None) -> JWK:
    """Build an X25519 JWK from exactly 32 raw bytes.

    Raises:
        KeyCreationError: Wrong size (the InvalidKeySizeError is the cause)
    """
    try:
        key = decode_okp_raw(data, X25519)
    except InvalidKeySizeError as e:
        raise KeyCreationError(f"marshalX25519: {e.reason}", operation="create JWK") from e
    return JWK(key=key, kty=X25519.kty, crv=X25519.name, kid=kid)


@log_operation("public_key_from_jwk")
def public_key_from_jwk(jwk: JWK | dict | None) -> PublicKeyView:
    """Flatten a JWK to the backend's coordinate view.

    Private JWKs flatten their public part.

    Raises:
        EmptyInputError: ``jwk`` is None
        UnsupportedKeyTypeError: ``jwk`` holds nothing that can be flattened
    """
    operation = "public_key_from_jwk"
    if jwk is None:
        raise EmptyInputError("jwk is empty", operation=operation)
    if isinstance(jwk, dict):
        jwk = JWK.from_dict(jwk)
    if not isinstance(jwk, JWK):
        raise UnsupportedKeyTypeError(
            f"unsupported jwk key type {type(jwk).__name__}", operation=operation
        )

    key = jwk.key.public()
    if isinstance(key, ECKey):
        size = key.curve.size
        return PublicKeyView(
            kid=jwk.kid,
            x=key.x.to_bytes(size, "big"),
            y=key.y.to_bytes(size, "big"),
            curve=key.curve.name,
            type="EC",
        )
    if isinstance(key, OKPKey):
        return PublicKeyView(kid=jwk.kid, x=key.x, curve=key.curve.name, type="OKP")
    if isinstance(key, BLSKey):
        return PublicKeyView(kid=jwk.kid, x=key.x, curve=key.curve.name, type="EC")
    if isinstance(key, RSAKey):
        return PublicKeyView(
            kid=jwk.kid,
            n=key.n.to_bytes((key.n.bit_length() + 7) // 8, "big"),
            e=key.e.to_bytes((key.e.bit_length() + 7) // 8, "big"),
            type="RSA",
        )
    raise UnsupportedKeyTypeError(f"unsupported jwk key type {type(key).__name__}", operation=operation)


@log_operation("pub_key_to_bytes")
def pub_key_to_bytes(key: JWK | NativeKey | Any, key_type: KeyType | str) -> bytes:
    """Encode the public part of a key in the layout ``key_type`` exports.

    The inverse of ``pub_key_bytes_to_key``.
    """
    operation = "pub_key_to_bytes"
    spec = _lookup(key_type, operation)
    if key is None:
        raise EmptyInputError("key is empty", operation=operation, key_type=spec.key_type.value)

    native = key.key if isinstance(key, JWK) else to_native_key(key)
    if native is None:
        raise UnsupportedKeyTypeError(
            f"unsupported key type {type(key).__name__}", operation=operation, key_type=spec.key_type.value
        )
    try:
        return encode_public_key(native.public(), spec)
    except KeyConversionError as e:
        if e.operation is not None:
            raise
        raise type(e)(e.reason, operation=operation, key_type=spec.key_type.value) from e
