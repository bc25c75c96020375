"""JSON Web Key record.

A ``JWK`` pairs a native key with the ``kty``/``crv`` it is published
under, plus the pass-through ``kid``/``use``/``alg`` members. The record
refuses to exist with a ``kty``/``crv`` that disagrees with its key.
"""

import base64
import binascii
import json
from dataclasses import dataclass, replace
from typing import Any

from cryptography.hazmat.primitives.asymmetric import ec
from pydantic import ValidationError

from kmsjwk.core.codec import decode_bls_g2, decode_ieee_p1363, decode_okp_raw, encode_rsa_der
from kmsjwk.core.errors import (
    InvalidEncodingError,
    KeyConversionError,
    KeyCreationError,
    UnsupportedKeyTypeError,
)
from kmsjwk.core.key_types import KeyFamily, curve_by_name
from kmsjwk.core.keys import BLSKey, ECKey, NativeKey, OKPKey, RSAKey, to_native_key
from kmsjwk.schemas.jwk import JWKModel

_PARSE = "parse JWK"


def _b64url_encode(data: bytes) -> str:
    """Base64url encode without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64url_decode(data: str, member: str) -> bytes:
    """Base64url decode with padding restoration."""
    padding = 4 - len(data) % 4
    if padding != 4:
        data += "=" * padding
    try:
        return base64.b64decode(data, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidEncodingError(f"member {member!r} is not base64url: {e}", operation=_PARSE) from e


def _int_to_bytes(value: int, size: int | None = None) -> bytes:
    if size is None:
        size = max(1, (value.bit_length() + 7) // 8)
    return value.to_bytes(size, "big")


def key_kty_crv(key: NativeKey) -> tuple[str, str | None]:
    """The ``kty`` and ``crv`` a native key is published under."""
    if isinstance(key, RSAKey):
        return "RSA", None
    return key.curve.kty, key.curve.name


@dataclass(frozen=True)
class JWK:
    """A JSON Web Key around a native key."""
    key: NativeKey
    kty: str
    crv: str | None = None
    kid: str | None = None
    use: str | None = None
    alg: str | None = None

    def __post_init__(self):
        native = to_native_key(self.key)
        if native is None:
            raise KeyCreationError(
                f"unsupported key type {type(self.key).__name__}", operation="create JWK"
            )
        if native is not self.key:
            object.__setattr__(self, "key", native)
        if (self.kty, self.crv) != key_kty_crv(native):
            raise KeyCreationError(
                f"kty/crv {self.kty}/{self.crv} do not match {native.family.value} key",
                operation="create JWK",
            )

    @property
    def is_private(self) -> bool:
        return self.key.is_private

    def public(self) -> "JWK":
        """Copy of this JWK without private material."""
        return replace(self, key=self.key.public())

    def public_key_bytes(self) -> bytes:
        """Canonical public key bytes.

        EC: uncompressed point; OKP: raw key; BLS: compressed G2 point;
        RSA: SubjectPublicKeyInfo DER.
        """
        key = self.key
        if isinstance(key, ECKey):
            return key.point_bytes()
        if isinstance(key, (OKPKey, BLSKey)):
            return key.x
        return encode_rsa_der(key)

    def to_dict(self, include_private: bool = True) -> dict[str, Any]:
        """Serialize to a JWK JSON object."""
        key = self.key
        jwk: dict[str, Any] = {"kty": self.kty}
        if self.crv is not None:
            jwk["crv"] = self.crv

        if isinstance(key, ECKey):
            size = key.curve.size
            jwk["x"] = _b64url_encode(_int_to_bytes(key.x, size))
            jwk["y"] = _b64url_encode(_int_to_bytes(key.y, size))
            if include_private and key.d is not None:
                jwk["d"] = _b64url_encode(_int_to_bytes(key.d, size))
        elif isinstance(key, OKPKey):
            jwk["x"] = _b64url_encode(key.x)
            if include_private and key.d is not None:
                jwk["d"] = _b64url_encode(key.d)
        elif isinstance(key, BLSKey):
            jwk["x"] = _b64url_encode(key.x)
            if include_private and key.d is not None:
                jwk["d"] = _b64url_encode(_int_to_bytes(key.d, 32))
        else:
            jwk["n"] = _b64url_encode(_int_to_bytes(key.n))
            jwk["e"] = _b64url_encode(_int_to_bytes(key.e))
            if include_private and key.d is not None:
                for member in ("d", "p", "q", "dp", "dq", "qi"):
                    value = getattr(key, member)
                    if value is not None:
                        jwk[member] = _b64url_encode(_int_to_bytes(value))

        for member in ("kid", "use", "alg"):
            value = getattr(self, member)
            if value is not None:
                jwk[member] = value
        return jwk

    def to_json(self, include_private: bool = True) -> str:
        return json.dumps(self.to_dict(include_private=include_private))

    @classmethod
    def from_dict(cls, data: dict[str, Any] | JWKModel) -> "JWK":
        """Parse a JWK JSON object.

        Raises:
            InvalidEncodingError: Malformed members, off-curve points, or a
                private part that does not match the public part
            UnsupportedKeyTypeError: Unknown ``kty`` or ``crv``
        """
        try:
            model = data if isinstance(data, JWKModel) else JWKModel.model_validate(data)
        except ValidationError as e:
            raise InvalidEncodingError(str(e), operation=_PARSE) from e

        key = _key_from_model(model)
        kty, crv = key_kty_crv(key)
        return cls(key=key, kty=kty, crv=crv, kid=model.kid, use=model.use, alg=model.alg)

    @classmethod
    def from_json(cls, data: str | bytes) -> "JWK":
        try:
            model = JWKModel.model_validate_json(data)
        except ValidationError as e:
            raise InvalidEncodingError(str(e), operation=_PARSE) from e
        return cls.from_dict(model)


def _required(model: JWKModel, member: str) -> bytes:
    value = getattr(model, member)
    if not value:
        raise InvalidEncodingError(f"missing member {member!r}", operation=_PARSE)
    return _b64url_decode(value, member)


def _optional_int(model: JWKModel, member: str) -> int | None:
    value = getattr(model, member)
    if value is None:
        return None
    return int.from_bytes(_b64url_decode(value, member), "big")


def _key_from_model(model: JWKModel) -> NativeKey:
    if model.kty == "RSA":
        return _rsa_from_model(model)
    if model.kty not in ("EC", "OKP"):
        raise UnsupportedKeyTypeError(f"unsupported kty {model.kty!r}", operation=_PARSE)

    curve = curve_by_name(model.crv) if model.crv else None
    if curve is None or curve.kty != model.kty:
        raise UnsupportedKeyTypeError(
            f"unsupported crv {model.crv!r} for kty {model.kty!r}", operation=_PARSE
        )

    try:
        if curve.family == KeyFamily.BLS:
            key = decode_bls_g2(_required(model, "x"))
            d = _optional_int(model, "d")
            if d is None:
                return key
            private = BLSKey.from_private(d)
            if private.x != key.x:
                raise InvalidEncodingError("private key does not match public key", operation=_PARSE)
            return private

        if curve.family == KeyFamily.OKP:
            key = decode_okp_raw(_required(model, "x"), curve)
            if model.d is None:
                return key
            private = OKPKey.from_cryptography(
                OKPKey(curve=curve, x=key.x, d=_b64url_decode(model.d, "d")).to_cryptography()
            )
            if private.x != key.x:
                raise InvalidEncodingError("private key does not match public key", operation=_PARSE)
            return private

        x = _required(model, "x")
        y = _required(model, "y")
        if len(x) > curve.size or len(y) > curve.size:
            raise InvalidEncodingError(
                f"coordinates exceed {curve.name} field width", operation=_PARSE
            )
        key = decode_ieee_p1363(
            b"\x04" + x.rjust(curve.size, b"\x00") + y.rjust(curve.size, b"\x00"), curve
        )
        d = _optional_int(model, "d")
        if d is None:
            return key
        private = ECKey.from_cryptography(ec.derive_private_key(d, curve.crypto_curve()))
        if (private.x, private.y) != (key.x, key.y):
            raise InvalidEncodingError("private key does not match public key", operation=_PARSE)
        return private
    except KeyConversionError:
        raise
    except ValueError as e:
        raise InvalidEncodingError(str(e), operation=_PARSE) from e


def _rsa_from_model(model: JWKModel) -> RSAKey:
    n = int.from_bytes(_required(model, "n"), "big")
    e = int.from_bytes(_required(model, "e"), "big")
    d = _optional_int(model, "d")
    if d is None:
        key = RSAKey(n=n, e=e)
    else:
        key = RSAKey(
            n=n, e=e, d=d,
            p=_optional_int(model, "p"),
            q=_optional_int(model, "q"),
            dp=_optional_int(model, "dp"),
            dq=_optional_int(model, "dq"),
            qi=_optional_int(model, "qi"),
        )
    try:
        return RSAKey.from_cryptography(key.to_cryptography())
    except ValueError as e:
        raise InvalidEncodingError(f"rsa: invalid key: {e}", operation=_PARSE) from e
