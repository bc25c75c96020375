"""JWK and backend key-view schemas.

``JWKModel`` validates the generic JSON Web Key members (RFC 7517);
curve-specific decoding happens in ``kmsjwk.core.jwk``.

``PublicKeyView`` is the flattened coordinate form exchanged with the
key-management backend for ECDH key-wrapping keys. Byte members travel
as standard base64 strings.
"""

import base64

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class JWKModel(BaseModel):
    """JSON Web Key document."""
    model_config = ConfigDict(extra="allow")

    kty: str = Field(min_length=1, description="Key family: EC, OKP or RSA")
    crv: str | None = Field(default=None, description="Curve name")
    kid: str | None = None
    use: str | None = None
    alg: str | None = None

    # EC / OKP / BLS
    x: str | None = None
    y: str | None = None
    d: str | None = None

    # RSA
    n: str | None = None
    e: str | None = None
    p: str | None = None
    q: str | None = None
    dp: str | None = None
    dq: str | None = None
    qi: str | None = None


class PublicKeyView(BaseModel):
    """Backend-facing flattened public key."""
    model_config = ConfigDict(frozen=True)

    kid: str | None = None
    x: bytes | None = None
    y: bytes | None = None
    n: bytes | None = None
    e: bytes | None = None
    curve: str | None = None
    type: str | None = None

    @field_validator("x", "y", "n", "e", mode="before")
    @classmethod
    def _decode_base64(cls, value):
        if isinstance(value, str):
            return base64.b64decode(value, validate=True)
        return value

    @field_serializer("x", "y", "n", "e")
    def _encode_base64(self, value: bytes | None) -> str | None:
        if value is None:
            return None
        return base64.b64encode(value).decode("ascii")

    def to_json(self) -> bytes:
        """Compact JSON with unset members omitted."""
        return self.model_dump_json(exclude_none=True).encode()
