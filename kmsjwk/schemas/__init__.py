"""Wire schemas."""

from .jwk import JWKModel, PublicKeyView

__all__ = ["JWKModel", "PublicKeyView"]
