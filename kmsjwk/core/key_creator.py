"""Key creation adapter.

Wraps a ``KeyManager`` so callers get JWKs (or typed native keys)
instead of raw exported bytes. Backend errors propagate unchanged;
conversion errors propagate from the JWK adapter. On any failure
nothing is returned, so the backend key id never escapes with a
half-built result.
"""

from kmsjwk.core.jwk import JWK
from kmsjwk.core.jwk_adapter import pub_key_bytes_to_jwk, pub_key_bytes_to_key
from kmsjwk.core.key_types import KeyType, to_key_type
from kmsjwk.core.keys import NativeKey
from kmsjwk.core.kms.base import KeyManager
from kmsjwk.core.logging import get_logger

logger = get_logger(__name__)


class KeyCreator:
    """Creates keys through a key manager and converts them to JWKs.

    Usage:
        creator = KeyCreator(get_key_manager())
        jwk = creator.create(KeyType.ED25519)
        jwk.kid  # backend key id
    """

    def __init__(self, key_manager: KeyManager):
        self.key_manager = key_manager

    def create(self, key_type: KeyType | str) -> JWK:
        """Create a key and return its public JWK, ``kid`` set to the key id."""
        key_type = to_key_type(key_type)
        key_id, public_bytes = self.key_manager.create_and_export_public_key(key_type)
        jwk = pub_key_bytes_to_jwk(public_bytes, key_type, kid=key_id)

        logger.info("Key created", key_id=key_id, key_type=key_type.value, kty=jwk.kty, crv=jwk.crv)
        return jwk

    def create_raw(self, key_type: KeyType | str) -> tuple[str, NativeKey]:
        """Create a key and return ``(key_id, native public key)``."""
        key_type = to_key_type(key_type)
        key_id, public_bytes = self.key_manager.create_and_export_public_key(key_type)
        key = pub_key_bytes_to_key(public_bytes, key_type)

        logger.info("Key created", key_id=key_id, key_type=key_type.value)
        return key_id, key

    def export_public_key_bytes(self, key_id: str) -> tuple[JWK, KeyType]:
        """Look up an existing key and return its JWK and the backend's key type."""
        public_bytes, key_type = self.key_manager.export_public_key_bytes(key_id)
        key_type = to_key_type(key_type)
        jwk = pub_key_bytes_to_jwk(public_bytes, key_type, kid=key_id)
        return jwk, key_type
