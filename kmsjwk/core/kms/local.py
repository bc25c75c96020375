"""Local in-memory key manager.

WARNING: keys live in process memory and are lost on exit. Use it for
development, tests and the CLI; production deployments register a
backend that talks to a real KMS or HSM.
"""

import secrets
import threading

from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa, x25519

from kmsjwk.config import get_settings
from kmsjwk.core.codec import encode_public_key
from kmsjwk.core.key_types import ED25519, KeyFamily, KeyType, spec_for_type
from kmsjwk.core.keys import BLSKey, ECKey, NativeKey, OKPKey, RSAKey
from kmsjwk.core.logging import get_logger

from .base import BackendError, KeyManager, KeyNotFoundError

logger = get_logger(__name__)


class LocalKeyManager(KeyManager):
    """Generates real key pairs with ``cryptography`` and ``py_ecc``.

    Safe to share between threads.
    """

    def __init__(self, rsa_key_size: int | None = None):
        self.rsa_key_size = rsa_key_size or get_settings().rsa_key_size
        self._keys: dict[str, tuple[KeyType, NativeKey]] = {}
        self._lock = threading.Lock()

    def _generate(self, key_type: KeyType) -> NativeKey:
        spec = spec_for_type(key_type)
        if spec.family == KeyFamily.EC:
            return ECKey.from_cryptography(ec.generate_private_key(spec.curve.crypto_curve()))
        if spec.family == KeyFamily.OKP:
            if spec.curve == ED25519:
                return OKPKey.from_cryptography(ed25519.Ed25519PrivateKey.generate())
            return OKPKey.from_cryptography(x25519.X25519PrivateKey.generate())
        if spec.family == KeyFamily.RSA:
            private_key = rsa.generate_private_key(public_exponent=65537, key_size=self.rsa_key_size)
            return RSAKey.from_cryptography(private_key)
        if spec.family == KeyFamily.BLS:
            return BLSKey.generate()
        raise BackendError(f"Key type {spec.key_type.value} has no public key to export")

    def create_and_export_public_key(self, key_type: KeyType) -> tuple[str, bytes]:
        spec = spec_for_type(key_type)
        key = self._generate(spec.key_type)
        public_bytes = encode_public_key(key.public(), spec)
        key_id = secrets.token_urlsafe(16)

        with self._lock:
            self._keys[key_id] = (spec.key_type, key)

        logger.debug("Local key created", key_id=key_id, key_type=spec.key_type.value)
        return key_id, public_bytes

    def export_public_key_bytes(self, key_id: str) -> tuple[bytes, KeyType]:
        with self._lock:
            entry = self._keys.get(key_id)
        if entry is None:
            raise KeyNotFoundError(f"Key not found: {key_id}")

        key_type, key = entry
        return encode_public_key(key.public(), spec_for_type(key_type)), key_type

    def get_private_key(self, key_id: str) -> NativeKey:
        """Return the stored key pair, private half included."""
        with self._lock:
            entry = self._keys.get(key_id)
        if entry is None:
            raise KeyNotFoundError(f"Key not found: {key_id}")
        return entry[1]
