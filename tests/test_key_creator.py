"""Tests for the key creation adapter."""

import logging

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from kmsjwk.core.errors import InvalidEncodingError, UnsupportedKeyTypeError
from kmsjwk.core.key_creator import KeyCreator
from kmsjwk.core.key_types import KeyType
from kmsjwk.core.keys import ECKey, OKPKey
from kmsjwk.core.kms import BackendError, KeyNotFoundError

KEY_ID = "foo"


@pytest.fixture
def ed25519_bytes():
    return ed25519.Ed25519PrivateKey.generate().public_key().public_bytes(
        encoding=serialization.Encoding.Raw, format=serialization.PublicFormat.Raw
    )


class TestCreate:
    """Tests for creating keys through a mock key manager."""

    def test_create(self, mock_manager_factory, ed25519_bytes):
        """create() returns a JWK whose kid is the backend key id."""
        manager = mock_manager_factory(create_key_id=KEY_ID, create_value=ed25519_bytes)
        jwk = KeyCreator(manager).create(KeyType.ED25519)

        assert isinstance(jwk.key, OKPKey)
        assert jwk.kid == KEY_ID
        assert jwk.crv == "Ed25519"
        assert jwk.public_key_bytes() == ed25519_bytes
        assert manager.calls == [("create", KeyType.ED25519)]

    def test_create_raw(self, mock_manager_factory, ed25519_bytes):
        """create_raw() returns the key id and the native key."""
        manager = mock_manager_factory(create_key_id=KEY_ID, create_value=ed25519_bytes)
        kid, key = KeyCreator(manager).create_raw("ED25519")

        assert kid == KEY_ID
        assert isinstance(key, OKPKey)
        assert key.x == ed25519_bytes

    def test_backend_error_propagates(self, mock_manager_factory):
        """Backend errors reach the caller unchanged."""
        expected = BackendError("expected error")
        creator = KeyCreator(mock_manager_factory(create_error=expected))

        with pytest.raises(BackendError) as exc_info:
            creator.create(KeyType.ED25519)
        assert exc_info.value is expected

        with pytest.raises(BackendError) as exc_info:
            creator.create_raw(KeyType.ED25519)
        assert exc_info.value is expected

    def test_arbitrary_error_propagates(self, mock_manager_factory):
        """Errors outside the BackendError tree propagate too."""
        expected = RuntimeError("hsm unavailable")
        creator = KeyCreator(mock_manager_factory(create_error=expected))

        with pytest.raises(RuntimeError) as exc_info:
            creator.create(KeyType.ED25519)
        assert exc_info.value is expected

    def test_invalid_exported_value(self, mock_manager_factory):
        """Bytes that do not decode fail without returning the key id."""
        creator = KeyCreator(mock_manager_factory(create_key_id=KEY_ID, create_value=KEY_ID.encode()))

        with pytest.raises(InvalidEncodingError) as exc_info:
            creator.create(KeyType.ECDSA_P256_DER)
        assert KEY_ID not in str(exc_info.value)

        with pytest.raises(InvalidEncodingError):
            creator.create_raw(KeyType.ECDSA_P256_DER)

    def test_unknown_key_type(self, mock_manager_factory):
        """Unknown types are refused before the backend is called."""
        manager = mock_manager_factory()

        with pytest.raises(UnsupportedKeyTypeError):
            KeyCreator(manager).create("undefined")
        assert manager.calls == []

    def test_creation_logged(self, mock_manager_factory, ed25519_bytes, caplog):
        """Creation is logged at INFO with the key id and type."""
        manager = mock_manager_factory(create_key_id=KEY_ID, create_value=ed25519_bytes)

        with caplog.at_level(logging.INFO, logger="kmsjwk"):
            KeyCreator(manager).create(KeyType.ED25519)

        records = [r for r in caplog.records if r.getMessage() == "Key created"]
        assert len(records) == 1
        assert records[0].levelno == logging.INFO
        assert records[0].extra_fields["key_id"] == KEY_ID
        assert records[0].extra_fields["key_type"] == "ED25519"


class TestExport:
    """Tests for exporting existing keys."""

    def test_export(self, mock_manager_factory, ed25519_bytes):
        """export_public_key_bytes() returns the JWK and backend key type."""
        manager = mock_manager_factory(export_value=ed25519_bytes, export_type=KeyType.ED25519)
        jwk, key_type = KeyCreator(manager).export_public_key_bytes(KEY_ID)

        assert key_type is KeyType.ED25519
        assert jwk.kid == KEY_ID
        assert jwk.crv == "Ed25519"
        assert manager.calls == [("export", KEY_ID)]

    def test_export_string_type(self, mock_manager_factory, ed25519_bytes):
        """Backends reporting tag strings are accepted."""
        manager = mock_manager_factory(export_value=ed25519_bytes, export_type="X25519ECDHKW")
        jwk, key_type = KeyCreator(manager).export_public_key_bytes(KEY_ID)

        assert key_type is KeyType.X25519_ECDH_KW
        assert jwk.crv == "X25519"

    def test_export_not_found(self, mock_manager_factory):
        """Lookup failures propagate unchanged."""
        expected = KeyNotFoundError("Key not found: foo")
        creator = KeyCreator(mock_manager_factory(export_error=expected))

        with pytest.raises(KeyNotFoundError) as exc_info:
            creator.export_public_key_bytes(KEY_ID)
        assert exc_info.value is expected


class TestWithLocalManager:
    """Tests against the in-memory backend."""

    @pytest.mark.parametrize("key_type", [
        KeyType.ECDSA_P256_DER,
        KeyType.ECDSA_SECP256K1_DER,
        KeyType.ECDSA_P521_IEEE_P1363,
        KeyType.NISTP384_ECDH_KW,
        KeyType.ED25519,
        KeyType.X25519_ECDH_KW,
        KeyType.BLS12381_G2,
        KeyType.RSA_PS256,
    ])
    def test_create_then_export(self, local_manager, key_type):
        """A created key exports to the same JWK."""
        creator = KeyCreator(local_manager)
        jwk = creator.create(key_type)
        exported, exported_type = creator.export_public_key_bytes(jwk.kid)

        assert exported == jwk
        assert exported_type is key_type
        assert not jwk.is_private

    def test_create_raw_matches_private_key(self, local_manager):
        """The native key from create_raw() is the stored key's public half."""
        kid, key = KeyCreator(local_manager).create_raw(KeyType.ECDSA_P384_DER)

        assert isinstance(key, ECKey)
        assert local_manager.get_private_key(kid).public() == key
