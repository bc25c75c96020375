"""Test configuration and fixtures."""

import logging

import pytest

from kmsjwk.config import get_settings
from kmsjwk.core.key_types import KeyType
from kmsjwk.core.kms import KeyManager, LocalKeyManager, reset_key_manager


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch):
    """Isolate tests from the caller's environment and cached singletons."""
    for name in (
        "KMSJWK_LOG_LEVEL",
        "KMSJWK_LOG_JSON",
        "KMSJWK_KMS_BACKEND",
        "KMSJWK_RSA_KEY_SIZE",
        "KMSJWK_SECP256K1_DER_OID",
    ):
        monkeypatch.delenv(name, raising=False)

    get_settings.cache_clear()
    reset_key_manager()
    yield
    get_settings.cache_clear()
    reset_key_manager()


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo setup_logging() so caplog sees kmsjwk records."""
    yield
    package_logger = logging.getLogger("kmsjwk")
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True


@pytest.fixture
def local_manager():
    """Create a fresh in-memory key manager for each test."""
    return LocalKeyManager()


class MockKeyManager(KeyManager):
    """Key manager returning canned values or raising canned errors."""

    def __init__(
        self,
        create_key_id: str = "",
        create_value: bytes | None = None,
        create_error: Exception | None = None,
        export_value: bytes | None = None,
        export_type: KeyType | str | None = None,
        export_error: Exception | None = None,
    ):
        self.create_key_id = create_key_id
        self.create_value = create_value
        self.create_error = create_error
        self.export_value = export_value
        self.export_type = export_type
        self.export_error = export_error
        self.calls: list[tuple] = []

    def create_and_export_public_key(self, key_type):
        self.calls.append(("create", key_type))
        if self.create_error is not None:
            raise self.create_error
        return self.create_key_id, self.create_value

    def export_public_key_bytes(self, key_id):
        self.calls.append(("export", key_id))
        if self.export_error is not None:
            raise self.export_error
        return self.export_value, self.export_type


@pytest.fixture
def mock_manager_factory():
    """Build MockKeyManager instances with canned behavior."""
    return MockKeyManager
