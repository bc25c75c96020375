"""Base key manager interface.

A key manager creates asymmetric keys and exports their public halves
as bytes in the layout their key type commits to. Private material
never leaves the backend.
"""

from abc import ABC, abstractmethod

from kmsjwk.core.key_types import KeyType


class KeyManager(ABC):
    """Abstract base class for key-management backends."""

    @abstractmethod
    def create_and_export_public_key(self, key_type: KeyType) -> tuple[str, bytes]:
        """Create a key and export its public half.

        Args:
            key_type: Type of key to create

        Returns:
            Tuple of (key_id, public_key_bytes)

        Raises:
            BackendError: If the key cannot be created
        """
        pass

    @abstractmethod
    def export_public_key_bytes(self, key_id: str) -> tuple[bytes, KeyType]:
        """Export the public half of an existing key.

        Args:
            key_id: Backend identifier of the key

        Returns:
            Tuple of (public_key_bytes, key_type)

        Raises:
            KeyNotFoundError: If no key has this id
        """
        pass


class BackendError(Exception):
    """Base exception for key manager operations."""
    pass


class KeyNotFoundError(BackendError):
    """Key not found in the key manager."""
    pass
