"""Key manager factory.

Creates the key manager named by the ``kms_backend`` setting.
"""

from functools import lru_cache

from kmsjwk.config import get_settings
from kmsjwk.core.logging import get_logger

from .base import BackendError, KeyManager
from .local import LocalKeyManager

logger = get_logger(__name__)

# Registry of key manager backends
_managers: dict[str, type[KeyManager]] = {
    "local": LocalKeyManager,
}


def register_key_manager(name: str, manager_class: type[KeyManager]) -> None:
    """Register a key manager class.

    Allows adding new backends without modifying this module.

    Args:
        name: Backend name, as used in the ``kms_backend`` setting
        manager_class: Class implementing KeyManager
    """
    _managers[name.lower()] = manager_class
    logger.info("Registered key manager", backend=name.lower())


@lru_cache(maxsize=1)
def get_key_manager() -> KeyManager:
    """Get the configured key manager.

    Returns a cached singleton instance.

    Raises:
        BackendError: If the configured backend is not registered
    """
    backend = get_settings().kms_backend.lower()

    manager_class = _managers.get(backend)
    if manager_class is None:
        raise BackendError(
            f"Unknown key manager backend: {backend}. "
            f"Available backends: {', '.join(sorted(_managers))}"
        )

    manager = manager_class()
    logger.info("Created key manager", backend=backend)
    return manager


def reset_key_manager() -> None:
    """Reset the cached key manager.

    Useful for testing or reconfiguration.
    """
    get_key_manager.cache_clear()
