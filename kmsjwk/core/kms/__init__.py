"""Key-management backends.

The conversion layer never talks to a backend directly; ``KeyCreator``
wraps one of these:
- Local: in-memory key pairs, for development and tests
- Anything registered with ``register_key_manager``
"""

from .base import BackendError, KeyManager, KeyNotFoundError
from .factory import get_key_manager, register_key_manager, reset_key_manager
from .local import LocalKeyManager

__all__ = [
    "BackendError",
    "KeyManager",
    "KeyNotFoundError",
    "LocalKeyManager",
    "get_key_manager",
    "register_key_manager",
    "reset_key_manager",
]
