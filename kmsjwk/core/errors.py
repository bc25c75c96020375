"""Errors raised by the key conversion layer.

Every error carries the operation that failed and, where known, the
key type involved, so callers can diagnose a failure without
re-parsing the input. Lower-level exceptions are chained as
``__cause__``.
"""


class KeyConversionError(Exception):
    """Base class for key conversion failures."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        key_type: str | None = None,
    ):
        self.operation = operation
        self.key_type = key_type
        self.reason = message
        if operation:
            message = f"{operation}: {message}"
        super().__init__(message)


class UnsupportedKeyTypeError(KeyConversionError):
    """Key type is not registered, or has no conversion for this operation."""
    pass


class InvalidEncodingError(KeyConversionError):
    """Bytes do not parse as the encoding the key type claims."""
    pass


class InvalidKeySizeError(KeyConversionError):
    """Input length does not match a fixed-width key family."""
    pass


class CurveMismatchError(KeyConversionError):
    """Parsed key belongs to a different curve than the requested key type."""
    pass


class KeyCreationError(KeyConversionError):
    """A JWK or native key could not be constructed."""
    pass


class EmptyInputError(KeyConversionError):
    """A key or JWK was required but none was given."""
    pass
