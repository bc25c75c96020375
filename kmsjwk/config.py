"""Library configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables (prefix ``KMSJWK_``)."""

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # JSON lines instead of human-readable output

    # Key manager backend used by the CLI and get_key_manager()
    kms_backend: str = "local"

    # Modulus size for RSA keys generated by the local backend
    rsa_key_size: int = 2048

    # Algorithm identifier written by marshal_secp256k1_der():
    #   legacy     - placeholder OID 2.0, byte-compatible with existing callers
    #   registered - id-ecPublicKey with the secp256k1 namedCurve (RFC 5480)
    secp256k1_der_oid: Literal["legacy", "registered"] = "legacy"

    model_config = SettingsConfigDict(
        env_prefix="KMSJWK_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("rsa_key_size")
    @classmethod
    def _check_rsa_key_size(cls, value: int) -> int:
        if value < 2048:
            raise ValueError("rsa_key_size must be at least 2048 bits")
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return value


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
