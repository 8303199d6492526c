"""
EnvEnc Configuration — validated settings loaded from the environment.

Reads:
    ENVENC_ALGORITHM      = CHACHA20POLY1305 | AES256GCM (aliases accepted)
    ENVENC_ENV_FILE       = path of the .env file (default ".env")
    ENVENC_KDF_ITERATIONS = PBKDF2 work factor (default 100000)
    ENVENC_SKIP_PLAIN     = skip values that are not sealed (default true)

Security Note:
    Passwords are never read from configuration. Never log key material.
"""
import os
import logging
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from .ciphers import CipherAlgorithm
from .exceptions import UnsupportedAlgorithm
from .kdf import DEFAULT_ITERATIONS

logger = logging.getLogger("envenc")

_TRUE = ("1", "true", "yes", "on")


class EnvEncConfig(BaseModel):
    """Validated envenc configuration."""

    algorithm: CipherAlgorithm = Field(default=CipherAlgorithm.CHACHA20_POLY1305)
    env_file: Path = Field(default=Path(".env"))
    kdf_iterations: int = Field(default=DEFAULT_ITERATIONS, ge=1)
    skip_plain: bool = Field(default=True)

    model_config = {"frozen": True}

    @field_validator("algorithm", mode="before")
    @classmethod
    def validate_algorithm(cls, v):
        """Accept any identifier or alias known to CipherAlgorithm."""
        try:
            return CipherAlgorithm.from_name(v)
        except UnsupportedAlgorithm as err:
            raise ValueError(str(err)) from None

    @classmethod
    def from_env(cls) -> "EnvEncConfig":
        """Create EnvEncConfig from ``ENVENC_*`` environment variables.

        Returns:
            Populated EnvEncConfig instance.
        """
        values = {}
        algorithm = os.environ.get("ENVENC_ALGORITHM")
        if algorithm:
            values["algorithm"] = algorithm
        env_file = os.environ.get("ENVENC_ENV_FILE")
        if env_file:
            values["env_file"] = env_file
        iterations = os.environ.get("ENVENC_KDF_ITERATIONS")
        if iterations:
            values["kdf_iterations"] = iterations
        skip_plain = os.environ.get("ENVENC_SKIP_PLAIN")
        if skip_plain:
            values["skip_plain"] = skip_plain.strip().lower() in _TRUE
        config = cls(**values)
        logger.debug(
            "Loaded config: algorithm=%s env_file=%s",
            config.algorithm, config.env_file,
        )
        return config
