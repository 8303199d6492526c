"""
EnvEnc exceptions.

Every error raised by envenc derives from :class:`EnvEncError`.

Security Note:
    Messages carry algorithm names and lengths only. Never include key,
    nonce, plaintext or ciphertext bytes in an exception message.
"""


class EnvEncError(Exception):
    """Base class for envenc errors."""


class InvalidKeyMaterial(EnvEncError, ValueError):
    """Key or nonce has the wrong length for the selected algorithm."""


class AuthenticationFailure(EnvEncError):
    """AEAD tag verification failed.

    Raised for a wrong password, a wrong key/nonce, or tampered and
    truncated ciphertext. The cause is never distinguished.
    """

    def __init__(self, message: str = "authentication failed"):
        super().__init__(message)


class MalformedEnvelope(EnvEncError, ValueError):
    """The stored string is not a sealed value produced by envenc."""


class UnsupportedAlgorithm(EnvEncError, ValueError):
    """Unknown cipher algorithm identifier."""


class AlgorithmMismatch(EnvEncError):
    """The sealed value was produced by a different algorithm."""

    def __init__(self, expected, found):
        self.expected = expected
        self.found = found
        super().__init__(
            f"sealed value uses {found}, caller expected {expected}"
        )
