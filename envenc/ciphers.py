"""
EnvEnc Ciphers — AEAD algorithm catalogue and cipher abstraction.

Supported algorithms:
- ChaCha20-Poly1305 (256-bit key, 96-bit nonce, 128-bit tag)
- AES-256-GCM       (256-bit key, 96-bit nonce, 128-bit tag)

Each :class:`CipherAlgorithm` member carries its sizes and its wire
identifier, and each has exactly one :class:`Cipher` implementation
registered in ``_REGISTRY``.

Security Note:
    A (key, nonce) pair must never encrypt two different plaintexts.
    The ciphers here use whatever nonce they are given; see
    :mod:`envenc.envelope` for how sealed values get a distinct nonce each.
    Never log key, nonce, plaintext or ciphertext values.
"""
import enum
from abc import ABC, abstractmethod
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

from .exceptions import (
    AuthenticationFailure,
    InvalidKeyMaterial,
    UnsupportedAlgorithm,
)


class CipherAlgorithm(enum.Enum):
    """Closed set of supported AEAD schemes.

    Value tuple: (wire identifier, key size, nonce size, tag size).
    """

    CHACHA20_POLY1305 = ("CHACHA20POLY1305", 32, 12, 16)
    AES_256_GCM = ("AES256GCM", 32, 12, 16)

    def __init__(self, identifier: str, key_size: int, nonce_size: int, tag_size: int):
        self.identifier = identifier
        self.key_size = key_size
        self.nonce_size = nonce_size
        self.tag_size = tag_size

    def __str__(self) -> str:
        return self.identifier

    @classmethod
    def from_name(cls, name: "str | CipherAlgorithm") -> "CipherAlgorithm":
        """Resolve an algorithm from its identifier, member name or alias.

        Lookup is case-insensitive.

        Raises:
            UnsupportedAlgorithm: If the name is not recognised.
        """
        if isinstance(name, cls):
            return name
        if not isinstance(name, str):
            raise UnsupportedAlgorithm(f"Unsupported cipher algorithm: {name!r}")
        algorithm = _ALIASES.get(name.strip().lower())
        if algorithm is None:
            raise UnsupportedAlgorithm(f"Unsupported cipher algorithm: {name!r}")
        return algorithm


_ALIASES = {
    "chacha20poly1305": CipherAlgorithm.CHACHA20_POLY1305,
    "chacha20_poly1305": CipherAlgorithm.CHACHA20_POLY1305,
    "chacha20-poly1305": CipherAlgorithm.CHACHA20_POLY1305,
    "chacha20": CipherAlgorithm.CHACHA20_POLY1305,
    "aes256gcm": CipherAlgorithm.AES_256_GCM,
    "aes_256_gcm": CipherAlgorithm.AES_256_GCM,
    "aes-256-gcm": CipherAlgorithm.AES_256_GCM,
    "aesgcm": CipherAlgorithm.AES_256_GCM,
}


def check_key_material(algorithm: CipherAlgorithm, key: bytes, nonce: bytes) -> None:
    """Validate key and nonce lengths for ``algorithm``.

    Raises:
        InvalidKeyMaterial: If either length is wrong or a value is not bytes.
    """
    if not isinstance(key, (bytes, bytearray, memoryview)):
        raise InvalidKeyMaterial(f"{algorithm} key must be bytes")
    if not isinstance(nonce, (bytes, bytearray, memoryview)):
        raise InvalidKeyMaterial(f"{algorithm} nonce must be bytes")
    if len(key) != algorithm.key_size:
        raise InvalidKeyMaterial(
            f"{algorithm} key must be {algorithm.key_size} bytes, got {len(key)}"
        )
    if len(nonce) != algorithm.nonce_size:
        raise InvalidKeyMaterial(
            f"{algorithm} nonce must be {algorithm.nonce_size} bytes, "
            f"got {len(nonce)}"
        )


# ---------------------------------------------------------------------------
# Cipher abstraction
# ---------------------------------------------------------------------------

class Cipher(ABC):
    """Authenticated encryption with a fixed key and nonce size."""

    algorithm: CipherAlgorithm

    @abstractmethod
    def _aead(self, key: bytes):
        """Return the ``cryptography`` AEAD primitive for ``key``."""

    def encrypt(
        self,
        key: bytes,
        nonce: bytes,
        plaintext: bytes,
        associated_data: Optional[bytes] = None,
    ) -> bytes:
        """Encrypt ``plaintext``.

        Returns:
            Ciphertext with the authentication tag appended.

        Raises:
            InvalidKeyMaterial: If key or nonce has the wrong length.
        """
        check_key_material(self.algorithm, key, nonce)
        return self._aead(bytes(key)).encrypt(bytes(nonce), plaintext, associated_data)

    def decrypt(
        self,
        key: bytes,
        nonce: bytes,
        ciphertext: bytes,
        associated_data: Optional[bytes] = None,
    ) -> bytes:
        """Verify and decrypt ``ciphertext``.

        Raises:
            InvalidKeyMaterial: If key or nonce has the wrong length.
            AuthenticationFailure: If the tag does not verify.
        """
        check_key_material(self.algorithm, key, nonce)
        if len(ciphertext) < self.algorithm.tag_size:
            raise AuthenticationFailure()
        try:
            return self._aead(bytes(key)).decrypt(
                bytes(nonce), ciphertext, associated_data,
            )
        except InvalidTag:
            raise AuthenticationFailure() from None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.algorithm}>"


class ChaCha20Poly1305Cipher(Cipher):
    algorithm = CipherAlgorithm.CHACHA20_POLY1305

    def _aead(self, key: bytes):
        return ChaCha20Poly1305(key)


class AES256GCMCipher(Cipher):
    algorithm = CipherAlgorithm.AES_256_GCM

    def _aead(self, key: bytes):
        return AESGCM(key)


_REGISTRY: dict[CipherAlgorithm, Cipher] = {
    cipher.algorithm: cipher
    for cipher in (ChaCha20Poly1305Cipher(), AES256GCMCipher())
}


def get_cipher(algorithm: "CipherAlgorithm | str") -> Cipher:
    """Return the cipher implementation for ``algorithm``."""
    return _REGISTRY[CipherAlgorithm.from_name(algorithm)]
