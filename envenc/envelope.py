"""
EnvEnc Envelope — textual at-rest form of an encrypted value.

Format::

    envenc:v1:<ALGORITHM>:<base64(salt 16B || ciphertext + tag)>

The header ``envenc:v1:<ALGORITHM>`` names the algorithm that sealed the
value and is bound to the ciphertext as AEAD associated data.

Each sealed value draws a random salt. The AEAD nonce for that value is
``HKDF-SHA256(ikm=base_nonce, salt=salt, info=b"envenc-value-nonce")``,
so values sealed in one session never share a (key, nonce) pair while
opening still requires both the derived key and the derived base nonce.

Security Note:
    Never log plaintext or sealed values.
"""
import base64
import binascii
import os
from dataclasses import dataclass
from typing import Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from .ciphers import CipherAlgorithm, check_key_material, get_cipher
from .exceptions import (
    AlgorithmMismatch,
    MalformedEnvelope,
    UnsupportedAlgorithm,
)

PREFIX = "envenc"
VERSION = "v1"
SALT_SIZE = 16

__all__ = (
    "Envelope",
    "seal",
    "open",
    "open_bytes",
    "parse",
    "is_sealed",
    "detect_algorithm",
)


@dataclass(frozen=True)
class Envelope:
    """Parsed sealed value."""

    version: str
    algorithm: CipherAlgorithm
    salt: bytes
    ciphertext: bytes

    @property
    def header(self) -> str:
        return _header(self.algorithm)

    def encode(self) -> str:
        body = base64.b64encode(self.salt + self.ciphertext).decode("ascii")
        return f"{self.header}:{body}"


def _header(algorithm: CipherAlgorithm) -> str:
    return f"{PREFIX}:{VERSION}:{algorithm.identifier}"


def _value_nonce(algorithm: CipherAlgorithm, nonce: bytes, salt: bytes) -> bytes:
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=algorithm.nonce_size,
        salt=salt,
        info=b"envenc-value-nonce",
    )
    return hkdf.derive(bytes(nonce))


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _parse_header(sealed: str) -> tuple[str, CipherAlgorithm, str]:
    if not isinstance(sealed, str):
        raise MalformedEnvelope("sealed value must be a string")
    parts = sealed.strip().split(":")
    if len(parts) != 4 or parts[0] != PREFIX:
        raise MalformedEnvelope("value is not an envenc sealed value")
    _, version, tag, body = parts
    if version != VERSION:
        raise MalformedEnvelope(f"unsupported envelope version: {version!r}")
    try:
        algorithm = CipherAlgorithm.from_name(tag)
    except UnsupportedAlgorithm:
        raise MalformedEnvelope(f"unrecognised algorithm tag: {tag!r}") from None
    if tag != algorithm.identifier:
        raise MalformedEnvelope(f"unrecognised algorithm tag: {tag!r}")
    return version, algorithm, body


def _decode_body(version: str, algorithm: CipherAlgorithm, body: str) -> Envelope:
    try:
        raw = base64.b64decode(body.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError):
        raise MalformedEnvelope("invalid base64 body") from None
    # Only the canonical encoding is accepted; spare bits must be zero.
    if base64.b64encode(raw).decode("ascii") != body:
        raise MalformedEnvelope("invalid base64 body")
    if len(raw) < SALT_SIZE + algorithm.tag_size:
        raise MalformedEnvelope("sealed value is too short")
    return Envelope(
        version=version,
        algorithm=algorithm,
        salt=raw[:SALT_SIZE],
        ciphertext=raw[SALT_SIZE:],
    )


def parse(sealed: str) -> Envelope:
    """Split a sealed string into its parts without decrypting.

    Raises:
        MalformedEnvelope: If the prefix, version, algorithm tag or base64
            body is missing or invalid.
    """
    return _decode_body(*_parse_header(sealed))


def is_sealed(value: str) -> bool:
    """Return True if ``value`` looks like an envenc sealed value."""
    return isinstance(value, str) and value.strip().startswith(f"{PREFIX}:")


def detect_algorithm(sealed: str) -> CipherAlgorithm:
    """Return the algorithm named in a sealed value's header."""
    return parse(sealed).algorithm


# ---------------------------------------------------------------------------
# Seal / open
# ---------------------------------------------------------------------------

def seal(
    algorithm: CipherAlgorithm,
    key: bytes,
    nonce: bytes,
    plaintext: Union[str, bytes],
) -> str:
    """Encrypt ``plaintext`` and return its storable text form.

    Args:
        algorithm: Cipher algorithm to seal with.
        key: Derived key, ``algorithm.key_size`` bytes.
        nonce: Derived base nonce, ``algorithm.nonce_size`` bytes.
        plaintext: ``str`` (UTF-8 encoded) or ``bytes``.

    Raises:
        InvalidKeyMaterial: If key or nonce has the wrong length.
    """
    algorithm = CipherAlgorithm.from_name(algorithm)
    check_key_material(algorithm, key, nonce)
    if isinstance(plaintext, str):
        plaintext = plaintext.encode("utf-8")
    salt = os.urandom(SALT_SIZE)
    header = _header(algorithm)
    ciphertext = get_cipher(algorithm).encrypt(
        key,
        _value_nonce(algorithm, nonce, salt),
        bytes(plaintext),
        header.encode("ascii"),
    )
    return Envelope(VERSION, algorithm, salt, ciphertext).encode()


def open_bytes(
    algorithm: CipherAlgorithm,
    key: bytes,
    nonce: bytes,
    sealed: str,
) -> bytes:
    """Verify and decrypt a sealed value, returning raw plaintext bytes.

    Raises:
        MalformedEnvelope: If ``sealed`` cannot be parsed.
        AlgorithmMismatch: If it was sealed with another algorithm.
        InvalidKeyMaterial: If key or nonce has the wrong length.
        AuthenticationFailure: If verification fails.
    """
    algorithm = CipherAlgorithm.from_name(algorithm)
    version, found, body = _parse_header(sealed)
    if found is not algorithm:
        raise AlgorithmMismatch(expected=algorithm, found=found)
    envelope = _decode_body(version, found, body)
    check_key_material(algorithm, key, nonce)
    return get_cipher(algorithm).decrypt(
        key,
        _value_nonce(algorithm, nonce, envelope.salt),
        envelope.ciphertext,
        envelope.header.encode("ascii"),
    )


def open(
    algorithm: CipherAlgorithm,
    key: bytes,
    nonce: bytes,
    sealed: str,
) -> str:
    """Verify and decrypt a sealed value, returning text.

    Same errors as :func:`open_bytes`; a plaintext that is not UTF-8
    raises :class:`MalformedEnvelope`.
    """
    plaintext = open_bytes(algorithm, key, nonce, sealed)
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError:
        raise MalformedEnvelope("plaintext is not valid UTF-8 text") from None
