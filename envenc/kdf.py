"""
EnvEnc Key Derivation — password to fixed-length key and nonce material.

Derivation is two-staged and fully deterministic:
- Stretch: PBKDF2-HMAC-SHA256(password, salt=b"envenc/v1/<purpose>/<ALG>")
- Expand:  HKDF-SHA256(stretched, info=b"envenc-<purpose>") -> exact length

The purpose label is mixed into both stages, so a key and a nonce derived
from the same password are computationally independent.

Security Note:
    The salt is fixed on purpose: the same password must yield the same
    bytes in a new process. Password quality is the caller's concern.
    Never log passwords or derived material.
"""
import os
import enum
from typing import Optional, Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .ciphers import CipherAlgorithm, check_key_material
from .exceptions import EnvEncError

DEFAULT_ITERATIONS = 100_000
_STRETCH_LENGTH = 32

Password = Union[str, bytes]


class Purpose(enum.Enum):
    KEY = "key"
    NONCE = "nonce"


def _password_bytes(password: Password) -> bytes:
    if isinstance(password, str):
        return password.encode("utf-8", "surrogatepass")
    if isinstance(password, (bytes, bytearray)):
        return bytes(password)
    raise TypeError(
        f"password must be str or bytes, not {type(password).__name__}"
    )


def derive(
    password: Password,
    purpose: Purpose,
    algorithm: CipherAlgorithm,
    iterations: int = DEFAULT_ITERATIONS,
) -> bytes:
    """Derive key or nonce bytes for ``algorithm`` from ``password``.

    Args:
        password: Operator secret, ``str`` (UTF-8 encoded) or ``bytes``.
        purpose: :attr:`Purpose.KEY` or :attr:`Purpose.NONCE`.
        algorithm: Target algorithm, fixes the output length.
        iterations: PBKDF2 work factor.

    Returns:
        ``algorithm.key_size`` bytes for a key,
        ``algorithm.nonce_size`` bytes for a nonce.
    """
    algorithm = CipherAlgorithm.from_name(algorithm)
    purpose = Purpose(purpose)
    if iterations < 1:
        raise ValueError("iterations must be a positive integer")
    secret = _password_bytes(password)

    stretch = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=_STRETCH_LENGTH,
        salt=f"envenc/v1/{purpose.value}/{algorithm.identifier}".encode("ascii"),
        iterations=iterations,
    )
    stretched = stretch.derive(secret)

    length = algorithm.key_size if purpose is Purpose.KEY else algorithm.nonce_size
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=length,
        salt=None,
        info=f"envenc-{purpose.value}".encode("ascii"),
    )
    return hkdf.derive(stretched)


def derive_key(
    password: Password,
    algorithm: CipherAlgorithm,
    iterations: int = DEFAULT_ITERATIONS,
) -> bytes:
    """Derive the encryption key for ``algorithm``."""
    return derive(password, Purpose.KEY, algorithm, iterations)


def derive_nonce(
    password: Password,
    algorithm: CipherAlgorithm,
    iterations: int = DEFAULT_ITERATIONS,
) -> bytes:
    """Derive the base nonce for ``algorithm``."""
    return derive(password, Purpose.NONCE, algorithm, iterations)


def _split_passwords(passwords) -> tuple[Password, Password]:
    if isinstance(passwords, (str, bytes, bytearray)):
        return passwords, passwords
    key_password, nonce_password = passwords
    return key_password, nonce_password


def derive_key_and_nonce(
    passwords,
    algorithm: CipherAlgorithm,
    iterations: int = DEFAULT_ITERATIONS,
) -> tuple[bytes, bytes]:
    """Derive ``(key, nonce)`` from one password or a pair of passwords.

    Args:
        passwords: A single password used for both values, or a
            ``(key_password, nonce_password)`` pair.
        algorithm: Target algorithm.
        iterations: PBKDF2 work factor.
    """
    key_password, nonce_password = _split_passwords(passwords)
    return (
        derive_key(key_password, algorithm, iterations),
        derive_nonce(nonce_password, algorithm, iterations),
    )


# ---------------------------------------------------------------------------
# Scoped key material
# ---------------------------------------------------------------------------

class KeyMaterial:
    """Derived key and nonce for one algorithm, wiped when the scope ends.

    Use as a context manager::

        with derive_key_material(("keypw", "noncepw"), algorithm) as km:
            sealed = seal(km.algorithm, km.key, km.nonce, "secret")

    Wiping overwrites the backing buffers with zeros. Copies made by the
    caller or by the crypto backend are out of reach; this is best effort.
    """

    __slots__ = ("algorithm", "_key", "_nonce")

    def __init__(self, algorithm: CipherAlgorithm, key: bytes, nonce: bytes):
        algorithm = CipherAlgorithm.from_name(algorithm)
        check_key_material(algorithm, key, nonce)
        self.algorithm = algorithm
        self._key: Optional[bytearray] = bytearray(key)
        self._nonce: Optional[bytearray] = bytearray(nonce)

    @property
    def wiped(self) -> bool:
        return self._key is None

    def _require(self) -> tuple[bytearray, bytearray]:
        if self._key is None or self._nonce is None:
            raise EnvEncError("key material has been wiped")
        return self._key, self._nonce

    @property
    def key(self) -> bytearray:
        return self._require()[0]

    @property
    def nonce(self) -> bytearray:
        return self._require()[1]

    def wipe(self) -> None:
        """Zero and release the key and nonce buffers."""
        for buf in (self._key, self._nonce):
            if buf is not None:
                for i in range(len(buf)):
                    buf[i] = 0
        self._key = None
        self._nonce = None

    def __enter__(self) -> "KeyMaterial":
        self._require()
        return self

    def __exit__(self, *exc) -> None:
        self.wipe()

    def __repr__(self) -> str:
        state = "wiped" if self.wiped else "live"
        return f"<KeyMaterial {self.algorithm} {state}>"


def derive_key_material(
    passwords,
    algorithm: CipherAlgorithm,
    iterations: int = DEFAULT_ITERATIONS,
) -> KeyMaterial:
    """Same as :func:`derive_key_and_nonce`, wrapped in :class:`KeyMaterial`."""
    key, nonce = derive_key_and_nonce(passwords, algorithm, iterations)
    return KeyMaterial(algorithm, key, nonce)


def generate_key_material(algorithm: CipherAlgorithm) -> KeyMaterial:
    """Return random key material for ``algorithm``.

    The caller is responsible for keeping it; envenc does not store keys.
    """
    algorithm = CipherAlgorithm.from_name(algorithm)
    return KeyMaterial(
        algorithm,
        os.urandom(algorithm.key_size),
        os.urandom(algorithm.nonce_size),
    )
