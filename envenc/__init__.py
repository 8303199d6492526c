"""EnvEnc — Encrypted environment variable values.

Derive a key and nonce from passwords, seal sensitive values into a .env
file, and restore them into the process environment later.

Security Note (Threat Model):
    Decrypted values live in the process environment once restored, where
    any code in the process (and its children) can read them. envenc
    protects values at rest only; it does not store or rotate keys.
"""

from .version import __version__
from .exceptions import (
    EnvEncError,
    InvalidKeyMaterial,
    AuthenticationFailure,
    MalformedEnvelope,
    AlgorithmMismatch,
    UnsupportedAlgorithm,
)
from .ciphers import CipherAlgorithm, Cipher, get_cipher
from .kdf import (
    Purpose,
    KeyMaterial,
    derive,
    derive_key,
    derive_nonce,
    derive_key_and_nonce,
    derive_key_material,
    generate_key_material,
)
from .envelope import Envelope, seal, open, open_bytes, parse, is_sealed, detect_algorithm
from .stores import EnvironmentStore, ProcessEnvironment, MemoryEnvironment, EnvFileStore
from .config import EnvEncConfig
from .pipeline import (
    DecryptResult,
    DecryptReport,
    EnvEncryptor,
    set_encrypted,
    decrypt_all,
    get_plain,
)

__all__ = [
    "__version__",
    "EnvEncError",
    "InvalidKeyMaterial",
    "AuthenticationFailure",
    "MalformedEnvelope",
    "AlgorithmMismatch",
    "UnsupportedAlgorithm",
    "CipherAlgorithm",
    "Cipher",
    "get_cipher",
    "Purpose",
    "KeyMaterial",
    "derive",
    "derive_key",
    "derive_nonce",
    "derive_key_and_nonce",
    "derive_key_material",
    "generate_key_material",
    "Envelope",
    "seal",
    "open",
    "open_bytes",
    "parse",
    "is_sealed",
    "detect_algorithm",
    "EnvironmentStore",
    "ProcessEnvironment",
    "MemoryEnvironment",
    "EnvFileStore",
    "EnvEncConfig",
    "DecryptResult",
    "DecryptReport",
    "EnvEncryptor",
    "set_encrypted",
    "decrypt_all",
    "get_plain",
]
