"""
EnvEnc Pipeline — encrypt values into a store, restore them into an environment.

Provides:
- ``set_encrypted(name, plaintext, ...)`` — seal and write to the .env store
- ``decrypt_all(entries, ...)`` — open every sealed entry, set successes
- ``get_plain(name, ...)`` — read a restored value, ``None`` when absent
- ``EnvEncryptor`` — the three above bound to a config, stores and keys

Security Note:
    Only variable names and counts are logged. Failed entries are never
    written to the environment, neither as plaintext nor as sealed text.
"""
import logging
from dataclasses import dataclass, field
from collections.abc import Iterator, Mapping
from typing import Optional, Union

from .ciphers import CipherAlgorithm, check_key_material
from .config import EnvEncConfig
from .envelope import is_sealed, open, seal
from .exceptions import (
    AlgorithmMismatch,
    AuthenticationFailure,
    EnvEncError,
    MalformedEnvelope,
)
from .kdf import KeyMaterial, derive_key_material
from .stores import EnvFileStore, EnvironmentStore, ProcessEnvironment

logger = logging.getLogger("envenc")

_ENTRY_ERRORS = (AuthenticationFailure, MalformedEnvelope, AlgorithmMismatch)


@dataclass(frozen=True)
class DecryptResult:
    """Outcome of opening one stored entry."""

    name: str
    value: Optional[str] = field(default=None, repr=False)
    error: Optional[EnvEncError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DecryptReport(Mapping[str, DecryptResult]):
    """Per-name results of :func:`decrypt_all`."""

    def __init__(self, results: Optional[dict[str, DecryptResult]] = None):
        self._results: dict[str, DecryptResult] = dict(results or {})

    def add(self, result: DecryptResult) -> None:
        self._results[result.name] = result

    def __getitem__(self, name: str) -> DecryptResult:
        return self._results[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._results)

    def __len__(self) -> int:
        return len(self._results)

    @property
    def succeeded(self) -> list[str]:
        return [name for name, result in self._results.items() if result.ok]

    @property
    def failed(self) -> list[str]:
        return [name for name, result in self._results.items() if not result.ok]

    def values_by_name(self) -> dict[str, str]:
        """Plaintext of every successful entry."""
        return {
            name: result.value
            for name, result in self._results.items()
            if result.ok
        }

    def __repr__(self) -> str:
        return (
            f"<DecryptReport succeeded={len(self.succeeded)} "
            f"failed={len(self.failed)}>"
        )


# ---------------------------------------------------------------------------
# Pipeline operations
# ---------------------------------------------------------------------------

def set_encrypted(
    name: str,
    plaintext: str,
    algorithm: CipherAlgorithm,
    key: bytes,
    nonce: bytes,
    store: EnvironmentStore,
) -> str:
    """Seal ``plaintext`` and write it to ``store`` under ``name``.

    The process environment is not touched.

    Returns:
        The sealed string that was written.
    """
    if not name:
        raise ValueError("variable name cannot be empty")
    sealed = seal(algorithm, key, nonce, plaintext)
    store.set(name, sealed)
    logger.debug("Sealed %s with %s", name, CipherAlgorithm.from_name(algorithm))
    return sealed


def decrypt_all(
    entries: Mapping[str, str],
    algorithm: CipherAlgorithm,
    key: bytes,
    nonce: bytes,
    environment: EnvironmentStore,
    *,
    skip_plain: bool = True,
) -> DecryptReport:
    """Open every sealed entry and set the plaintext in ``environment``.

    Failures are isolated per entry: an entry that does not authenticate,
    cannot be parsed, or was sealed with another algorithm is reported and
    left out of ``environment``.

    Args:
        entries: Mapping of variable name to stored string.
        algorithm: Algorithm the caller expects values to be sealed with.
        key: Derived key.
        nonce: Derived base nonce.
        environment: Receives ``(name, plaintext)`` for each success.
        skip_plain: Ignore values that are not sealed at all (ordinary
            variables living in the same file). When False they are
            reported as :class:`MalformedEnvelope`.

    Returns:
        A :class:`DecryptReport` keyed by variable name.

    Raises:
        InvalidKeyMaterial: If key or nonce has the wrong length; this
            concerns every entry and aborts the batch.
    """
    check_key_material(CipherAlgorithm.from_name(algorithm), key, nonce)
    report = DecryptReport()
    for name, stored in entries.items():
        if skip_plain and not is_sealed(stored):
            logger.debug("Skipping plain value %s", name)
            continue
        try:
            plaintext = open(algorithm, key, nonce, stored)
        except _ENTRY_ERRORS as err:
            logger.warning("Could not decrypt %s: %s", name, type(err).__name__)
            report.add(DecryptResult(name=name, error=err))
            continue
        environment.set(name, plaintext)
        report.add(DecryptResult(name=name, value=plaintext))
    logger.info(
        "Decrypted %d value(s), %d failure(s)",
        len(report.succeeded), len(report.failed),
    )
    return report


def get_plain(name: str, environment: EnvironmentStore) -> Optional[str]:
    """Return the value of ``name`` in ``environment``, or None if absent."""
    return environment.get(name)


# ---------------------------------------------------------------------------
# Facade
# ---------------------------------------------------------------------------

class EnvEncryptor:
    """Pipeline bound to key material, a .env store and an environment.

    Typical use::

        with EnvEncryptor.from_passwords("keypw", "noncepw") as enc:
            enc.set_encrypted("DATABASE_URL", "postgres://...")
            enc.decrypt_all()
            enc.get_plain("DATABASE_URL")

    Key material is wiped by :meth:`close` or on leaving the ``with`` block.
    """

    def __init__(
        self,
        material: KeyMaterial,
        config: Optional[EnvEncConfig] = None,
        store: Optional[EnvFileStore] = None,
        environment: Optional[EnvironmentStore] = None,
    ):
        self.config = config or EnvEncConfig()
        if material.algorithm is not self.config.algorithm:
            raise ValueError(
                f"key material is for {material.algorithm}, "
                f"config selects {self.config.algorithm}"
            )
        self._material = material
        self.store = store if store is not None else EnvFileStore(self.config.env_file)
        self.environment = environment if environment is not None else ProcessEnvironment()

    @classmethod
    def from_passwords(
        cls,
        key_password: Union[str, bytes],
        nonce_password: Optional[Union[str, bytes]] = None,
        config: Optional[EnvEncConfig] = None,
        store: Optional[EnvFileStore] = None,
        environment: Optional[EnvironmentStore] = None,
    ) -> "EnvEncryptor":
        """Derive key material from passwords and build an encryptor.

        ``nonce_password`` defaults to ``key_password``.
        """
        config = config or EnvEncConfig.from_env()
        if nonce_password is None:
            nonce_password = key_password
        material = derive_key_material(
            (key_password, nonce_password),
            config.algorithm,
            config.kdf_iterations,
        )
        return cls(material, config=config, store=store, environment=environment)

    @property
    def algorithm(self) -> CipherAlgorithm:
        return self._material.algorithm

    @property
    def closed(self) -> bool:
        return self._material.wiped

    def set_encrypted(self, name: str, plaintext: str) -> str:
        """Seal ``plaintext`` into the .env store under ``name``."""
        return set_encrypted(
            name,
            plaintext,
            self.algorithm,
            self._material.key,
            self._material.nonce,
            self.store,
        )

    def decrypt_all(self, entries: Optional[Mapping[str, str]] = None) -> DecryptReport:
        """Restore sealed values into the environment.

        Reads the .env store when ``entries`` is omitted.
        """
        if entries is None:
            entries = self.store.read()
        return decrypt_all(
            entries,
            self.algorithm,
            self._material.key,
            self._material.nonce,
            self.environment,
            skip_plain=self.config.skip_plain,
        )

    def get_plain(self, name: str) -> Optional[str]:
        return get_plain(name, self.environment)

    def close(self) -> None:
        self._material.wipe()

    def __enter__(self) -> "EnvEncryptor":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
