"""
EnvEnc Stores — the environment table and the .env file behind one interface.

envenc never reaches for ``os.environ`` or the filesystem directly; callers
inject an :class:`EnvironmentStore`.

Concurrency Note:
    :class:`ProcessEnvironment` writes to the process-wide environment
    without locking. Callers writing from several threads must serialise
    their own writes.
"""
import os
import logging
from pathlib import Path
from typing import Optional, Protocol, Union, runtime_checkable

from dotenv import dotenv_values, set_key

logger = logging.getLogger("envenc")


@runtime_checkable
class EnvironmentStore(Protocol):
    """Name to string mapping with optional-value reads."""

    def get(self, name: str) -> Optional[str]:
        ...

    def set(self, name: str, value: str) -> None:
        ...


class ProcessEnvironment:
    """Adapter over ``os.environ``.

    Values set here are visible to the current process and its children.
    """

    def get(self, name: str) -> Optional[str]:
        return os.environ.get(name)

    def set(self, name: str, value: str) -> None:
        os.environ[name] = value


class MemoryEnvironment:
    """Dict-backed environment, for tests and dry runs."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.values: dict[str, str] = dict(initial or {})

    def get(self, name: str) -> Optional[str]:
        return self.values.get(name)

    def set(self, name: str, value: str) -> None:
        self.values[name] = value

    def __contains__(self, name: str) -> bool:
        return name in self.values

    def __len__(self) -> int:
        return len(self.values)


class EnvFileStore:
    """A ``NAME=VALUE`` file read and written through python-dotenv.

    Line syntax, quoting and comments follow python-dotenv. Values are
    written single-quoted.
    """

    def __init__(self, path: Union[str, Path] = ".env", encoding: str = "utf-8"):
        self.path = Path(path)
        self.encoding = encoding

    def read(self) -> dict[str, str]:
        """Return every ``NAME=VALUE`` pair in the file.

        A missing file reads as empty. Names declared without a value are
        left out.
        """
        if not self.path.exists():
            return {}
        values = dotenv_values(self.path, encoding=self.encoding, interpolate=False)
        return {name: value for name, value in values.items() if value is not None}

    def write(self, name: str, value: str) -> None:
        """Insert or replace ``name`` in the file, creating it if needed."""
        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.touch()
        set_key(
            self.path,
            name,
            value,
            quote_mode="always",
            encoding=self.encoding,
        )
        logger.debug("Wrote %s to %s", name, self.path)

    def get(self, name: str) -> Optional[str]:
        return self.read().get(name)

    def set(self, name: str, value: str) -> None:
        self.write(name, value)

    def __repr__(self) -> str:
        return f"<EnvFileStore {self.path}>"
