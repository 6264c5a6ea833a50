"""Blob stores that hold bundler output keyed by asset path."""

import base64
import binascii
from pathlib import PurePosixPath
from typing import Dict, Iterator, Mapping, Protocol


class OutputStore(Protocol):
    def write(self, path: str, data: bytes) -> None: ...

    def read(self, path: str) -> bytes: ...

    def exists(self, path: str) -> bool: ...


class MemoryOutputStore:
    """In-memory store; one instance per build so outputs never collide."""

    def __init__(self) -> None:
        self._files: Dict[str, bytes] = {}

    @staticmethod
    def _key(path: str) -> str:
        return PurePosixPath(path).as_posix().lstrip("/")

    def write(self, path: str, data: bytes) -> None:
        self._files[self._key(path)] = bytes(data)

    def read(self, path: str) -> bytes:
        try:
            return self._files[self._key(path)]
        except KeyError:
            raise FileNotFoundError(path) from None

    def exists(self, path: str) -> bool:
        return self._key(path) in self._files

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._files))

    def __len__(self) -> int:
        return len(self._files)

    def load_encoded(self, files: Mapping[str, str]) -> None:
        """Store base64-encoded file contents keyed by asset path.

        Raises:
            ValueError: If an entry is not valid base64
        """
        for path, encoded in files.items():
            try:
                self.write(path, base64.b64decode(encoded, validate=True))
            except binascii.Error as exc:
                raise ValueError(f"Asset {path} is not valid base64: {exc}") from exc
