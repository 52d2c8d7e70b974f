"""
Local JSON-file mirror.

One file per key under a root directory. Each file holds
{"version": n, "payload": ...}. Used as the mirror and fallback provider
when the remote store is unreachable.
"""

import json
import logging
import os
from pathlib import Path
from threading import Lock
from typing import Any
from urllib.parse import quote

from cardledger.models.failure import ConcurrentModificationError
from cardledger.storage.base import BlobWrite, ProviderUnavailableError, VersionedBlob

logger = logging.getLogger(__name__)


def key_filename(key: str) -> str:
    """
    Map a logical key to a file name ("ledger/p1" -> "ledger%2Fp1.json").

    Percent-encoding keeps the mapping one-to-one, so distinct keys never
    share a file.
    """
    return f"{quote(key, safe='')}.json"


class FileBlobStore:
    name = "file"

    def __init__(self, root: Path | str):
        self.root = Path(root)
        self._lock = Lock()

    def _path(self, key: str) -> Path:
        return self.root / key_filename(key)

    def _read(self, key: str) -> VersionedBlob | None:
        path = self._path(key)
        if not path.exists():
            return None
        with open(path, encoding="utf-8") as f:
            doc = json.load(f)
        if not isinstance(doc, dict) or "version" not in doc:
            # Bare document written by an older mirror
            return VersionedBlob(key=key, version=1, payload=doc)
        return VersionedBlob(key=key, version=int(doc["version"]), payload=doc.get("payload"))

    def _write(self, key: str, version: int, payload: Any) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump({"version": version, "payload": payload}, f, indent=2)
        os.replace(tmp, path)

    async def load(self, key: str) -> VersionedBlob | None:
        try:
            with self._lock:
                return self._read(key)
        except (OSError, ValueError) as e:
            raise ProviderUnavailableError(self.name, f"{type(e).__name__}: {key}") from e

    async def commit(self, writes: list[BlobWrite]) -> dict[str, int]:
        try:
            with self._lock:
                self.root.mkdir(parents=True, exist_ok=True)

                # Check every version before touching any file
                for write in writes:
                    current = self._read(write.key)
                    actual = current.version if current else 0
                    if actual != write.expected_version:
                        raise ConcurrentModificationError(
                            write.key, expected=write.expected_version, actual=actual
                        )

                versions: dict[str, int] = {}
                for write in writes:
                    versions[write.key] = write.expected_version + 1
                    self._write(write.key, versions[write.key], write.payload)
        except (OSError, ValueError) as e:
            raise ProviderUnavailableError(self.name, type(e).__name__) from e

        logger.debug("FILE_COMMIT", extra={"keys": sorted(versions)})
        return versions

    async def replicate(self, blobs: list[VersionedBlob]) -> None:
        try:
            with self._lock:
                self.root.mkdir(parents=True, exist_ok=True)
                for blob in blobs:
                    current = self._read(blob.key)
                    if current is None or current.version < blob.version:
                        self._write(blob.key, blob.version, blob.payload)
        except (OSError, ValueError) as e:
            raise ProviderUnavailableError(self.name, type(e).__name__) from e

    async def ping(self) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ProviderUnavailableError(self.name, type(e).__name__) from e
        if not os.access(self.root, os.W_OK):
            raise ProviderUnavailableError(self.name, f"{self.root} is not writable")
