"""
Layered storage strategy.

An ordered list of providers. Commits go to the first provider that is
reachable and are then copied to every other provider with the same
version. Loads ask every reachable provider and return the highest
version, copying it back to any provider that lags behind. A provider
that missed writes during an outage is therefore never read as current:
the newer copy wins and repairs it.

Two providers holding different documents at the same version cannot be
reconciled and fail the read with StorageInconsistentError.
"""

import logging

from cardledger.models.failure import StorageInconsistentError, StorageUnavailableError
from cardledger.storage.base import BlobStore, BlobWrite, ProviderUnavailableError, VersionedBlob

logger = logging.getLogger(__name__)


class LayeredBlobStore:
    name = "layered"

    def __init__(self, providers: list[BlobStore]):
        if not providers:
            raise ValueError("LayeredBlobStore needs at least one provider")
        self.providers = providers

    def _provider_failed(
        self, provider: BlobStore, operation: str, e: ProviderUnavailableError
    ) -> None:
        logger.warning(
            "STORAGE_PROVIDER_FAILED",
            extra={"provider": provider.name, "operation": operation, "reason": e.reason},
        )

    async def load(self, key: str) -> VersionedBlob | None:
        failures: list[str] = []
        found: list[tuple[BlobStore, VersionedBlob | None]] = []
        for provider in self.providers:
            try:
                found.append((provider, await provider.load(key)))
            except ProviderUnavailableError as e:
                failures.append(str(e))
                self._provider_failed(provider, "load", e)
        if not found:
            raise StorageUnavailableError("; ".join(failures))

        best: VersionedBlob | None = None
        for _, blob in found:
            if blob is not None and (best is None or blob.version > best.version):
                best = blob
        if best is None:
            return None

        for provider, blob in found:
            if blob is not None and blob.version == best.version and blob.payload != best.payload:
                logger.error(
                    "STORAGE_DIVERGED",
                    extra={"key": key, "version": best.version, "provider": provider.name},
                )
                raise StorageInconsistentError(key, best.version)

        lagging = [p for p, blob in found if blob is None or blob.version < best.version]
        for provider in lagging:
            try:
                await provider.replicate([best])
            except ProviderUnavailableError as e:
                self._provider_failed(provider, "repair", e)
                continue
            logger.info(
                "STORAGE_REPAIRED",
                extra={"key": key, "version": best.version, "provider": provider.name},
            )
        return best

    async def commit(self, writes: list[BlobWrite]) -> dict[str, int]:
        failures: list[str] = []
        for index, provider in enumerate(self.providers):
            try:
                versions = await provider.commit(writes)
            except ProviderUnavailableError as e:
                failures.append(str(e))
                self._provider_failed(provider, "commit", e)
                continue

            copies = [VersionedBlob(w.key, versions[w.key], w.payload) for w in writes]
            for mirror in self.providers[:index] + self.providers[index + 1 :]:
                try:
                    await mirror.replicate(copies)
                except ProviderUnavailableError as e:
                    logger.warning(
                        "MIRROR_WRITE_FAILED",
                        extra={
                            "provider": mirror.name,
                            "keys": sorted(versions),
                            "reason": e.reason,
                        },
                    )
            return versions
        raise StorageUnavailableError("; ".join(failures))

    async def ping(self) -> None:
        """Succeeds if any provider is reachable."""
        failures: list[str] = []
        for provider in self.providers:
            try:
                await provider.ping()
                return
            except ProviderUnavailableError as e:
                failures.append(str(e))
        raise StorageUnavailableError("; ".join(failures))
