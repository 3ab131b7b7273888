"""Google Cloud Storage adapter.

The client library is synchronous, so every call runs in a worker thread.
There is no atomic cross-bucket move; callers compose ``copy`` and ``delete``.
"""

import asyncio
import logging
from collections.abc import Callable, Iterator
from typing import Any

from google.api_core import exceptions as gcp_exceptions
from google.cloud import storage

from workstay.config import GCPSettings
from workstay.errors import NotFoundError, StorageError

logger = logging.getLogger("workstay.storage")

CHUNK_SIZE = 256 * 1024


class ObjectStore:
    def __init__(self, client: storage.Client):
        self.client = client

    @classmethod
    def from_settings(cls, settings: GCPSettings) -> "ObjectStore":
        return cls(storage.Client(project=settings.project_id or None))

    def _blob(self, bucket: str, key: str) -> storage.Blob:
        return self.client.bucket(bucket).blob(key)

    async def _run(self, op: str, bucket: str, key: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except gcp_exceptions.GoogleAPIError as e:
            logger.error("storage.%s failed bucket=%s key=%s err=%r", op, bucket, key, e)
            raise StorageError(detail=f"storage {op} failed", bucket=bucket, key=key, reason=str(e)) from e

    async def put(self, bucket: str, key: str, data: bytes, content_type: str | None = None) -> None:
        blob = self._blob(bucket, key)
        await self._run("put", bucket, key, blob.upload_from_string, data, content_type=content_type)
        logger.debug("storage.put bucket=%s key=%s bytes=%d", bucket, key, len(data))

    async def copy(self, src_bucket: str, src_key: str, dst_bucket: str, dst_key: str) -> None:
        source = self.client.bucket(src_bucket)
        await self._run(
            "copy",
            src_bucket,
            src_key,
            source.copy_blob,
            source.blob(src_key),
            self.client.bucket(dst_bucket),
            dst_key,
        )

    async def delete(self, bucket: str, key: str) -> None:
        await self._run("delete", bucket, key, self._blob(bucket, key).delete)

    async def exists(self, bucket: str, key: str) -> bool:
        return await self._run("exists", bucket, key, self._blob(bucket, key).exists)

    async def get(self, bucket: str, key: str) -> Iterator[bytes]:
        """Return a chunk iterator over the object's content."""
        blob = self._blob(bucket, key)
        try:
            await asyncio.to_thread(blob.reload)
        except gcp_exceptions.NotFound as e:
            raise NotFoundError(detail="image content not found", bucket=bucket, key=key) from e
        except gcp_exceptions.GoogleAPIError as e:
            logger.error("storage.get failed bucket=%s key=%s err=%r", bucket, key, e)
            raise StorageError(detail="storage get failed", bucket=bucket, key=key) from e

        def _chunks() -> Iterator[bytes]:
            with blob.open("rb") as reader:
                while chunk := reader.read(CHUNK_SIZE):
                    yield chunk

        return _chunks()
