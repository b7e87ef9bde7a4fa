"""Publish stitched episodes to the object store."""

import logging
from pathlib import Path

from showtape.models import StoredObject
from showtape.storage.base import ObjectStore
from showtape.utils.errors import UploadError
from showtape.utils.retry import RetryExecutor

logger = logging.getLogger(__name__)


class Uploader:
    """Upload a file to the object store under the retry policy."""

    def __init__(self, store: ObjectStore, retry: RetryExecutor | None = None):
        self.store = store
        self.retry = retry or RetryExecutor()

    def upload(self, file_path: Path, container: str, blob_name: str) -> StoredObject:
        """Create or overwrite ``container/blob_name`` with ``file_path``.

        Raises:
            UploadError: If the local file is missing
            Exception: The store's last error once retries are exhausted
        """
        if not file_path.is_file():
            raise UploadError(f"Nothing to upload: {file_path} does not exist")

        logger.info(f"Uploading {file_path.name} to {container}/{blob_name}")
        stored = self.retry.execute(self.store.put, container, blob_name, file_path)
        logger.info(f"Uploaded {container}/{blob_name} ({stored.size_bytes} bytes)")
        return stored
