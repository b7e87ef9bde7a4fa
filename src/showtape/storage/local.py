"""Filesystem-backed object store.

Containers are directories under a root; keys are relative paths inside
them. Writes go through a temp file and an atomic rename, so a listing
never shows a half-written object.
"""

import logging
import os
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from showtape.models import StoredObject
from showtape.utils.errors import StorageError

logger = logging.getLogger(__name__)

_TEMP_PREFIX = ".tmp_"


class LocalObjectStore:
    """Object store on the local filesystem (or a mounted share).

    Example:
        >>> store = LocalObjectStore(Path("/srv/radio"))
        >>> store.put("morning-show", "morning_show_20251107060000.mp3", episode_path)
        >>> [obj.key for obj in store.list("morning-show")]
        ['morning_show_20251107060000.mp3']
    """

    def __init__(self, root: Path):
        """Initialize local store.

        Args:
            root: Directory holding one subdirectory per container
        """
        self.root = Path(root).expanduser()

    def _container_dir(self, container: str) -> Path:
        if not container or container in (".", "..") or "/" in container or "\\" in container:
            raise StorageError(f"Invalid container name: {container!r}")
        return self.root / container

    def _object_path(self, container: str, key: str) -> Path:
        container_dir = self._container_dir(container)
        if not key or "\0" in key or Path(key).is_absolute():
            raise StorageError(f"Invalid object key: {key!r}")

        path = container_dir / key
        try:
            path.resolve().relative_to(container_dir.resolve())
        except ValueError:
            raise StorageError(
                f"Invalid object key: {key!r} resolves outside container {container!r}"
            )
        return path

    def _describe(self, container: str, key: str, path: Path) -> StoredObject:
        stat = path.stat()
        return StoredObject(
            container=container,
            key=key,
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            size_bytes=stat.st_size,
        )

    def put(self, container: str, key: str, source: Path) -> StoredObject:
        """Copy ``source`` into the store, replacing any existing object.

        Raises:
            StorageError: If the key is invalid or the copy fails
        """
        target = self._object_path(container, key)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            temp_fd, temp_path = tempfile.mkstemp(dir=target.parent, prefix=_TEMP_PREFIX)
            try:
                with open(temp_fd, "wb") as out, open(source, "rb") as src:
                    shutil.copyfileobj(src, out)
                    out.flush()
                    os.fsync(out.fileno())
                Path(temp_path).replace(target)
            except BaseException:
                Path(temp_path).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to store {container}/{key}: {e}") from e

        logger.debug(f"Stored {container}/{key}")
        return self._describe(container, key, target)

    def list(self, container: str, prefix: str = "") -> list[StoredObject]:
        """List objects in a container; a missing container is empty."""
        container_dir = self._container_dir(container)
        if not container_dir.is_dir():
            return []

        objects = []
        for path in container_dir.rglob("*"):
            if not path.is_file() or path.name.startswith(_TEMP_PREFIX):
                continue
            key = path.relative_to(container_dir).as_posix()
            if key.startswith(prefix):
                objects.append(self._describe(container, key, path))
        return objects

    def delete(self, container: str, key: str) -> None:
        """Delete an object; deleting a missing key succeeds."""
        path = self._object_path(container, key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete {container}/{key}: {e}") from e
        logger.debug(f"Deleted {container}/{key}")
