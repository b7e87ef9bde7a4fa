"""Object store interface."""

from pathlib import Path
from typing import Protocol, runtime_checkable

from showtape.models import StoredObject


@runtime_checkable
class ObjectStore(Protocol):
    """Key/value store with listing, addressed by container and key.

    Implementations must treat deleting a missing key as success.
    """

    def put(self, container: str, key: str, source: Path) -> StoredObject:
        """Create or overwrite ``container/key`` with the bytes of ``source``."""
        ...

    def list(self, container: str, prefix: str = "") -> list[StoredObject]:
        """List the objects in ``container`` whose key starts with ``prefix``."""
        ...

    def delete(self, container: str, key: str) -> None:
        """Delete ``container/key``; no error if it does not exist."""
        ...
