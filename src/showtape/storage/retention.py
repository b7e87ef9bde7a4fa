"""Keep the newest N episodes of a series, delete the rest."""

import logging
import re

from showtape.models import StoredObject
from showtape.storage.base import ObjectStore
from showtape.utils.retry import RetryExecutor

logger = logging.getLogger(__name__)


def select_expired(objects: list[StoredObject], keep_count: int) -> list[StoredObject]:
    """Return the objects beyond the ``keep_count`` most recently modified.

    Sorting is stable, so objects with equal timestamps keep their listing
    order; which of them survives a tie depends on the store's listing.
    """
    if keep_count < 0:
        raise ValueError(f"keep_count must be >= 0, got {keep_count}")

    newest_first = sorted(objects, key=lambda obj: obj.last_modified, reverse=True)
    return newest_first[keep_count:]


class RetentionEnforcer:
    """Delete old objects from a container, keeping the newest ``keep_count``.

    Listing and deleting run as one retried step: if any delete fails the
    whole pass starts over from a fresh listing. Deleting an object that is
    already gone counts as success, so a repeated pass is harmless.

    ``prefix`` narrows the listing on the store side; ``pattern`` must then
    match the whole key for an object to count towards the series.
    """

    def __init__(self, store: ObjectStore, retry: RetryExecutor | None = None):
        self.store = store
        self.retry = retry or RetryExecutor()

    def plan(
        self,
        container: str,
        keep_count: int,
        prefix: str = "",
        pattern: re.Pattern[str] | None = None,
    ) -> list[str]:
        """Keys that ``enforce`` would delete, without deleting anything."""
        objects = self.retry.execute(self._list, container, prefix, pattern)
        return [obj.key for obj in select_expired(objects, keep_count)]

    def enforce(
        self,
        container: str,
        keep_count: int,
        prefix: str = "",
        pattern: re.Pattern[str] | None = None,
    ) -> list[str]:
        """Apply the retention policy.

        Args:
            container: Container holding the series' episodes
            keep_count: Number of most recent objects to keep
            prefix: Only list keys starting with this prefix
            pattern: Only consider keys this pattern fully matches

        Returns:
            Keys of the deleted objects, newest first
        """
        if keep_count < 0:
            raise ValueError(f"keep_count must be >= 0, got {keep_count}")

        deleted = self.retry.execute(self._enforce_once, container, keep_count, prefix, pattern)
        if deleted:
            logger.info(f"Retention removed {len(deleted)} object(s) from {container}")
        else:
            logger.info(f"Retention: nothing to remove from {container} (keep {keep_count})")
        return deleted

    def _list(
        self, container: str, prefix: str, pattern: re.Pattern[str] | None
    ) -> list[StoredObject]:
        objects = self.store.list(container, prefix)
        if pattern is None:
            return objects
        return [obj for obj in objects if pattern.fullmatch(obj.key)]

    def _enforce_once(
        self,
        container: str,
        keep_count: int,
        prefix: str,
        pattern: re.Pattern[str] | None,
    ) -> list[str]:
        expired = select_expired(self._list(container, prefix, pattern), keep_count)

        deleted = []
        for obj in expired:
            self.store.delete(container, obj.key)
            logger.debug(f"Deleted {container}/{obj.key} (modified {obj.last_modified})")
            deleted.append(obj.key)
        return deleted
