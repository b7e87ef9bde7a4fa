"""Object storage module for showtape."""

from pathlib import Path

from showtape.storage.auth import (
    AuthStrategy,
    ManagedIdentityAuth,
    ServicePrincipalAuth,
    StoreCredential,
)
from showtape.storage.base import ObjectStore
from showtape.storage.local import LocalObjectStore
from showtape.storage.retention import RetentionEnforcer, select_expired
from showtape.storage.uploader import Uploader


def open_store(root: Path, account: str, credential: StoreCredential) -> ObjectStore:
    """Open the object store for ``account``.

    The local backend keeps one directory per account and needs no
    credential beyond filesystem access; the credential is accepted so all
    backends share one factory signature.
    """
    return LocalObjectStore(Path(root) / account)


__all__ = [
    "AuthStrategy",
    "ManagedIdentityAuth",
    "ServicePrincipalAuth",
    "StoreCredential",
    "ObjectStore",
    "LocalObjectStore",
    "RetentionEnforcer",
    "select_expired",
    "Uploader",
    "open_store",
]
