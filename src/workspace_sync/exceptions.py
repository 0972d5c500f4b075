"""Exceptions raised by the synchronizer."""

from __future__ import annotations


class SyncError(Exception):
    """Base class for file system synchronization errors."""


class DeltaWalkError(SyncError):
    """Walking a change notification tree failed.

    Fatal for the notification cycle: no batch is sent for it.
    """


class StorageResolutionError(SyncError):
    """A file's location could not be resolved to a storage backend."""

    def __init__(self, uri: str, reason: str):
        self.uri = uri
        self.reason = reason
        super().__init__(f"Cannot resolve storage for {uri}: {reason}")
