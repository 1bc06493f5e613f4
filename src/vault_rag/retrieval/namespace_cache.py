"""Process-wide memo of tenant namespaces that are known to exist."""

from __future__ import annotations

import threading


class NamespaceCache:
    """Thread-safe ``uuid -> provisioned`` map shared by all ingestion workers.

    Entries live for the lifetime of the process. :meth:`discard` exists
    only for the case where a backend tells us a cached namespace is gone.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._provisioned: dict[str, bool] = {}
        self._key_locks: dict[str, threading.Lock] = {}

    def has(self, uuid: str) -> bool:
        with self._lock:
            return self._provisioned.get(uuid, False)

    def mark_provisioned(self, uuid: str) -> None:
        with self._lock:
            self._provisioned[uuid] = True

    def discard(self, uuid: str) -> None:
        with self._lock:
            self._provisioned.pop(uuid, None)

    def lock_for(self, uuid: str) -> threading.Lock:
        """Return the lock serialising provisioning of *uuid*."""
        with self._lock:
            lock = self._key_locks.get(uuid)
            if lock is None:
                lock = self._key_locks[uuid] = threading.Lock()
            return lock

    def __len__(self) -> int:
        with self._lock:
            return len(self._provisioned)
