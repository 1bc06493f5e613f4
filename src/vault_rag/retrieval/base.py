"""Abstract base class for vector-store backends.

Adding a new backend only requires subclassing :class:`VectorStoreBase`
and implementing the abstract hooks. Namespace provisioning, the
chunk/embedding pairing and the record ids are shared by every backend.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import requests

from vault_rag.models import Chunk, QueryMatch, VectorRecord
from vault_rag.retrieval.namespace_cache import NamespaceCache

logger = logging.getLogger(__name__)


def first_key(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the value of the first of *keys* present in *data*."""
    for key in keys:
        if key in data:
            return data[key]
    return default


class VectorStoreBase(ABC):
    """Tenant-scoped vector storage.

    Parameters
    ----------
    endpoint:
        Base URL of the backend REST API.
    cache:
        Namespace cache; pass the same instance to every store in the
        process so that provisioning is shared.
    session:
        ``requests.Session`` used for every call (injected in tests).
    timeout:
        Per-request timeout in seconds.
    """

    #: Maximum records per upsert request.
    upsert_batch_size: int = 100

    def __init__(
        self,
        endpoint: str,
        *,
        cache: NamespaceCache | None = None,
        session: requests.Session | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.cache = cache if cache is not None else NamespaceCache()
        self._session = session if session is not None else requests.Session()
        self.timeout = timeout

    # -- shared behaviour -----------------------------------------------------

    def ensure_namespace(self, uuid: str) -> None:
        """Make sure the namespace for *uuid* exists; idempotent.

        The cache is consulted first; on a miss a live probe decides whether
        to create it. Only a successful probe or creation is cached.

        Raises
        ------
        NamespaceError
            If the probe or the creation call fails.
        """
        if self.cache.has(uuid):
            return
        with self.cache.lock_for(uuid):
            if self.cache.has(uuid):
                return
            if self._namespace_exists(uuid):
                logger.info("Namespace %s already exists", uuid)
            else:
                self._create_namespace(uuid)
                logger.info("Created namespace %s", uuid)
            self.cache.mark_provisioned(uuid)

    def upsert_embeddings(self, embeddings: list[list[float]], chunks: list[Chunk], uuid: str) -> int:
        """Store ``embeddings[i]`` with the metadata of ``chunks[i]``.

        Indices beyond the shorter of the two sequences are ignored.
        Returns the number of records written.

        Raises
        ------
        NamespaceError
            If the namespace cannot be provisioned.
        UpsertError
            If the backend rejects a batch.
        """
        self.ensure_namespace(uuid)
        records = [VectorRecord.from_chunk(chunk, vector, uuid) for vector, chunk in zip(embeddings, chunks)]
        if len(embeddings) != len(chunks):
            logger.warning(
                "Got %d embeddings for %d chunks; writing %d records",
                len(embeddings), len(chunks), len(records),
            )
        for start in range(0, len(records), self.upsert_batch_size):
            batch = records[start : start + self.upsert_batch_size]
            self._upsert_records(batch, uuid)
            logger.info("  upserted %d-%d of %d into %s", start, start + len(batch), len(records), uuid)
        return len(records)

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def _namespace_exists(self, uuid: str) -> bool:
        """Live probe: does the backend already hold the namespace?"""
        ...

    @abstractmethod
    def _create_namespace(self, uuid: str) -> None:
        """Create the namespace for *uuid*."""
        ...

    @abstractmethod
    def _upsert_records(self, records: list[VectorRecord], uuid: str) -> None:
        """Write one batch (at most ``upsert_batch_size`` records)."""
        ...

    @abstractmethod
    def retrieve(self, query_vector: list[float], top_k: int, uuid: str) -> list[QueryMatch]:
        """Return the *top_k* matches for *query_vector*, best first.

        Raises
        ------
        RetrievalError
            If the backend rejects the search.
        """
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...

    # -- helpers ----------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        kwargs.setdefault("headers", self._headers())
        return self._session.request(method, f"{self.endpoint}{path}", **kwargs)

    def _headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}
