"""Qdrant implementation of the vector-store abstraction.

Every tenant gets a dedicated collection named after its UUID. The
collection must be created with a fixed vector size and distance metric
before the first write.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from vault_rag.errors import NamespaceError, RetrievalError, UpsertError
from vault_rag.models import MatchMetadata, QueryMatch, VectorRecord
from vault_rag.retrieval.base import VectorStoreBase, first_key
from vault_rag.retrieval.namespace_cache import NamespaceCache

logger = logging.getLogger(__name__)

VECTOR_SIZE = 1536  # text-embedding-ada-002
VECTOR_DISTANCE = "Cosine"


def _qdrant_point(record: VectorRecord) -> dict[str, Any]:
    return {
        "ID": record.id,
        "Vector": record.vector,
        "Payload": record.payload.model_dump(),
    }


def _parse_matches(data: dict[str, Any]) -> list[QueryMatch]:
    hits = first_key(data, "result", "Result", default=[]) or []
    return [
        QueryMatch(
            id=str(first_key(h, "id", "ID", default="")),
            score=float(first_key(h, "score", "Score", default=0.0)),
            metadata=MatchMetadata.model_validate(first_key(h, "payload", "Payload", default={}) or {}),
        )
        for h in hits
    ]


class QdrantVectorStore(VectorStoreBase):
    """Qdrant-backed vector store.

    Parameters
    ----------
    endpoint:
        Qdrant REST URL, e.g. ``http://localhost:6333``.
    api_key:
        Optional key sent as the ``api-key`` header (Qdrant Cloud).
    vector_size:
        Dimension used when creating tenant collections.
    distance:
        Distance metric used when creating tenant collections.
    """

    upsert_batch_size = 500

    def __init__(
        self,
        endpoint: str,
        api_key: str | None = None,
        *,
        vector_size: int = VECTOR_SIZE,
        distance: str = VECTOR_DISTANCE,
        cache: NamespaceCache | None = None,
        session: requests.Session | None = None,
        timeout: float = 30.0,
    ) -> None:
        super().__init__(endpoint, cache=cache, session=session, timeout=timeout)
        self._api_key = api_key
        self.vector_size = vector_size
        self.distance = distance

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["api-key"] = self._api_key
        return headers

    # -- VectorStoreBase overrides --------------------------------------------

    def _namespace_exists(self, uuid: str) -> bool:
        try:
            resp = self._request("GET", f"/collections/{uuid}")
        except requests.RequestException as exc:
            raise NamespaceError(f"Error probing collection {uuid}: {exc}") from exc
        if resp.status_code == 200:
            return True
        if resp.status_code == 404:
            return False
        raise NamespaceError(
            f"Error probing collection {uuid}: status {resp.status_code}", status_code=resp.status_code
        )

    def _create_namespace(self, uuid: str) -> None:
        body = {"Vectors": {"Size": self.vector_size, "Distance": self.distance}}
        try:
            resp = self._request("PUT", f"/collections/{uuid}", json=body)
        except requests.RequestException as exc:
            raise NamespaceError(f"Error creating collection {uuid}: {exc}") from exc
        if not resp.ok:
            raise NamespaceError(
                f"Error creating collection {uuid}: status {resp.status_code}: {resp.text}",
                status_code=resp.status_code,
            )

    def _upsert_records(self, records: list[VectorRecord], uuid: str) -> None:
        body = {"points": [_qdrant_point(r) for r in records]}
        try:
            resp = self._request("PUT", f"/collections/{uuid}/points", json=body)
        except requests.RequestException as exc:
            raise UpsertError(f"Error upserting embeddings to vector DB: {exc}") from exc
        if resp.status_code == 404:
            # Collection was removed behind our back; re-provision next time.
            self.cache.discard(uuid)
        if not resp.ok:
            raise UpsertError(
                f"Error upserting embeddings to vector DB: status {resp.status_code}: {resp.text}",
                status_code=resp.status_code,
            )

    def retrieve(self, query_vector: list[float], top_k: int, uuid: str) -> list[QueryMatch]:
        body = {"vector": query_vector, "top": top_k, "with_payload": True}
        try:
            resp = self._request("POST", f"/collections/{uuid}/points/search", json=body)
        except requests.RequestException as exc:
            raise RetrievalError(f"Failed to retrieve embeddings: {exc}") from exc
        if not resp.ok:
            raise RetrievalError(
                f"Failed to retrieve embeddings, status code: {resp.status_code}", status_code=resp.status_code
            )

        try:
            matches = _parse_matches(resp.json())
        except (ValueError, TypeError, KeyError) as exc:
            raise RetrievalError(f"Malformed search response from vector DB: {exc}") from exc
        matches.sort(key=lambda m: m.score, reverse=True)
        return matches

    def health_check(self) -> bool:
        try:
            return self._request("GET", "/collections").ok
        except requests.RequestException:
            logger.warning("Qdrant health-check failed", exc_info=True)
            return False
