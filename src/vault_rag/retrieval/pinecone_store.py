"""Pinecone implementation of the vector-store abstraction.

One index serves every tenant; each tenant is a namespace inside it.
Pinecone creates namespaces on first write, so provisioning only needs
to record the namespace in the cache.
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


def _pinecone_vector(record: VectorRecord) -> dict[str, Any]:
    return {
        "ID": record.id,
        "Values": record.vector,
        "Metadata": {
            "file_name": record.payload.title,
            "title": record.payload.title,
            "text": record.payload.text,
            "start": str(record.payload.start),
            "end": str(record.payload.end),
        },
    }


def _parse_matches(data: dict[str, Any]) -> list[QueryMatch]:
    results = first_key(data, "Results", "results", default=[]) or []
    if results:
        raw_matches = first_key(results[0], "Matches", "matches", default=[]) or []
    else:
        raw_matches = first_key(data, "Matches", "matches", default=[]) or []
    return [
        QueryMatch(
            id=str(first_key(m, "ID", "id", default="")),
            score=float(first_key(m, "Score", "score", default=0.0)),
            metadata=MatchMetadata.model_validate(first_key(m, "Metadata", "metadata", default={}) or {}),
        )
        for m in raw_matches
    ]


class PineconeVectorStore(VectorStoreBase):
    """Pinecone-backed vector store.

    Parameters
    ----------
    endpoint:
        Index URL, e.g. ``https://my-index-abc123.svc.us-east1-gcp.pinecone.io``.
    api_key:
        Pinecone API key, sent as the ``Api-Key`` header.
    """

    upsert_batch_size = 100

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        *,
        cache: NamespaceCache | None = None,
        session: requests.Session | None = None,
        timeout: float = 30.0,
    ) -> None:
        super().__init__(endpoint, cache=cache, session=session, timeout=timeout)
        self._api_key = api_key

    def _headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json", "Api-Key": self._api_key}

    # -- VectorStoreBase overrides --------------------------------------------

    def _namespace_exists(self, uuid: str) -> bool:
        try:
            resp = self._request("POST", "/describe_index_stats", json={})
        except requests.RequestException as exc:
            raise NamespaceError(f"Error probing namespace {uuid}: {exc}") from exc
        if not resp.ok:
            raise NamespaceError(
                f"Error probing namespace {uuid}: status {resp.status_code}", status_code=resp.status_code
            )
        try:
            namespaces = first_key(resp.json(), "namespaces", "Namespaces", default={}) or {}
        except (ValueError, TypeError) as exc:
            raise NamespaceError(f"Malformed index stats for namespace {uuid}: {exc}") from exc
        return uuid in namespaces

    def _create_namespace(self, uuid: str) -> None:
        # Materialised by the first upsert carrying this namespace.
        logger.debug("Namespace %s will be created on first write", uuid)

    def _upsert_records(self, records: list[VectorRecord], uuid: str) -> None:
        body = {"Vectors": [_pinecone_vector(r) for r in records], "Namespace": uuid}
        try:
            resp = self._request("POST", "/vectors/upsert", json=body)
        except requests.RequestException as exc:
            raise UpsertError(f"Error upserting embeddings to vector DB: {exc}") from exc
        if not resp.ok:
            raise UpsertError(
                f"Error upserting embeddings to vector DB: status {resp.status_code}: {resp.text}",
                status_code=resp.status_code,
            )

    def retrieve(self, query_vector: list[float], top_k: int, uuid: str) -> list[QueryMatch]:
        body = {
            "TopK": top_k,
            "IncludeMetadata": True,
            "Namespace": uuid,
            "Queries": [{"Values": query_vector}],
        }
        try:
            resp = self._request("POST", "/query", json=body)
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
            resp = self._request("POST", "/describe_index_stats", json={})
            return resp.ok
        except requests.RequestException:
            logger.warning("Pinecone health-check failed", exc_info=True)
            return False
