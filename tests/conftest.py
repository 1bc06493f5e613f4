"""Shared pytest configuration and fixtures.

All unit tests run **without** OpenAI, Pinecone or Qdrant: embeddings come
from a deterministic bag-of-words fake and vectors live in memory.
"""

from __future__ import annotations

import hashlib
import math
from typing import Callable

import pytest
from langchain_core.embeddings import Embeddings

from vault_rag.models import QueryMatch, VectorRecord
from vault_rag.retrieval.base import VectorStoreBase
from vault_rag.retrieval.namespace_cache import NamespaceCache

EMBEDDING_DIM = 256


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fakes ─────────────────────────────────────────────────────────────


class FakeEmbeddings(Embeddings):
    """Hashes words into a fixed-size, L2-normalised bag-of-words vector."""

    def __init__(self, dim: int = EMBEDDING_DIM) -> None:
        self.dim = dim
        self.calls: list[list[str]] = []

    def _vector(self, text: str) -> list[float]:
        vec = [0.0] * self.dim
        for word in text.lower().replace("?", " ").replace(".", " ").split():
            bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % self.dim
            vec[bucket] += 1.0
        norm = math.sqrt(sum(v * v for v in vec)) or 1.0
        return [v / norm for v in vec]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self._vector(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        return self._vector(text)


class InMemoryVectorStore(VectorStoreBase):
    """Dict-backed store that ranks by dot product."""

    upsert_batch_size = 100

    def __init__(self, cache: NamespaceCache | None = None) -> None:
        super().__init__("memory://", cache=cache)
        self.namespaces: dict[str, dict[str, VectorRecord]] = {}
        self.probes = 0
        self.creates = 0
        self.upsert_calls = 0

    def _namespace_exists(self, uuid: str) -> bool:
        self.probes += 1
        return uuid in self.namespaces

    def _create_namespace(self, uuid: str) -> None:
        self.creates += 1
        self.namespaces[uuid] = {}

    def _upsert_records(self, records: list[VectorRecord], uuid: str) -> None:
        self.upsert_calls += 1
        for record in records:
            self.namespaces[uuid][record.id] = record

    def retrieve(self, query_vector: list[float], top_k: int, uuid: str) -> list[QueryMatch]:
        scored = [
            QueryMatch(
                id=r.id,
                score=sum(a * b for a, b in zip(query_vector, r.vector)),
                metadata=r.payload,
            )
            for r in self.namespaces.get(uuid, {}).values()
        ]
        scored.sort(key=lambda m: m.score, reverse=True)
        return scored[:top_k]

    def health_check(self) -> bool:
        return True


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest.fixture()
def namespace_cache() -> NamespaceCache:
    return NamespaceCache()


@pytest.fixture()
def fake_embeddings() -> FakeEmbeddings:
    return FakeEmbeddings()


@pytest.fixture()
def memory_store(namespace_cache: NamespaceCache) -> InMemoryVectorStore:
    return InMemoryVectorStore(cache=namespace_cache)


@pytest.fixture()
def token_counter() -> Callable[[str], int]:
    """Whitespace tokenizer used instead of tiktoken."""
    return lambda text: len(text.split())
