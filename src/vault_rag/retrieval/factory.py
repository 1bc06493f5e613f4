"""Select the vector-store backend once, from settings."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from vault_rag.errors import ConfigurationError
from vault_rag.retrieval.namespace_cache import NamespaceCache
from vault_rag.retrieval.pinecone_store import PineconeVectorStore
from vault_rag.retrieval.qdrant_store import QdrantVectorStore

if TYPE_CHECKING:
    from vault_rag.config import Settings
    from vault_rag.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)


def create_vector_store(settings: Settings, cache: NamespaceCache | None = None) -> VectorStoreBase:
    """Build the backend named by ``settings.vector_backend``.

    Raises
    ------
    ConfigurationError
        If the selected backend is missing its endpoint or key.
    """
    settings.validate_backend()
    cache = cache if cache is not None else NamespaceCache()

    if settings.vector_backend == "qdrant":
        logger.info("Using Qdrant vector store at %s", settings.qdrant_api_endpoint)
        return QdrantVectorStore(
            settings.qdrant_api_endpoint,
            settings.qdrant_api_key or None,
            vector_size=settings.embedding_dim,
            distance=settings.qdrant_distance,
            cache=cache,
            timeout=settings.http_timeout,
        )
    if settings.vector_backend == "pinecone":
        logger.info("Using Pinecone vector store at %s", settings.pinecone_api_endpoint)
        return PineconeVectorStore(
            settings.pinecone_api_endpoint,
            settings.pinecone_api_key,
            cache=cache,
            timeout=settings.http_timeout,
        )
    raise ConfigurationError(f"Unsupported vector_backend={settings.vector_backend!r}")
