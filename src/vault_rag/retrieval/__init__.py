"""
Retrieval — tenant-scoped vector storage and search.

This module wraps the vector store behind a clean interface so that the
ingestion and answering layers never need to know which DB is backing them.

Public surface
--------------
- :class:`VectorStoreBase` — abstract backend.
- :class:`PineconeVectorStore` — one index, one namespace per tenant.
- :class:`QdrantVectorStore` — one collection per tenant.
- :class:`NamespaceCache` — shared memo of provisioned tenants.
- :func:`create_vector_store` — pick the backend from settings.
"""

from vault_rag.retrieval.base import VectorStoreBase
from vault_rag.retrieval.factory import create_vector_store
from vault_rag.retrieval.namespace_cache import NamespaceCache
from vault_rag.retrieval.pinecone_store import PineconeVectorStore
from vault_rag.retrieval.qdrant_store import QdrantVectorStore

__all__ = [
    "NamespaceCache",
    "PineconeVectorStore",
    "QdrantVectorStore",
    "VectorStoreBase",
    "create_vector_store",
]
