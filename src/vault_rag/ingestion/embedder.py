"""Batched embedding with bounded retry."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Callable

from langchain_openai import OpenAIEmbeddings

from vault_rag.errors import EmbeddingError

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

    from vault_rag.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 5.0


def get_embedding_backend(settings: Settings, api_key: str | None = None) -> OpenAIEmbeddings:
    """Return the configured OpenAI embedding model.

    *api_key* overrides ``settings.openai_api_key`` for a single caller.

    Raises
    ------
    EmbeddingError
        If the client cannot be built, e.g. no API key is available.
    """
    kwargs: dict = {
        "model": settings.embedding_model,
        "api_key": api_key or settings.openai_api_key,
        # Retries are handled by EmbeddingClient.
        "max_retries": 0,
    }
    if settings.llm_base_url:
        kwargs["base_url"] = settings.llm_base_url
    try:
        return OpenAIEmbeddings(**kwargs)
    except Exception as exc:
        raise EmbeddingError(f"Error creating embedding client: {exc}") from exc


class EmbeddingClient:
    """Turn ordered texts into ordered embedding vectors.

    Long inputs are cut into sub-batches of ``batch_size`` which are sent
    one after another; ``result[i]`` always belongs to ``texts[i]``.

    Parameters
    ----------
    backend:
        Any LangChain ``Embeddings`` implementation.
    model:
        Name of the embedding model, used for logging only.
    batch_size:
        Maximum number of texts per backend call.
    max_retries:
        Attempts per sub-batch before giving up.
    retry_delay:
        Seconds to wait between attempts.
    sleep:
        Injected for tests; defaults to :func:`time.sleep`.
    """

    def __init__(
        self,
        backend: Embeddings,
        *,
        model: str = "",
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if max_retries < 1:
            raise ValueError(f"max_retries must be positive, got {max_retries}")
        self._backend = backend
        self.model = model
        self.batch_size = batch_size
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings, api_key: str | None = None) -> EmbeddingClient:
        return cls(
            get_embedding_backend(settings, api_key),
            model=settings.embedding_model,
            batch_size=settings.embedding_batch_size,
            max_retries=settings.embedding_max_retries,
            retry_delay=settings.embedding_retry_delay,
        )

    # -- public API -----------------------------------------------------------

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts*, preserving order.

        Raises
        ------
        EmbeddingError
            When a sub-batch still fails after ``max_retries`` attempts, or
            the backend returns the wrong number of vectors or mixed dimensions.
        """
        embeddings: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = texts[start : start + self.batch_size]
            vectors = self._call_with_retry(batch)
            if len(vectors) != len(batch):
                raise EmbeddingError(
                    f"Embedding backend returned {len(vectors)} vectors for {len(batch)} texts"
                )
            embeddings.extend(vectors)
            logger.info("  embedded %d / %d", len(embeddings), len(texts))

        if embeddings:
            dim = len(embeddings[0])
            if any(len(v) != dim for v in embeddings):
                raise EmbeddingError(f"Embedding backend returned vectors of mixed dimensions (expected {dim})")
        return embeddings

    def embed(self, text: str) -> list[float]:
        """Embed a single text as a one-element batch."""
        return self.embed_batch([text])[0]

    # -- internals ------------------------------------------------------------

    def _call_with_retry(self, batch: list[str]) -> list[list[float]]:
        last_exc: Exception | None = None
        for attempt in range(1, self.max_retries + 1):
            try:
                return self._backend.embed_documents(batch)
            except Exception as exc:
                last_exc = exc
                if attempt < self.max_retries:
                    logger.warning(
                        "Embedding attempt %d/%d failed (model=%s, wait %.1fs): %s",
                        attempt, self.max_retries, self.model, self.retry_delay, exc,
                    )
                    self._sleep(self.retry_delay)
        raise EmbeddingError(
            f"Error getting embeddings after {self.max_retries} attempts: {last_exc}"
        ) from last_exc
