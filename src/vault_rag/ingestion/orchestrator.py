"""Upload-batch ingestion: validate → extract → chunk → embed → upsert.

Each file moves through the stages on its own. A failure at any stage is
recorded against that file and never stops its siblings.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Callable

from vault_rag.errors import RequestTimeoutError, ValidationError, VaultError
from vault_rag.ingestion.chunker import Chunker
from vault_rag.ingestion.embedder import EmbeddingClient
from vault_rag.ingestion.loader import extract_text
from vault_rag.models import IngestionReport, UploadedFile

if TYPE_CHECKING:
    from vault_rag.config import Settings
    from vault_rag.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILE_SIZE = 3 << 20
DEFAULT_MAX_TOTAL_UPLOAD_SIZE = 3 << 20


class IngestionOrchestrator:
    """Ingest batches of uploaded files into one tenant's namespace.

    Parameters
    ----------
    store:
        Vector backend receiving the records.
    embedder_factory:
        ``api_key -> EmbeddingClient``; ``None`` means the default key.
    chunker:
        Splits extracted text into chunks.
    extractor:
        ``UploadedFile -> str``; defaults to :func:`extract_text`.
    max_file_size / max_total_upload_size:
        Byte limits checked before any processing.
    workers:
        Size of the per-batch worker pool.
    file_timeout:
        Wall-clock budget per file, checked between stages.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        embedder_factory: Callable[[str | None], EmbeddingClient],
        *,
        chunker: Chunker | None = None,
        extractor: Callable[[UploadedFile], str] = extract_text,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        max_total_upload_size: int = DEFAULT_MAX_TOTAL_UPLOAD_SIZE,
        workers: int = 4,
        file_timeout: float | None = None,
    ) -> None:
        self._store = store
        self._embedder_factory = embedder_factory
        self.chunker = chunker or Chunker()
        self._extract = extractor
        self.max_file_size = max_file_size
        self.max_total_upload_size = max_total_upload_size
        self.workers = workers
        self.file_timeout = file_timeout

    @classmethod
    def from_settings(cls, settings: Settings, store: VectorStoreBase) -> IngestionOrchestrator:
        return cls(
            store,
            lambda api_key: EmbeddingClient.from_settings(settings, api_key),
            chunker=Chunker(settings.chunk_size),
            max_file_size=settings.max_file_size,
            max_total_upload_size=settings.max_total_upload_size,
            workers=settings.ingest_workers,
            file_timeout=settings.file_timeout,
        )

    # -- public API -----------------------------------------------------------

    def ingest(self, files: list[UploadedFile], uuid: str, api_key: str | None = None) -> IngestionReport:
        """Process every file in *files* for tenant *uuid*.

        Returns an :class:`IngestionReport` listing files in input order.

        Raises
        ------
        ValidationError
            Only when *uuid* is missing; per-file problems go in the report.
        """
        if not uuid:
            raise ValidationError("Missing tenant UUID")
        logger.info("Ingesting %d files for %s", len(files), uuid)

        outcomes: list[str | None] = [None] * len(files)
        pending: list[int] = []
        total = 0
        for i, file in enumerate(files):
            total += file.size
            try:
                self._validate_size(file, total)
            except ValidationError as exc:
                logger.warning("Rejected %s: %s", file.filename, exc.reason)
                outcomes[i] = exc.reason
            else:
                pending.append(i)

        if pending:
            try:
                embedder = self._embedder_factory(api_key)
            except VaultError as exc:
                logger.error("Cannot embed batch for %s: %s", uuid, exc.reason)
                for i in pending:
                    outcomes[i] = exc.reason
            else:
                with ThreadPoolExecutor(max_workers=min(self.workers, len(pending))) as executor:
                    futures = {i: executor.submit(self._process_file, files[i], uuid, embedder) for i in pending}
                    for i, future in futures.items():
                        outcomes[i] = future.result()

        succeeded: list[str] = []
        failed: dict[str, str] = {}
        for file, reason in zip(files, outcomes):
            if reason is None:
                succeeded.append(file.filename)
            else:
                failed[file.filename] = reason

        report = IngestionReport(succeeded=succeeded, failed=failed)
        logger.info("%s (%d ok, %d failed)", report.message, len(succeeded), len(failed))
        return report

    # -- internals ------------------------------------------------------------

    def _validate_size(self, file: UploadedFile, running_total: int) -> None:
        if file.size > self.max_file_size:
            raise ValidationError(f"File size exceeds the {self.max_file_size} bytes limit")
        if running_total > self.max_total_upload_size:
            raise ValidationError(f"Upload exceeds the {self.max_total_upload_size} bytes total limit")

    def _process_file(self, file: UploadedFile, uuid: str, embedder: EmbeddingClient) -> str | None:
        """Run one file through the pipeline; return ``None`` or the failure reason."""
        deadline = None if self.file_timeout is None else time.monotonic() + self.file_timeout

        def check_deadline(stage: str) -> None:
            if deadline is not None and time.monotonic() > deadline:
                raise RequestTimeoutError(f"Timed out after {self.file_timeout}s before {stage}")

        try:
            text = self._extract(file)
            check_deadline("chunking")
            chunks = self.chunker.chunk(text, file.filename)
            check_deadline("embedding")
            embeddings = embedder.embed_batch([c.text for c in chunks])
            logger.info("%s: %d chunks, %d embeddings", file.filename, len(chunks), len(embeddings))
            check_deadline("upserting")
            self._store.upsert_embeddings(embeddings, chunks, uuid)
        except VaultError as exc:
            logger.warning("Failed to ingest %s: %s", file.filename, exc.reason)
            return exc.reason
        except Exception as exc:
            logger.exception("Unexpected error ingesting %s", file.filename)
            return f"Unexpected error: {exc}"

        logger.info("Successfully added %s to vector DB", file.filename)
        return None
