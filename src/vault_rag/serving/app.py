"""FastAPI application exposing ingestion and question answering."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from vault_rag.answering.orchestrator import QueryOrchestrator
from vault_rag.config import Settings
from vault_rag.errors import (
    ConfigurationError,
    EmptyInputError,
    PromptTooLargeError,
    RequestTimeoutError,
    ValidationError,
    VaultError,
)
from vault_rag.ingestion.orchestrator import IngestionOrchestrator
from vault_rag.models import Answer, UploadedFile
from vault_rag.retrieval.factory import create_vector_store

logger = logging.getLogger(__name__)


# ── Request schemas ───────────────────────────────────────────────────
class QuestionRequest(BaseModel):
    """Incoming question from the web client."""

    question: str
    model: str = ""
    uuid: str
    api_key: str = Field(default="", alias="apiKey")


def _status_for(exc: VaultError) -> int:
    if isinstance(exc, RequestTimeoutError):
        return 504
    if isinstance(exc, (ValidationError, EmptyInputError, PromptTooLargeError)):
        return 400
    if isinstance(exc, ConfigurationError):
        return 500
    return 502


def create_app(
    settings: Settings | None = None,
    *,
    ingestion: IngestionOrchestrator | None = None,
    query: QueryOrchestrator | None = None,
) -> FastAPI:
    """Wire the orchestrators into a FastAPI app.

    Orchestrators not passed in are built from *settings* (or from the
    environment when *settings* is ``None``).
    """
    if ingestion is None or query is None:
        settings = settings or Settings()
        store = create_vector_store(settings)
        ingestion = ingestion or IngestionOrchestrator.from_settings(settings, store)
        query = query or QueryOrchestrator.from_settings(settings, store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        logger.info("Shutting down question workers")
        query.close()

    app = FastAPI(
        title="Vault RAG API",
        version="0.1.0",
        description="Upload documents and ask questions about them.",
        lifespan=lifespan,
    )

    @app.exception_handler(VaultError)
    async def vault_error_handler(request: Request, exc: VaultError) -> JSONResponse:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.reason)
        return JSONResponse(
            status_code=_status_for(exc),
            content={"error": type(exc).__name__, "reason": exc.reason},
        )

    # ── Routes ────────────────────────────────────────────────────────
    @app.get("/health")
    async def health() -> dict[str, str]:
        """Liveness probe."""
        return {"status": "ok"}

    @app.post("/upload")
    async def upload(
        files: list[UploadFile] = File(...),
        uuid: str = Form(...),
        apikey: str = Form(""),
    ) -> dict:
        """Ingest uploaded files into the caller's namespace."""
        uploaded = [
            UploadedFile(
                filename=f.filename or "unnamed",
                content_type=f.content_type or "text/plain",
                data=await f.read(),
            )
            for f in files
        ]
        report = await run_in_threadpool(ingestion.ingest, uploaded, uuid, apikey or None)
        return report.to_response()

    @app.post("/api/questions", response_model=Answer)
    async def questions(request: QuestionRequest) -> Answer:
        """Answer a question from the caller's documents."""
        return await run_in_threadpool(
            query.answer, request.question, request.uuid, request.model or None, request.api_key or None
        )

    return app
