"""Question answering: embed → retrieve → prompt → LLM.

The pipeline is linear. Any stage failure aborts the request; there is
no partial answer.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import TYPE_CHECKING, Callable

from vault_rag.answering.llm import call_llm, ensure_supported_model, get_llm
from vault_rag.answering.prompts import PromptBuilder
from vault_rag.errors import RequestTimeoutError, ValidationError
from vault_rag.ingestion.embedder import EmbeddingClient
from vault_rag.models import Answer, ContextSnippet

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

    from vault_rag.config import Settings
    from vault_rag.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 4
DEFAULT_INSTRUCTIONS = "You are a helpful assistant answering questions based on the context provided."


def _log_abandoned(future: Future) -> None:
    """Report how a pipeline that outlived its deadline finally ended."""
    exc = future.exception()
    if exc is None:
        logger.info("Discarded answer produced after the deadline")
    else:
        logger.warning("Pipeline failed after the deadline: %s", exc)


class QueryOrchestrator:
    """Answer questions against one tenant's documents.

    Parameters
    ----------
    store:
        Vector backend holding the tenant namespaces.
    embedder_factory:
        ``api_key -> EmbeddingClient``; ``None`` means the default key.
    llm_factory:
        ``(model, api_key) -> chat model``.
    prompt_builder:
        Token-budgeted prompt assembly.
    top_k:
        Number of matches retrieved per question.
    instructions:
        System message sent with every prompt.
    timeout:
        Overall deadline in seconds; ``None`` waits indefinitely.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        embedder_factory: Callable[[str | None], EmbeddingClient],
        llm_factory: Callable[[str | None, str | None], BaseChatModel],
        *,
        prompt_builder: PromptBuilder | None = None,
        top_k: int = DEFAULT_TOP_K,
        instructions: str = DEFAULT_INSTRUCTIONS,
        timeout: float | None = None,
        max_concurrent: int = 8,
    ) -> None:
        self._store = store
        self._embedder_factory = embedder_factory
        self._llm_factory = llm_factory
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.top_k = top_k
        self.instructions = instructions
        self.timeout = timeout
        self._executor = ThreadPoolExecutor(max_workers=max_concurrent, thread_name_prefix="query")

    @classmethod
    def from_settings(cls, settings: Settings, store: VectorStoreBase) -> QueryOrchestrator:
        return cls(
            store,
            lambda api_key: EmbeddingClient.from_settings(settings, api_key),
            lambda model, api_key: get_llm(settings, model, api_key),
            prompt_builder=PromptBuilder(settings.prompt_token_limit, tokenizer_model=settings.tokenizer_model),
            top_k=settings.top_k,
            instructions=settings.llm_instructions,
            timeout=settings.query_timeout,
        )

    # -- public API -----------------------------------------------------------

    def answer(self, question: str, uuid: str, model: str | None = None, api_key: str | None = None) -> Answer:
        """Run the full pipeline for *question* within the deadline.

        Raises
        ------
        ValidationError
            If *question* or *uuid* is blank, or *model* is retired.
        RequestTimeoutError
            If the deadline elapses before an answer is ready.
        VaultError
            Whatever stage failed (embedding, retrieval, prompt, LLM).
        """
        if not question or not question.strip():
            raise ValidationError("Question must not be empty")
        if not uuid:
            raise ValidationError("Missing tenant UUID")
        ensure_supported_model(model)

        future = self._executor.submit(self._run, question, uuid, model, api_key)
        try:
            return future.result(timeout=self.timeout)
        except RequestTimeoutError:
            raise
        except FutureTimeoutError:
            if not future.cancel():
                future.add_done_callback(_log_abandoned)
            raise RequestTimeoutError(f"Question not answered within {self.timeout}s") from None

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    # -- internals ------------------------------------------------------------

    def _run(self, question: str, uuid: str, model: str | None, api_key: str | None) -> Answer:
        embedder = self._embedder_factory(api_key)
        question_embedding = embedder.embed(question)
        logger.info("Question embedding length: %d", len(question_embedding))

        matches = self._store.retrieve(question_embedding, self.top_k, uuid)
        logger.info("Got %d matches from vector DB for %s", len(matches), uuid)

        contexts = [ContextSnippet(text=m.metadata.text, title=m.metadata.title) for m in matches]
        prompt = self.prompt_builder.build([c.text for c in contexts], question)

        llm = self._llm_factory(model, api_key)
        logger.info("Sending LLM request (%d contexts)", len(contexts))
        text, tokens = call_llm(llm, prompt, self.instructions)

        return Answer(answer=text, context=contexts, tokens=tokens)
