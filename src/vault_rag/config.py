"""Shared configuration loaded from environment / .env file.

Build one :class:`Settings` at process start and hand it to the component
factories; nothing in the package reads the environment on its own.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

from vault_rag.errors import ConfigurationError


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # LLM
    openai_api_key: str = Field(default="", description="Default OpenAI API key")
    llm_model_name: str = Field(default="gpt-3.5-turbo", description="Chat model used when the caller names none")
    llm_base_url: str = Field(
        default="",
        description="Base URL for an OpenAI-compatible API. Leave empty to use OpenAI cloud.",
    )
    llm_max_tokens: int = 512
    llm_temperature: float = 0.7
    llm_instructions: str = "You are a helpful assistant answering questions based on the context provided."

    # Embedding
    embedding_model: str = "text-embedding-ada-002"
    embedding_dim: int = 1536
    embedding_batch_size: int = Field(default=100, gt=0)
    embedding_max_retries: int = Field(default=3, gt=0)
    embedding_retry_delay: float = Field(default=5.0, ge=0)

    # Vector store
    vector_backend: Literal["qdrant", "pinecone"] = "qdrant"
    qdrant_api_endpoint: str = ""
    qdrant_api_key: str = ""
    qdrant_distance: str = "Cosine"
    pinecone_api_endpoint: str = ""
    pinecone_api_key: str = ""
    http_timeout: float = 30.0

    # Ingestion
    chunk_size: int = Field(default=1000, gt=0, description="Maximum characters per chunk")
    max_file_size: int = 3 << 20
    max_total_upload_size: int = 3 << 20
    ingest_workers: int = Field(default=4, gt=0)
    file_timeout: float = 120.0

    # Query
    top_k: int = 4
    prompt_token_limit: int = 3750
    tokenizer_model: str = "davinci"
    query_timeout: float = 60.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def validate_backend(self) -> Settings:
        """Fail fast when the selected vector backend is not fully configured."""
        if self.vector_backend == "qdrant":
            if not self.qdrant_api_endpoint:
                raise ConfigurationError("QDRANT_API_ENDPOINT is required for the qdrant backend")
        elif self.vector_backend == "pinecone":
            if not self.pinecone_api_endpoint:
                raise ConfigurationError("PINECONE_API_ENDPOINT is required for the pinecone backend")
            if not self.pinecone_api_key:
                raise ConfigurationError("PINECONE_API_KEY is required for the pinecone backend")
        return self
