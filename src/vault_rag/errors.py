"""Exception taxonomy shared by the ingestion and query pipelines.

Every error carries a human-readable ``reason`` which ends up verbatim in
the JSON returned to callers (per-file for ingestion, per-request for
questions).
"""

from __future__ import annotations


class VaultError(Exception):
    """Base class for all pipeline errors."""

    def __init__(self, reason: str, *, status_code: int | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code


class ConfigurationError(VaultError):
    """Settings are missing or inconsistent."""


class ValidationError(VaultError):
    """Input rejected before processing (oversized file, missing tenant, ...)."""


class ExtractionError(VaultError):
    """Text could not be extracted from an uploaded file."""


class EmptyInputError(VaultError):
    """The text handed to the chunker is blank."""


class EmbeddingError(VaultError):
    """Embedding failed after exhausting retries, or returned malformed vectors."""


class NamespaceError(VaultError):
    """Tenant namespace probe or creation failed."""


class UpsertError(VaultError):
    """The vector backend rejected a write."""


class RetrievalError(VaultError):
    """The vector backend rejected a search."""


class PromptTooLargeError(VaultError):
    """The question alone does not fit in the token budget."""


class LLMCallError(VaultError):
    """The language model call failed."""


class RequestTimeoutError(VaultError, TimeoutError):
    """A request or a single file exceeded its wall-clock deadline."""
