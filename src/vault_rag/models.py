"""Domain models shared by ingestion, retrieval and answering."""

from __future__ import annotations

from typing import Any
from uuid import NAMESPACE_URL, uuid5

from pydantic import BaseModel, ConfigDict, Field

ALL_SUCCEEDED_MESSAGE = "All files uploaded and processed successfully"
SOME_FAILED_MESSAGE = "Some files failed to upload and process"


class Chunk(BaseModel):
    """A bounded span of a source document.

    Attributes
    ----------
    text:
        The chunk content; ``text == source[start:end]``.
    title:
        Name of the source document (the uploaded file name).
    start / end:
        Character offsets into the source document.
    """

    text: str
    title: str
    start: int
    end: int

    def record_id(self, namespace: str) -> str:
        """Deterministic vector id for this chunk inside *namespace*."""
        return str(uuid5(NAMESPACE_URL, f"{namespace}/{self.title}/{self.start}-{self.end}"))


class MatchMetadata(BaseModel):
    """Payload stored next to every vector; lax so string offsets still parse."""

    title: str = ""
    text: str = ""
    start: int = 0
    end: int = 0


class VectorRecord(BaseModel):
    """Backend-neutral record, shaped into the wire format by each store."""

    id: str
    vector: list[float]
    payload: MatchMetadata

    @classmethod
    def from_chunk(cls, chunk: Chunk, vector: list[float], namespace: str) -> VectorRecord:
        return cls(
            id=chunk.record_id(namespace),
            vector=vector,
            payload=MatchMetadata(title=chunk.title, text=chunk.text, start=chunk.start, end=chunk.end),
        )


class QueryMatch(BaseModel):
    """One search hit, ordered by descending ``score``."""

    id: str
    score: float
    metadata: MatchMetadata = Field(default_factory=MatchMetadata)


class UploadedFile(BaseModel):
    """A file handed over by the upload layer."""

    filename: str
    content_type: str = "text/plain"
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class IngestionReport(BaseModel):
    """Outcome of one upload batch; frozen once returned to the caller."""

    model_config = ConfigDict(frozen=True)

    succeeded: list[str] = Field(default_factory=list)
    failed: dict[str, str] = Field(default_factory=dict)

    @property
    def message(self) -> str:
        return SOME_FAILED_MESSAGE if self.failed else ALL_SUCCEEDED_MESSAGE

    def to_response(self) -> dict[str, Any]:
        """Serialise in the shape the upload endpoint returns."""
        return {
            "message": self.message,
            "numFilesSucceeded": len(self.succeeded),
            "numFilesFailed": len(self.failed),
            "successfulFileNames": list(self.succeeded),
            "failedFileNames": dict(self.failed),
        }


class ContextSnippet(BaseModel):
    """Retrieved passage echoed back alongside an answer."""

    text: str
    title: str


class Answer(BaseModel):
    """Result of the question pipeline."""

    answer: str
    context: list[ContextSnippet] = Field(default_factory=list)
    tokens: int = 0
