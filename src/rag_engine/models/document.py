"""Document processing models."""

from enum import Enum

from pydantic import BaseModel, Field


class DocumentStatus(str, Enum):
    """Processing status of a document."""

    UPLOADING = "uploading"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ProcessDocumentResult(BaseModel):
    """Outcome of a successful indexing run."""

    document_id: str = Field(..., description="Processed document ID")
    chunk_count: int = Field(..., ge=0, description="Number of chunks persisted")
    status: DocumentStatus = Field(..., description="Final document status")
    processing_time_ms: int = Field(..., ge=0, description="Wall-clock processing time")
