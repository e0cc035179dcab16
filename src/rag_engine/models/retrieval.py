"""Retrieval result models."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class RetrievedChunk(BaseModel):
    """A stored chunk ranked against a query."""

    document_id: str = Field(..., description="Owning document ID")
    file_name: str = Field(..., description="Owning document file name")
    content: str = Field(..., description="Chunk text content")
    metadata: Optional[Dict[str, Any]] = Field(
        default=None, description="Persisted chunk metadata (startOffset, endOffset)"
    )
    similarity: float = Field(..., description="Cosine similarity to the query, 1 - distance")
