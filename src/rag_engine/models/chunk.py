"""Chunk models for document ingestion."""

from typing import Dict

from pydantic import BaseModel, Field, model_validator


class TextChunk(BaseModel):
    """A chunk of text produced by the chunking service.

    ``content`` is always the exact substring ``text[start_offset:end_offset]``
    of the source text.
    """

    content: str = Field(..., description="Chunk text content")
    chunk_index: int = Field(..., ge=0, description="0-based index of this chunk within the document")
    start_offset: int = Field(..., ge=0, description="Inclusive start offset in the source text")
    end_offset: int = Field(..., ge=0, description="Exclusive end offset in the source text")

    @model_validator(mode="after")
    def validate_offsets(self) -> "TextChunk":
        """Offsets must describe the content span."""
        if self.end_offset - self.start_offset != len(self.content):
            raise ValueError("end_offset - start_offset must equal the content length")
        return self

    @property
    def metadata(self) -> Dict[str, int]:
        """Metadata persisted with the embedding row."""
        return {"startOffset": self.start_offset, "endOffset": self.end_offset}
