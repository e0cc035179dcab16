"""Provider configuration models."""

from typing import Optional

from pydantic import BaseModel, Field


class ProviderConfig(BaseModel):
    """Decrypted OpenAI-compatible provider settings for one user."""

    base_url: str = Field(..., description="Provider base URL (e.g. https://api.openai.com/v1)")
    api_key: str = Field(..., repr=False, description="Plaintext provider API key")
    chat_model: Optional[str] = Field(default=None, description="Chat completion model")
    embedding_model: Optional[str] = Field(
        default=None, description="Embedding model; the system default is used when unset"
    )