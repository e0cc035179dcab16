"""Embedding generation service for OpenAI-compatible providers."""

from typing import List, Optional

from openai import AsyncOpenAI

from rag_engine.config import get_settings
from rag_engine.models.provider import ProviderConfig
from rag_engine.utils.errors import (
    ConfigurationMissingError,
    DimensionMismatchError,
    EmbeddingError,
)
from rag_engine.utils.logging import get_logger

logger = get_logger("embedding_service")
settings = get_settings()


class EmbeddingService:
    """
    Generate embeddings with the caller's provider configuration.

    Batches are sent sequentially and every response is checked for count
    and dimension before anything is returned. Provider errors propagate
    as raised by the client; there is no retry layer.
    """

    def _create_client(self, config: ProviderConfig) -> AsyncOpenAI:
        return AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=settings.embedding.timeout,
            max_retries=settings.embedding.max_retries,
        )

    @staticmethod
    def _validate_config(config: ProviderConfig) -> str:
        """Check credentials and resolve the model name."""
        missing = [
            name
            for name, value in (("base_url", config.base_url), ("api_key", config.api_key))
            if not value
        ]
        if missing:
            raise ConfigurationMissingError(
                "LLM provider is not configured. Set a base URL and API key in settings.",
                missing=missing,
            )
        return config.embedding_model or settings.embedding.default_model

    async def _embed_batch(
        self, client: AsyncOpenAI, model: str, inputs: List[str]
    ) -> List[List[float]]:
        resp = await client.embeddings.create(model=model, input=inputs)
        data = getattr(resp, "data", None)
        if data is None:
            raise EmbeddingError("Embedding response has no data", model=model)
        return [list(item.embedding) for item in data]

    async def generate_embeddings(
        self, config: ProviderConfig, values: List[str]
    ) -> List[List[float]]:
        """
        Embed strings, one vector per input, in input order.

        Args:
            config: Provider configuration
            values: Strings to embed

        Returns:
            Vectors aligned with ``values``

        Raises:
            ConfigurationMissingError: If base URL or API key is missing
            DimensionMismatchError: If a batch returns the wrong count or dimension
        """
        if not values:
            return []

        model = self._validate_config(config)
        batch_size = settings.embedding.batch_size
        dimension = settings.embedding.dimension

        logger.info(
            f"Generating embeddings: model={model}, values={len(values)}, batch_size={batch_size}"
        )

        client = self._create_client(config)
        vectors: List[List[float]] = []
        try:
            for start in range(0, len(values), batch_size):
                batch = values[start : start + batch_size]
                batch_vectors = await self._embed_batch(client, model, batch)

                if len(batch_vectors) != len(batch):
                    raise DimensionMismatchError(
                        "Embedding response size mismatch",
                        expected=len(batch),
                        actual=len(batch_vectors),
                        details={"model": model, "batch_start": start},
                    )
                for vector in batch_vectors:
                    if len(vector) != dimension:
                        raise DimensionMismatchError(
                            "Embedding dimension mismatch",
                            expected=dimension,
                            actual=len(vector),
                            details={"model": model},
                        )

                logger.debug(f"Embedded batch: start={start}, size={len(batch)}")
                vectors.extend(batch_vectors)
        finally:
            await client.close()

        logger.info(f"Embeddings generated successfully: count={len(vectors)}, dimension={dimension}")
        return vectors

    async def embed_query(self, config: ProviderConfig, query: str) -> Optional[List[float]]:
        """Embed a single string; None when the provider returns nothing."""
        vectors = await self.generate_embeddings(config, [query])
        return vectors[0] if vectors else None
