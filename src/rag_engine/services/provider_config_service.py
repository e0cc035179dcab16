"""Load a user's provider configuration from the settings table."""

from sqlalchemy.ext.asyncio import AsyncSession

from rag_engine.models.provider import ProviderConfig
from rag_engine.repositories.settings_repository import SettingsRepository
from rag_engine.utils.crypto import decrypt
from rag_engine.utils.errors import ConfigurationMissingError
from rag_engine.utils.logging import get_logger

logger = get_logger("provider_config_service")


class ProviderConfigService:
    """Build ProviderConfig objects from stored, encrypted settings."""

    def __init__(self, session: AsyncSession):
        self.settings_repository = SettingsRepository(session)

    async def load(self, user_id: str) -> ProviderConfig:
        """
        Read and decrypt the provider settings of a user.

        Raises:
            ConfigurationMissingError: If the row, base URL or API key is missing
            EncryptionError: If the stored API key cannot be decrypted
        """
        row = await self.settings_repository.get_by_user_id(user_id)
        if row is None:
            raise ConfigurationMissingError(missing=["llm_base_url", "llm_api_key"])

        missing = [
            name
            for name, value in (("llm_base_url", row.llm_base_url), ("llm_api_key", row.llm_api_key))
            if not value
        ]
        if missing:
            raise ConfigurationMissingError(missing=missing)

        config = ProviderConfig(
            base_url=row.llm_base_url,
            api_key=decrypt(row.llm_api_key),
            chat_model=row.llm_model,
            embedding_model=row.embedding_model,
        )
        logger.debug(f"Loaded provider config for user {user_id}: {config!r}")
        return config
