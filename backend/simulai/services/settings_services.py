import logging
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from simulai.core.exceptions import missing_api_key_error
from simulai.core.llm import LLMClient, PROVIDER_NAMES
from simulai.core.storage import S3Storage
from simulai.db.repository.settings import get_settings

logger = logging.getLogger(__name__)

PROVIDER_KEYS = {"openai": "openai_key", "mistral": "mistral_key", "llama": "llama_key"}

#SH: Build the LLM client of a provider with the key stored by the admin
async def get_llm_client(db: AsyncSession, provider: str | None) -> LLMClient:
    if provider not in PROVIDER_KEYS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported AI provider: {provider or 'none'}"
        )
    app_settings = await get_settings(db)
    api_key = app_settings.get(PROVIDER_KEYS[provider])
    if not api_key:
        logger.error(f"{PROVIDER_NAMES[provider]} API key is missing")
        raise missing_api_key_error(PROVIDER_NAMES[provider])
    return LLMClient(provider, api_key)

async def get_storage(db: AsyncSession) -> S3Storage:
    return S3Storage.from_settings(await get_settings(db))
