import logging
import httpx
from simulai.core.config import settings
from simulai.core.exceptions import upstream_error, missing_api_key_error

logger = logging.getLogger(__name__)

class HeyGenClient:
    def __init__(self, api_key: str):
        if not api_key:
            raise missing_api_key_error("HeyGen")
        self.api_key = api_key
        self.api_url = settings.HEYGEN_API_URL.rstrip("/")

    async def create_streaming_token(self) -> str:
        """
        Create a short lived token the browser SDK uses to open the avatar stream
        """
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    f"{self.api_url}/v1/streaming.create_token",
                    headers={"x-api-key": self.api_key},
                    timeout=settings.REQUEST_TIMEOUT
                )
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"HeyGen token request failed: {str(e)}")
            raise upstream_error("HeyGen", "Failed to retrieve access token")

        data = payload.get("data") if isinstance(payload, dict) else None
        token = data.get("token") if isinstance(data, dict) else None

        if not token:
            logger.error("HeyGen response did not contain a token")
            raise upstream_error("HeyGen", "Failed to retrieve access token")
        return token
