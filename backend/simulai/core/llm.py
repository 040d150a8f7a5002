import io
import time
import logging
from typing import Dict, List, Optional

import openai
from openai import AsyncOpenAI
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type, before_sleep_log

from simulai.core.config import settings
from simulai.core.exceptions import llm_service_error, invalid_api_key_error, network_exception
from simulai.services.monitoring import Monitoring

logger = logging.getLogger(__name__)

PROVIDER_NAMES = {"openai": "OpenAI", "mistral": "Mistral", "llama": "Llama"}

TRANSIENT_ERRORS = (openai.APITimeoutError, openai.APIConnectionError, openai.InternalServerError)


def provider_base_url(provider: str) -> str:
    #SH: Mistral and Llama both expose OpenAI compatible chat endpoints
    urls = {
        "openai": settings.OPENAI_API_URL,
        "mistral": settings.MISTRAL_API_URL,
        "llama": settings.LLAMA_API_URL,
    }
    if provider not in urls:
        raise ValueError(f"Unsupported AI provider: {provider}")
    return urls[provider]


#SH: This class handles communication with the provider's async api
class LLMClient:
    def __init__(self, provider: str, api_key: str):
        self.provider = provider
        self.provider_name = PROVIDER_NAMES.get(provider, provider)
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=provider_base_url(provider),
            timeout=settings.REQUEST_TIMEOUT,
            max_retries=0,
        )

    @property
    def default_model(self) -> str:
        return settings.DEFAULT_MODELS.get(self.provider, "gpt-4o")

    #SH: Retry logic: only transient failures are retried, the rest surface immediately
    @retry(
        stop=stop_after_attempt(settings.MAX_RETRIES),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _complete(self, **kwargs):
        return await self.client.chat.completions.create(**kwargs)

    async def chat(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = settings.MAX_TOKENS,
    ) -> dict:
        model = model or self.default_model
        start = time.time()
        try:
            response = await self._complete(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.AuthenticationError:
            logger.error(f"{self.provider_name} authentication error")
            Monitoring.track_call(self.provider, model, "auth_error", time.time() - start)
            raise invalid_api_key_error(self.provider_name)
        except openai.RateLimitError:
            logger.warning(f"{self.provider_name} rate limit exceeded")
            Monitoring.track_call(self.provider, model, "rate_limited", time.time() - start)
            raise llm_service_error("API rate limit exceeded")
        except TRANSIENT_ERRORS as e:
            logger.error(f"{self.provider_name} connection failed: {str(e)}")
            Monitoring.track_call(self.provider, model, "network_error", time.time() - start)
            raise network_exception(f"Connection to {self.provider_name} failed")
        except openai.APIError as e:
            logger.error(f"{self.provider_name} API error: {str(e)}")
            Monitoring.track_call(self.provider, model, "error", time.time() - start)
            raise llm_service_error(str(e))

        elapsed = time.time() - start
        Monitoring.track_call(self.provider, model, "ok", elapsed)
        usage = response.usage
        if usage is not None:
            Monitoring.track_usage(self.provider, model, usage.prompt_tokens, usage.completion_tokens)
            logger.info(f"API Call | Provider: {self.provider} | Model: {model} | Tokens: {usage.total_tokens} | {elapsed:.2f}s")

        return {
            "content": response.choices[0].message.content or "",
            "usage": usage.model_dump() if usage is not None else {},
            "model": model,
        }

    #SH: OpenAI assistants are used as report "evaluators"
    async def list_assistants(self, limit: int = 100) -> List[dict]:
        try:
            page = await self.client.beta.assistants.list(order="desc", limit=limit)
        except openai.AuthenticationError:
            raise invalid_api_key_error(self.provider_name)
        except openai.APIError as e:
            logger.error(f"Failed to list assistants: {str(e)}")
            raise llm_service_error(str(e))
        return [
            {"id": assistant.id, "name": assistant.name or assistant.id, "model": assistant.model}
            for assistant in page.data
        ]

    async def retrieve_assistant(self, assistant_id: str) -> dict:
        try:
            assistant = await self.client.beta.assistants.retrieve(assistant_id)
        except openai.NotFoundError:
            raise llm_service_error(f"Assistant {assistant_id} not found")
        except openai.AuthenticationError:
            raise invalid_api_key_error(self.provider_name)
        except openai.APIError as e:
            logger.error(f"Failed to retrieve assistant {assistant_id}: {str(e)}")
            raise llm_service_error(str(e))
        return {
            "id": assistant.id,
            "name": assistant.name or assistant.id,
            "model": assistant.model,
            "instructions": assistant.instructions or "",
        }

    async def transcribe(self, filename: str, content: bytes) -> str:
        audio = io.BytesIO(content)
        audio.name = filename
        try:
            transcript = await self.client.audio.transcriptions.create(
                file=audio,
                model=settings.TRANSCRIPTION_MODEL,
            )
        except openai.AuthenticationError:
            raise invalid_api_key_error(self.provider_name)
        except openai.APIError as e:
            logger.error(f"Transcription failed for {filename}: {str(e)}")
            raise llm_service_error(str(e))
        return transcript.text

    async def speech(self, text: str) -> bytes:
        try:
            response = await self.client.audio.speech.create(
                model=settings.SPEECH_MODEL,
                voice=settings.SPEECH_VOICE,
                input=text,
            )
        except openai.APIError as e:
            logger.error(f"Speech synthesis failed: {str(e)}")
            raise llm_service_error(str(e))
        return response.content

    async def generate_image(self, prompt: str) -> str:
        try:
            response = await self.client.images.generate(
                model=settings.IMAGE_MODEL,
                prompt=prompt,
                n=1,
                size="1024x1024",
            )
        except openai.AuthenticationError:
            raise invalid_api_key_error(self.provider_name)
        except openai.APIError as e:
            logger.error(f"Image generation failed: {str(e)}")
            raise llm_service_error(str(e))
        return response.data[0].url
