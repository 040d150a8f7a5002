import logging
from fastapi import Request, status, HTTPException
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from simulai.core.responses import error_response
from tenacity import RetryError

logger = logging.getLogger("exception.handler")

#MJ: HTTP Exceptions
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")
    headers = getattr(exc, "headers", None)
    return error_response(str(exc.detail), http_status=exc.status_code, headers=headers)

#MJ: Validation Exceptions
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(
        "Validation error",
        http_status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        data=exc.errors(),
    )

#MJ: General Exceptions
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled exception: {str(exc)}")
    return error_response("Internal server error", http_status=status.HTTP_500_INTERNAL_SERVER_ERROR)

async def retry_error_handler(request: Request, exc: RetryError):
    original_exc = exc.last_attempt.exception()
    logger.error(f"Retry failed after {exc.last_attempt.attempt_number} attempts: {str(original_exc)}")
    return error_response(
        message=f"Operation failed after retries: {str(original_exc)}",
        http_status=status.HTTP_503_SERVICE_UNAVAILABLE
    )

#SH: LLM Exceptions
def llm_service_error(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"LLM Service Error: {detail}",
        headers={"Retry-After": "30"},
    )

def invalid_api_key_error(provider: str = "OpenAI") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=f"Invalid {provider} API Key",
    )

def missing_api_key_error(provider: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"{provider} API key is not configured",
    )

def network_exception(detail: str = "Connection to AI service failed") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"Network Error: {detail}",
        headers={"Retry-After": "30"},
    )

#SH: Upstream (S3 / SMTP / HeyGen) Exceptions
def upstream_error(service: str, detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"{service} Error: {detail}",
    )
