import logging
from datetime import datetime
from fastapi import FastAPI
from dotenv import load_dotenv
from tenacity import RetryError
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from simulai.routes.app_routers import router as app_routers
from simulai.core.responses import success_response
from simulai.core.config import settings
from simulai.core.exceptions import (
    http_exception_handler,
    validation_exception_handler,
    general_exception_handler,
    retry_error_handler
)
from simulai.db.database import SessionLocal, create_tables
from simulai.db.repository.user import ensure_admin

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(levelname)s: %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()

# Initialize FastAPI app
app = FastAPI(title=settings.APP_NAME)

# Include all endpoints
app.include_router(app_routers, prefix="/api")

# Register exception handlers
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)
app.add_exception_handler(RetryError, retry_error_handler)

# Enable CORS. The SPA sends the accessToken cookie, so origins must be explicit
origins = [origin.strip() for origin in settings.ALLOWED_ORIGINS.split(",") if origin.strip()]
if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
    origins.append(settings.FRONTEND_URL)
logger.info(f"Allowed origins: {origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
async def on_startup():
    if settings.AUTO_CREATE_TABLES:
        await create_tables()
    async with SessionLocal() as db:
        await ensure_admin(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)

# Unsecured route for health check
@app.get("/")
def status():
    return success_response(message="Ready...", data={"timestamp": datetime.now().isoformat()})
