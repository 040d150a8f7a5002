from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    #MJ: Added these in .env
    ###### START ####
    APP_NAME: str = "SimulAI"
    DEBUG: bool = False
    ALLOWED_ORIGINS: str = "http://localhost:5173"  # CORS
    FRONTEND_URL: str = "http://localhost:5173"
    DATABASE_URL: str = "sqlite+aiosqlite:///./simulai.db"
    AUTO_CREATE_TABLES: bool = True
    PRODUCTION: bool = False

    #MJ: Auth
    JWT_SECRET_KEY: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    ACCESS_TOKEN_COOKIE: str = "accessToken"
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60

    #MJ: Seeded on startup when both are set
    ADMIN_EMAIL: str = ""
    ADMIN_PASSWORD: str = ""

    #SH: LLM providers (keys live in the settings table)
    OPENAI_API_URL: str = "https://api.openai.com/v1"
    MISTRAL_API_URL: str = "https://api.mistral.ai/v1"
    LLAMA_API_URL: str = "https://api.llama-api.com"
    DEFAULT_MODELS: dict = {
        "openai": "gpt-4o",
        "mistral": "mistral-large-latest",
        "llama": "llama3.1-70b",
    }
    MAX_RETRIES: int = 3
    REQUEST_TIMEOUT: int = 30
    MAX_TOKENS: int = 1000
    EVALUATION_MAX_TOKENS: int = 500
    TRANSCRIPTION_MODEL: str = "whisper-1"
    SPEECH_MODEL: str = "tts-1"
    SPEECH_VOICE: str = "fable"
    IMAGE_MODEL: str = "dall-e-3"

    #SH: Avatar streaming
    HEYGEN_API_URL: str = "https://api.heygen.com"
    DEFAULT_AVATAR_LANGUAGE: str = "es"

    #SH: Scenario timer
    DEFAULT_TIME_LIMIT_MINUTES: int = 30

    #SH: Uploads
    MAX_FILE_SIZE: int = 10_485_760 # 10MB
    MAX_IMAGE_SIZE: int = 5_242_880 # 5MB
    MAX_SCENARIO_FILES: int = 10
    ALLOWED_IMAGE_TYPES: List[str] = ["image/png", "image/jpeg", "image/gif", "image/webp"]
    ALLOWED_CSV_TYPES: List[str] = ["text/csv", "application/vnd.ms-excel"]

    #SH: SMTP fallback when the settings table has no mail config
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM_EMAIL: str = ""
    SMTP_FROM_NAME: str = "SimulAI"
    SMTP_USE_SSL: bool = False
    SMTP_TIMEOUT: int = 20
    ###### END ####

    class Config:
        env_file = ".env"

settings = Settings()
