# backend/ticketdesk/core/config.py
from decimal import Decimal
from typing import List, Union
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

# Locate the .env file relative to the project root
BASE_DIR = Path(__file__).resolve().parent.parent.parent.parent
ENV_FILE = BASE_DIR / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=str(ENV_FILE), extra="ignore")

    # Application
    PROJECT_NAME: str = "TicketDesk"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Security
    SECRET_KEY: str = "dev-secret-change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 12 * 60

    # Database
    DATABASE_URL: str = f"sqlite+aiosqlite:///{BASE_DIR / 'ticketdesk.db'}"
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10

    # CORS
    BACKEND_CORS_ORIGINS: Union[str, List[str]] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):
        if isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        return v

    # Tenant onboarding
    TRIAL_DAYS: int = 14
    TRIAL_CREDITS: Decimal = Decimal("5")
    DEFAULT_CURRENCY: str = "GNF"

    # Audit sink
    AUDIT_MAX_ATTEMPTS: int = 3
    AUDIT_RETRY_DELAY_SECONDS: float = 0.2
    ACTIVITY_LOG_LIMIT: int = 200

    # Seller terminal
    SELL_MAX_CANDIDATES: int = 5


settings = Settings()
