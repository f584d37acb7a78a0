from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings with type-safe configuration management."""

    # Database Configuration
    DATABASE_URL: str = "postgresql+asyncpg://postgres:postgres@db:5432/eventdesk"

    # Redis Configuration
    REDIS_URL: str = "redis://redis:6379/0"

    # Security Configuration
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    ALGORITHM: str = "HS256"
    PASSWORD_HASH_ROUNDS: int = 12

    # Verification codes (passwordless login)
    VERIFICATION_CODE_TTL_MINUTES: int = 15

    # Event list cache: "memory" or "redis"; a TTL of 0 disables caching
    EVENT_CACHE_BACKEND: str = "memory"
    EVENT_CACHE_TTL_SECONDS: int = 0

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True

    # CORS Configuration
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:8000"

    # Environment
    ENVIRONMENT: str = "development"

    # Logging; an empty LOG_LEVEL picks one from ENVIRONMENT
    LOG_LEVEL: str = ""
    LOG_FILE: str = "logs/eventdesk.log"

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def allowed_origins_list(self) -> List[str]:
        """Convert comma-separated ALLOWED_ORIGINS string to list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"


# Create a single instance to be imported throughout the app
settings = Settings()
