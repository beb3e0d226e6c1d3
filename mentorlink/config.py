from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

class Settings(BaseSettings):
    # Pydantic Settings will automatically look for these as environment variables
    # or in a .env file

    # Database Settings
    POSTGRES_USER: str = "user"
    POSTGRES_PASSWORD: str = "password"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "mentorship_db"

    # Full SQLAlchemy URL; takes precedence over the POSTGRES_* parts when set
    DATABASE_URL: Optional[str] = None

    # SQLAlchemy Connection Pooling Settings
    # Refer to https://docs.sqlalchemy.org/en/20/core/engines.html#connection-pooling-options
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30 # seconds
    DB_POOL_RECYCLE: int = 1800 # seconds (30 minutes) - recycle connections older than this
    DB_STATEMENT_TIMEOUT_MS: int = 5000 # PostgreSQL only

    # Store retry policy (reads only)
    STORE_RETRY_ATTEMPTS: int = 3
    STORE_RETRY_DELAY_SECONDS: float = 0.2

    # Matching Settings
    MATCH_DEFAULT_LIMIT: int = 12
    MATCH_MAX_LIMIT: int = 50
    SCORE_OVERLAP_WEIGHT: float = 0.7
    SCORE_AVAILABILITY_WEIGHT: float = 0.15
    SCORE_RATING_WEIGHT: float = 0.15
    SCORE_AVAILABILITY_SLOT_CAP: int = 5 # free slots past this add no bonus

    # Profile Settings
    DEFAULT_MAX_MENTEES: int = 3
    BIO_EXCERPT_LENGTH: int = 100

    # Caller identity (tokens are issued by the external auth service)
    AUTH_REQUIRED: bool = False
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore" # Ignore extra env variables not defined here
    )

@lru_cache() # Cache settings to avoid re-reading on every call
def get_settings():
    """Returns a cached instance of the Settings."""
    return Settings()
