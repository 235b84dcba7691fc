from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # core
    ENV: str = "dev"
    API_PREFIX: str = "/api/v1"

    # database
    # Keep this as a plain string so sqlite:// URLs used in tests are accepted too
    DATABASE_URL: str
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 5
    DB_POOL_TIMEOUT: int = 30  # seconds to wait for a pooled connection
    RUN_MIGRATIONS: bool = True

    # http listener
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    # logging
    LOG_LEVEL: str = "INFO"

    # cors
    FRONTEND_ORIGIN: str | None = None
    # Explicit debug-only switch for wide-open CORS in non-prod envs
    CORS_ALLOW_ALL_ORIGINS: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    return Settings()
