# datavista/core/config.py
import logging
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

DEVELOPMENT_SECRET_KEY = "datavista-development-secret-change-me"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class ConfigurationError(RuntimeError):
    """Raised when mandatory configuration is missing"""


class Settings(BaseSettings):
    """Server settings"""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    ENVIRONMENT: str = "development"

    # Database connection
    DATABASE_URL: Optional[str] = None
    DB_HOST: str = "localhost"
    DB_PORT: str = "3306"
    DB_USER: str = "root"
    DB_PASSWORD: str = ""
    DB_NAME: str = "datavista"
    SQL_ECHO: bool = False
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10

    # Security
    SECRET_KEY: Optional[str] = None
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7
    BCRYPT_ROUNDS: int = 10
    ENFORCE_TASK_OWNERSHIP: bool = False

    # HTTP server
    HOST: str = "0.0.0.0"
    PORT: int = 4000
    CORS_ORIGINS: List[str] = [
        "http://localhost",
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = "server.log"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def verbose_errors(self) -> bool:
        return not self.is_production

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mysql+aiomysql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def secret_key(self) -> str:
        return self.SECRET_KEY or DEVELOPMENT_SECRET_KEY

    def check_required(self) -> None:
        """Fail fast when a production deployment lacks mandatory settings"""
        missing = [name for name in ("DATABASE_URL", "SECRET_KEY") if not getattr(self, name)]

        if missing and self.is_production:
            raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")

        if not self.SECRET_KEY:
            logger.warning("SECRET_KEY not set, using the development signing key (insecure)")


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def configure_logging(settings: Settings) -> None:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if settings.LOG_FILE:
        handlers.append(logging.FileHandler(settings.LOG_FILE))

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )
