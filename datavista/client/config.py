# datavista/client/config.py
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file
load_dotenv()


class ClientSettings(BaseSettings):
    """Bulk import client settings"""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Server connection
    SERVER_URL: str = os.getenv("SERVER_URL", "http://localhost:4000/graphql")
    API_TOKEN: Optional[str] = os.getenv("API_TOKEN", None)

    # CSV file settings
    CSV_FILE_PATH: str = os.getenv("CSV_FILE_PATH", "employees.csv")
    CSV_DELIMITER: str = os.getenv("CSV_DELIMITER", ",")
    CSV_ENCODING: str = os.getenv("CSV_ENCODING", "utf-8")
    SUBJECT_SEPARATOR: str = os.getenv("SUBJECT_SEPARATOR", ";")

    # Processing settings
    BATCH_SIZE: int = int(os.getenv("BATCH_SIZE", "50"))
    MAX_RETRIES: int = int(os.getenv("MAX_RETRIES", "3"))
    RETRY_DELAY: float = float(os.getenv("RETRY_DELAY", "1.0"))
    TIMEOUT: float = float(os.getenv("TIMEOUT", "10.0"))
    MAX_WORKERS: int = int(os.getenv("MAX_WORKERS", "5"))

    # Authentication settings
    AUTH_EMAIL: str = os.getenv("AUTH_EMAIL", "admin@datavista.com")
    AUTH_PASSWORD: str = os.getenv("AUTH_PASSWORD", "admin123")
    CLIENT_LOG_FILE: Optional[str] = os.getenv("CLIENT_LOG_FILE", "client.log")


settings = ClientSettings()
