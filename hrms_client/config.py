# hrms_client/config.py
import json
import logging
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


class ClientSettings(BaseSettings):
    """Client settings"""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Server connection
    SERVER_URL: str = "http://localhost:8000"
    TIMEOUT: float = 10.0
    MAX_RETRIES: int = 3
    RETRY_DELAY: float = 1.0

    # Stored login, the counterpart of the browser's local storage
    SESSION_FILE: str = "~/.hrms_session.json"

    # CSV hiring import
    CSV_FILE_PATH: str = "employee_data.csv"
    CSV_DELIMITER: str = ","
    CSV_ENCODING: str = "utf-8"
    BATCH_SIZE: int = 50
    MAX_WORKERS: int = 5

    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = "client.log"


# Create instance of settings
settings = ClientSettings()


def configure_logging(level: Optional[str] = None):
    handlers = [logging.StreamHandler()]
    if settings.LOG_FILE:
        handlers.append(logging.FileHandler(settings.LOG_FILE))

    logging.basicConfig(
        level=level or settings.LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )
    logger.debug(f"Client configuration loaded: {json.dumps(settings.model_dump(), indent=2, default=str)}")
