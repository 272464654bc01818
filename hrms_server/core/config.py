# hrms_server/core/config.py
from typing import List, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Server settings"""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database connection
    DATABASE_URL: Optional[str] = None
    DB_HOST: str = "localhost"
    DB_PORT: str = "3306"
    DB_USER: str = "root"
    DB_PASSWORD: str = "happy"
    DB_NAME: str = "hrms"
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    SQL_ECHO: bool = False

    # Tokens
    SECRET_KEY: str = "your-secret-key-for-jwt"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    AUTH_COOKIE_SECURE: bool = False

    # Passwords and one-time passcodes
    BCRYPT_ROUNDS: int = 10
    DEFAULT_LOGIN_PASSWORD: str = "12345"
    MIN_PASSWORD_LENGTH: int = 6
    OTP_LENGTH: int = 6
    OTP_EXPIRE_MINUTES: int = 10

    # SMTP
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASS: str = ""
    SMTP_USE_TLS: bool = True
    SMTP_TIMEOUT: float = 10.0
    SMTP_MAX_MESSAGES: int = 100
    MAIL_FROM_NAME: str = "DD Healthcare HRMS"
    COMPANY_NAME: str = "DD Healthcare"

    # HTTP
    CORS_ORIGINS: List[str] = [
        "http://localhost",
        "http://localhost:8080",
        "http://localhost:3000",
    ]
    RATE_LIMIT_ENABLED: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "server.log"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mysql+aiomysql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def sync_database_url(self) -> str:
        """URL for synchronous tooling such as alembic"""
        return self.database_url.replace("+aiomysql", "+pymysql").replace("+aiosqlite", "")


settings = Settings()
