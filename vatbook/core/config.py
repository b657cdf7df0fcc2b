from decimal import Decimal
from typing import List, Literal
from pydantic_settings import BaseSettings
from pydantic import model_validator
from urllib.parse import quote_plus
import os

class Settings(BaseSettings):
    APP_ENV: str = "local"

    # Database URL - can be provided directly or constructed from components
    DATABASE_URL: str | None = None

    # Individual database components (for constructing DATABASE_URL)
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_NAME: str = ""

    # Auth
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Tax
    VAT_RATE: Decimal = Decimal("0.075")
    # coerce: invalid numeric input counts as 0, reject: raise InvalidAmount
    AMOUNT_POLICY: Literal["coerce", "reject"] = "coerce"

    # Server
    LOCAL_URL: str = "http://127.0.0.1:8000"
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOG_DIR: str = "logs"

    class Config:
        env_file = ".env" if os.getenv("APP_ENV", "local") == "local" else ".env.prod"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @model_validator(mode='after')
    def construct_database_url(self):
        """Construct DATABASE_URL from components if not provided directly."""
        if not self.DATABASE_URL:
            if not self.DB_NAME:
                if self.APP_ENV != "local":
                    raise ValueError("Either DATABASE_URL or DB_NAME must be provided")
                # Local development falls back to a SQLite file
                self.DATABASE_URL = "sqlite:///./vatbook.db"
            else:
                # URL encode password to handle special characters
                password_part = f":{quote_plus(self.DB_PASSWORD)}" if self.DB_PASSWORD else ""
                self.DATABASE_URL = f"postgresql://{self.DB_USER}{password_part}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

        if self.VAT_RATE < 0 or self.VAT_RATE >= 1:
            raise ValueError("VAT_RATE must be a fraction between 0 and 1")

        # Ensure DATABASE_URL is always a string after validation
        assert self.DATABASE_URL is not None, "DATABASE_URL must be set"
        return self

    @property
    def database_url(self) -> str:
        """Get DATABASE_URL as a guaranteed string."""
        assert self.DATABASE_URL is not None, "DATABASE_URL must be set"
        return self.DATABASE_URL

settings = Settings()
