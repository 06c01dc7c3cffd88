from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import model_validator
from enum import Enum


class Environment(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    # Environment Configuration
    ENVIRONMENT: Environment = Environment.DEVELOPMENT

    # Project Information
    PROJECT_NAME: str = "MemoCare"
    VERSION: str = "0.1.0"
    API_V1_STR: str = "/api/v1"

    # Server settings
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 5000

    # Database - SQLite file by default, PostgreSQL via URI or POSTGRES_* parts
    POSTGRES_SERVER: Optional[str] = None
    POSTGRES_PORT: Optional[int] = None
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_DB: Optional[str] = None
    SQLALCHEMY_DATABASE_URI: Optional[str] = None
    AUTO_CREATE_TABLES: bool = True

    # Browser client origin for CORS
    CLIENT_ORIGIN: str = "http://localhost:5173"

    # API Security
    VALID_API_KEYS: str = ""  # comma-separated
    REQUIRE_API_KEY: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    @model_validator(mode="after")
    def _finalize(self) -> "Settings":
        # Derive SQLALCHEMY_DATABASE_URI if not provided
        if not self.SQLALCHEMY_DATABASE_URI:
            if self.POSTGRES_USER and self.POSTGRES_SERVER and self.POSTGRES_DB:
                from urllib.parse import quote_plus

                auth = quote_plus(self.POSTGRES_USER)
                if self.POSTGRES_PASSWORD:
                    auth = f"{auth}:{quote_plus(self.POSTGRES_PASSWORD)}"
                port = self.POSTGRES_PORT or 5432
                self.SQLALCHEMY_DATABASE_URI = (
                    f"postgresql://{auth}@{self.POSTGRES_SERVER}:{port}/{self.POSTGRES_DB}"
                )
            else:
                self.SQLALCHEMY_DATABASE_URI = "sqlite:///./memocare.db"
        return self

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == Environment.DEVELOPMENT

    @property
    def api_keys(self) -> List[str]:
        return [key.strip() for key in self.VALID_API_KEYS.split(",") if key.strip()]

    @property
    def allowed_cors_origins(self) -> List[str]:
        origins = [self.CLIENT_ORIGIN]
        if self.is_development:
            origins += ["http://localhost:3000", "http://127.0.0.1:5173"]
        return origins

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", extra="ignore")


settings = Settings()
