from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from typing import List, Optional


class Settings(BaseSettings):
    PROJECT_NAME: str = "Labor Management"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    # production database
    MONGODB_URL: Optional[str] = None
    MONGODB_DB_NAME: str = "labor_management"

    # local database, used instead of MONGODB_URL when enabled
    DB_EMULATOR_ENABLED: bool = False
    DB_EMULATOR_URL: str = "mongodb://localhost:27017"

    APP_ENV: str = "production"
    LOG_LEVEL: str = "INFO"

    SECRET_KEY: str

    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 3000
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30

    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    CACHE_TTL_SECONDS: int = 60
    CACHE_MAX_ITEMS: int = 5000

    # This makes sure it loads the .env file from the project root
    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parent.parent.parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_development(self) -> bool:
        return self.APP_ENV.lower() == "development"

    def database_url(self, use_emulator: Optional[bool] = None) -> str:
        """Resolve the Mongo URL, honouring the emulator flag unless overridden."""
        if use_emulator is None:
            use_emulator = self.DB_EMULATOR_ENABLED
        if use_emulator:
            return self.DB_EMULATOR_URL
        if not self.MONGODB_URL:
            raise RuntimeError("MONGODB_URL is not defined")
        return self.MONGODB_URL


settings = Settings()
