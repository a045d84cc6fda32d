from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./buyerlens.db"

    # Narration (Gemini)
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-1.5-flash"
    NARRATION_TIMEOUT: float = Field(default=30.0, gt=0)

    # Report defaults
    UNDERPERFORMER_LOOKBACK_DAYS: int = Field(default=90, ge=0)
    UNDERPERFORMER_SALES_THRESHOLD: int = Field(default=50, ge=0)
    UNDERPERFORMER_LIMIT: int = Field(default=10, ge=1)
    TREND_SEARCH_LIMIT: int = Field(default=20, ge=1)

    LOG_LEVEL: str = "INFO"
    LOG_DIR: Path | None = None
    ERROR_REPORT_DIR: Path = Path("tmp/error_reports")


settings = Settings()
