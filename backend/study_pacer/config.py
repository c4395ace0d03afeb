import os
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    log_level: str = Field("INFO", alias="STUDY_PACER_LOG_LEVEL")
    timezone: str = Field("UTC", alias="STUDY_PACER_TIMEZONE")
    chunk_size: int = Field(10, ge=1, alias="STUDY_PACER_CHUNK_SIZE")
    hard_threshold: float = Field(3.5, ge=1.0, le=5.0, alias="STUDY_PACER_HARD_THRESHOLD")
    completion_attribution: Literal["total", "round_scoped"] = Field(
        "total",
        alias="STUDY_PACER_COMPLETION_ATTRIBUTION",
    )
    fallback_window_days: int = Field(30, ge=1, alias="STUDY_PACER_FALLBACK_WINDOW_DAYS")
    max_study_dates: int = Field(365, ge=1, alias="STUDY_PACER_MAX_STUDY_DATES")
    database_url: Optional[str] = Field(None, alias="STUDY_PACER_DATABASE_URL")
    database_echo: bool = Field(False, alias="STUDY_PACER_DATABASE_ECHO")
    debug_sql: bool = Field(False, alias="STUDY_PACER_DEBUG_SQL")
    telemetry_logging: bool = Field(True, alias="STUDY_PACER_TELEMETRY_LOGGING")
    persistence_mode: Literal["memory", "database"] = Field(
        "memory",
        alias="STUDY_PACER_PERSISTENCE_MODE",
    )

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid study pacer configuration: {exc}") from exc
