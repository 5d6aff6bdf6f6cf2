import logging
import sys
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Core settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Project
    PROJECT_NAME: str = "Telemetry Insights Core"
    VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Number formatting used for chart values
    NUMBER_DECIMAL_SEPARATOR: str = "."
    NUMBER_GROUPING_SEPARATOR: str = ","
    NUMBER_USES_GROUPING: bool = True
    NUMBER_MAX_FRACTION_DIGITS: int = 3

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("NUMBER_DECIMAL_SEPARATOR", "NUMBER_GROUPING_SEPARATOR")
    @classmethod
    def validate_separator(cls, v: str) -> str:
        if len(v) != 1:
            raise ValueError("Number separators must be a single character")
        if v.isdigit() or v in "+-":
            raise ValueError("Number separators must not be a digit or a sign")
        return v

    @field_validator("NUMBER_MAX_FRACTION_DIGITS")
    @classmethod
    def validate_fraction_digits(cls, v: int) -> int:
        if v < 0:
            raise ValueError("NUMBER_MAX_FRACTION_DIGITS must not be negative")
        return v

    @model_validator(mode="after")
    def validate_distinct_separators(self) -> "Settings":
        if self.NUMBER_DECIMAL_SEPARATOR == self.NUMBER_GROUPING_SEPARATOR:
            raise ValueError("Decimal and grouping separators must differ")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()


def setup_logging() -> None:
    """Configure structured logging for processes embedding the core."""
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )

    # The codec logs every rejected payload at debug level
    logging.getLogger("telemetry_core.services.query_result_codec").setLevel(
        logging.DEBUG if settings.DEBUG else logging.INFO
    )
