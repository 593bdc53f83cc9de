from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")
    db_echo: bool = Field(False, alias="DB_ECHO")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # Enrollment on or before this day of month is billed the full period fee in the enrollment month.
    billing_cutoff_day: int = Field(20, ge=1, le=31, alias="BILLING_CUTOFF_DAY")
    # Optional half-fee band [half_fee_from_day, cutoff_day]; disabled when unset.
    billing_half_fee_from_day: Optional[int] = Field(None, ge=1, le=31, alias="BILLING_HALF_FEE_FROM_DAY")

    billing_max_retries: int = Field(3, ge=1, alias="BILLING_MAX_RETRIES")
    billing_retry_backoff_seconds: float = Field(0.5, ge=0, alias="BILLING_RETRY_BACKOFF_SECONDS")
    billing_concurrency: int = Field(4, ge=1, alias="BILLING_CONCURRENCY")

    billing_scheduler_enabled: bool = Field(False, alias="BILLING_SCHEDULER_ENABLED")
    billing_scheduler_interval_seconds: int = Field(86400, ge=1, alias="BILLING_SCHEDULER_INTERVAL_SECONDS")

    @model_validator(mode="after")
    def validate_half_fee_band(self) -> "Settings":
        if self.billing_half_fee_from_day is not None and self.billing_half_fee_from_day > self.billing_cutoff_day:
            raise ValueError("BILLING_HALF_FEE_FROM_DAY must not be after BILLING_CUTOFF_DAY")
        return self

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        populate_by_name = True


settings = Settings()
