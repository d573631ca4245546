# mentorhub/core/config.py
import logging
import os
from pathlib import Path
from typing import Annotated, Literal, Set

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


EarlyRenewalMode = Literal["disabled", "extend_from_expiry", "extend_from_now"]
DuplicateReportMode = Literal["silent", "summary", "detailed"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    environment: str = Field(
        default="development", alias="ENVIRONMENT", description="Deployment environment name"
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database
    database_url: str = Field(
        default="sqlite:///./mentorhub.db",
        alias="DATABASE_URL",
        description="SQLAlchemy database URL",
    )
    auto_create_schema: bool = Field(
        default=True,
        alias="AUTO_CREATE_SCHEMA",
        description="Create tables on startup (disable when migrations own the schema)",
    )

    # Auth (token verification only)
    secret_key: SecretStr = Field(
        default=SecretStr("change-me-in-production"),
        alias="SECRET_KEY",
        description="HMAC key used to verify bearer tokens",
    )
    algorithm: str = Field(default="HS256", alias="ALGORITHM")
    access_token_expire_minutes: int = Field(default=60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Enrollment lifecycle
    enrollment_period_days: int = Field(default=30, alias="ENROLLMENT_PERIOD_DAYS", ge=1)
    expiring_soon_days: int = Field(default=7, alias="EXPIRING_SOON_DAYS", ge=0)
    enrollment_early_renewal: EarlyRenewalMode = Field(
        default="disabled",
        alias="ENROLLMENT_EARLY_RENEWAL",
        description=(
            "Whether expiring-soon enrollments may renew early, and whether the new "
            "window extends from the current expiry or from now"
        ),
    )

    # Availability calendar
    weekend_days: Annotated[Set[int], NoDecode] = Field(
        default={5, 6},
        alias="WEEKEND_DAYS",
        description="date.weekday() values skipped by range expansion (5=Sat, 6=Sun)",
    )
    slot_batch_size: int = Field(default=100, alias="SLOT_BATCH_SIZE", ge=1, le=500)
    slot_range_workers: int = Field(default=4, alias="SLOT_RANGE_WORKERS", ge=1, le=16)
    slot_duplicate_report: DuplicateReportMode = Field(
        default="silent",
        alias="SLOT_DUPLICATE_REPORT",
        description="How much detail bulk slot creation reports about skipped duplicates",
    )

    # Ledger / bookings
    admin_wallet_ref: str = Field(
        default="ADMIN-WALLET",
        alias="ADMIN_WALLET_REF",
        description="Wallet reference students transfer top-ups to",
    )
    refund_on_cancel: bool = Field(default=True, alias="REFUND_ON_CANCEL")
    min_session_minutes: int = Field(default=30, alias="MIN_SESSION_MINUTES")
    max_session_minutes: int = Field(default=180, alias="MAX_SESSION_MINUTES")
    default_session_minutes: int = Field(default=60, alias="DEFAULT_SESSION_MINUTES")

    @field_validator("weekend_days", mode="before")
    @classmethod
    def _parse_weekend_days(cls, v: object) -> object:
        if isinstance(v, str):
            return {int(part) for part in v.strip().strip("[]").split(",") if part.strip()}
        if isinstance(v, int):
            return {v}
        return v

    @field_validator("weekend_days")
    @classmethod
    def _validate_weekend_days(cls, v: Set[int]) -> Set[int]:
        for day in v:
            if day < 0 or day > 6:
                raise ValueError(f"Invalid weekday {day}; expected 0 (Mon) to 6 (Sun)")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in {"prod", "production"}


settings = Settings()
