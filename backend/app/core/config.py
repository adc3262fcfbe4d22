from functools import lru_cache
import json
from typing import Annotated

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_REQUEST_STATUSES = [
    "new",
    "sentToScheduler",
    "notificationsTranslated",
    "notificationsSent",
    "caOpened",
    "caPaused",
    "caClosed",
]


def _parse_list_value(value) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        raw = value.strip()
        if raw == "":
            return []
        if raw.startswith("["):
            try:
                parsed = json.loads(raw)
            except ValueError:
                parsed = None
            if isinstance(parsed, list):
                return [str(item).strip() for item in parsed if str(item).strip()]
        return [item.strip() for item in raw.split(",") if item.strip()]
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    return []


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="ignore",
        validate_by_name=True,
        populate_by_name=True,
    )

    environment: str = "development"
    database_url: str = ""
    log_level: str = "INFO"
    api_prefix: str = "/api/v1"

    docs_enabled: bool = Field(default=True)
    openapi_enabled: bool = Field(default=True)
    expose_error_details: bool = False

    scheduler_url: str = Field(
        default="",
        validation_alias=AliasChoices("SCHEDULER_URL", "HELPDESK_JOB_API_URL"),
    )
    scheduler_timeout_seconds: float = 5.0
    scheduler_retry_attempts: int = 5
    scheduler_retry_delay_seconds: float = 2.0
    scheduler_test_retry_attempts: int = 2
    scheduler_test_retry_delay_seconds: float = 0.0

    # Request workflow states are not settled yet; keep them out of the code.
    request_statuses: Annotated[list[str], NoDecode] = Field(default_factory=lambda: list(DEFAULT_REQUEST_STATUSES))
    request_initial_status: str = "new"
    request_scheduled_status: str = "sentToScheduler"

    cors_allow_origins: Annotated[list[str], NoDecode] = Field(default_factory=list)

    @field_validator("request_statuses", "cors_allow_origins", mode="before")
    @classmethod
    def _split_csv(cls, value):
        if value is None:
            return []
        return _parse_list_value(value)

    @property
    def is_test(self) -> bool:
        return self.environment.strip().lower() == "test"

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"

    @property
    def scheduler_retry_policy(self) -> tuple[int, float]:
        """(attempts, delay_seconds) for scheduler submissions."""
        if self.is_test:
            return self.scheduler_test_retry_attempts, self.scheduler_test_retry_delay_seconds
        return self.scheduler_retry_attempts, self.scheduler_retry_delay_seconds

    def validate_required_config(self) -> list[str]:
        errors: list[str] = []
        if not self.database_url:
            errors.append("DATABASE_URL is not configured")
        if not self.request_statuses:
            errors.append("REQUEST_STATUSES must not be empty")
        if self.request_initial_status not in self.request_statuses:
            errors.append(f"REQUEST_INITIAL_STATUS {self.request_initial_status!r} is not a known status")
        if self.request_scheduled_status not in self.request_statuses:
            errors.append(f"REQUEST_SCHEDULED_STATUS {self.request_scheduled_status!r} is not a known status")
        attempts, _ = self.scheduler_retry_policy
        if attempts < 1:
            errors.append("Scheduler retry attempts must be at least 1")
        return errors


@lru_cache
def get_settings() -> Settings:
    return Settings()
