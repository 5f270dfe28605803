import logging

from croniter import croniter
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)


class CustomSettings(BaseSettings):
    """Application settings loaded from environment variables.

    Validates configuration at startup to catch misconfiguration early.
    """

    epg_base_url: str = "https://tvguide.example.com/api/epg"
    epg_domain: str = "default"
    epg_type: str = "tv"
    epg_request_timeout_sec: float = 30.0
    epg_fetch_concurrency: int = 4  # Max days fetched in parallel per range query
    default_occurrence_limit: int = 10

    epg_prefetch_cron: str = "0 3 * * *"  # Daily at 3 AM, empty disables prefetch
    epg_prefetch_days: int = 1  # Days after today to warm as well
    epg_prefetch_misfire_grace_sec: int = 3600

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("epg_base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        """Validate provider URL is HTTP/HTTPS."""
        if not value.lower().startswith(("http://", "https://")):
            raise ValueError(f"EPG base URL must be HTTP/HTTPS: {value}")
        return value

    @field_validator("epg_request_timeout_sec")
    @classmethod
    def validate_request_timeout(cls, value: float) -> float:
        """Validate provider request timeout (seconds)."""
        if value <= 0:
            raise ValueError("epg_request_timeout_sec must be > 0")
        return value

    @field_validator("epg_fetch_concurrency", "default_occurrence_limit")
    @classmethod
    def validate_positive_ints(cls, value: int, info) -> int:
        """Ensure integer settings are positive."""
        if value <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return value

    @field_validator("epg_prefetch_days")
    @classmethod
    def validate_prefetch_days(cls, value: int) -> int:
        """Validate prefetch horizon is reasonable."""
        if value < 0:
            raise ValueError("epg_prefetch_days must be >= 0")
        if value > 31:
            raise ValueError("epg_prefetch_days must be <= 31 days")
        return value

    @field_validator("epg_prefetch_misfire_grace_sec")
    @classmethod
    def validate_misfire_grace(cls, value: int) -> int:
        """Validate scheduler misfire grace period (seconds)."""
        if value < 0:
            raise ValueError("epg_prefetch_misfire_grace_sec must be >= 0")
        return value

    @field_validator("epg_prefetch_cron")
    @classmethod
    def validate_cron_expression(cls, value: str) -> str:
        """Validate cron expression is valid (empty disables prefetch)."""
        value = value.strip()
        if not value:
            return value
        try:
            croniter(value)
            return value
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Invalid cron expression '{value}': {exc}") from exc

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate logging level name."""
        normalized = value.upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if normalized not in allowed:
            raise ValueError(f"log_level must be one of {sorted(allowed)}")
        return normalized

    def __init__(self, **data):
        """Initialize settings and log configuration."""
        super().__init__(**data)

        logger.info("Configuration loaded:")
        logger.info("  EPG Provider: %s", self.epg_base_url)
        logger.info("  EPG Domain/Type: %s/%s", self.epg_domain, self.epg_type)
        logger.info("  Request Timeout: %ss", self.epg_request_timeout_sec)
        logger.info("  Fetch Concurrency: %s days", self.epg_fetch_concurrency)
        logger.info("  Default Occurrence Limit: %s", self.default_occurrence_limit)
        logger.info("  Prefetch Schedule: %s", self.epg_prefetch_cron or "disabled")
        logger.info("  Prefetch Horizon: today + %s days", self.epg_prefetch_days)
        logger.info("  Prefetch Misfire Grace: %ss", self.epg_prefetch_misfire_grace_sec)


settings = CustomSettings()


def setup_logging() -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
