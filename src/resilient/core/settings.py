from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings
from rich import print

from resilient.adapters.logging_adapter import LoggingAdapter
from resilient.core.interfaces.logging import LoggingPort


# using pydantic_settings to manage environment variables
# and do automatic type casting in a central place
class ResilientSettings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }
    RESILIENT_LOG_LEVEL: str = "INFO"
    RESILIENT_MAX_RETRIES: int = 3
    RESILIENT_BASE_DELAY: float = 1.0  # seconds
    RESILIENT_USE_EXPONENTIAL_BACKOFF: bool = True
    RESILIENT_MAX_JITTER: float = 1.0  # seconds, exclusive upper bound
    # "native" uses RetryExecutor, "tenacity" the TenacityRetryAdapter
    RESILIENT_RETRY_BACKEND: Literal["native", "tenacity"] = "native"

    def print_settings(self, logger: LoggingPort):
        """Prints the settings for debugging purposes"""
        logger.info("Resilient executor settings:")
        print(self)

    @field_validator("RESILIENT_LOG_LEVEL", mode="before")
    def normalize_log_level(cls, value: str) -> str:
        return str(value).upper().strip()

    @field_validator("RESILIENT_MAX_RETRIES")
    def non_negative_retries(cls, value: int) -> int:
        if value < 0:
            raise ValueError("RESILIENT_MAX_RETRIES must be >= 0")
        return value

    @field_validator("RESILIENT_BASE_DELAY", "RESILIENT_MAX_JITTER")
    def non_negative_seconds(cls, value: float) -> float:
        if value < 0:
            raise ValueError("delays must be >= 0 seconds")
        return value


app_settings = ResilientSettings()

logger: LoggingPort = LoggingAdapter("resilient", app_settings.RESILIENT_LOG_LEVEL)


def set_logger(new_logger: LoggingPort) -> None:
    """Replace the logger the core emits through (called from the composition root)."""
    global logger
    logger = new_logger


def get_logger() -> LoggingPort:
    return logger
