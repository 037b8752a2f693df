"""Configuration models for the retry executor.

This module provides the Pydantic-based ``RetryConfig`` and the process-wide
default template every call is merged over.
"""

from collections.abc import Mapping
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from resilient.core.retry_predicates import RetryPredicate, default_is_retryable


class RetryConfig(BaseModel):
    """Retry policy for a single ``execute()`` call.

    Attributes:
        max_retries: Retries after the first attempt (total attempts = max_retries + 1)
        base_delay: Initial backoff unit in seconds
        use_exponential_backoff: Double the delay per attempt index instead of keeping it constant
        is_retryable: Predicate deciding whether a failure triggers another attempt
        max_jitter: Exclusive upper bound in seconds of the uniform jitter added to every delay
    """

    max_retries: int = Field(
        default=3,
        ge=0,
        description="Number of retry attempts after the first attempt"
    )

    base_delay: float = Field(
        default=1.0,
        ge=0,
        description="Initial backoff unit in seconds"
    )

    use_exponential_backoff: bool = Field(
        default=True,
        description="Grow the delay as base_delay * 2**attempt_index when enabled"
    )

    is_retryable: RetryPredicate = Field(
        default=default_is_retryable,
        description="Classifies whether a failure should trigger another attempt"
    )

    max_jitter: float = Field(
        default=1.0,
        ge=0,
        description="Upper bound (exclusive) in seconds of the random jitter term"
    )

    model_config = ConfigDict(
        frozen=True,  # shared template must never change under a running call
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def merged(
        self, overrides: Optional[Union["RetryConfig", Mapping[str, Any]]] = None
    ) -> "RetryConfig":
        """Return a new validated config with ``overrides`` applied on top of this one.

        Args:
            overrides: None, a complete RetryConfig (returned as-is) or a mapping
                holding a subset of fields by name or camelCase alias

        Raises:
            pydantic.ValidationError: unknown field or value out of range
        """
        if overrides is None:
            return self
        if isinstance(overrides, RetryConfig):
            return overrides
        values = dict(self)
        values.update(_canonical_keys(overrides))
        return type(self).model_validate(values)

    @classmethod
    def from_app_settings(cls, settings) -> "RetryConfig":
        """Factory method to construct the default template from a ResilientSettings instance."""
        return cls(
            max_retries=settings.RESILIENT_MAX_RETRIES,
            base_delay=settings.RESILIENT_BASE_DELAY,
            use_exponential_backoff=settings.RESILIENT_USE_EXPONENTIAL_BACKOFF,
            max_jitter=settings.RESILIENT_MAX_JITTER,
            # is_retryable has no environment form; the default predicate is used
        )


def _canonical_keys(overrides: Mapping[str, Any]) -> dict:
    # camelCase aliases map back to field names so they can be mixed with dict(self)
    aliases = {field.alias: name for name, field in RetryConfig.model_fields.items()}
    return {aliases.get(key, key): value for key, value in overrides.items()}


DEFAULT_RETRY_CONFIG = RetryConfig()
