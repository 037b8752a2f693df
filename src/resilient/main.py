# main.py
from typing import Optional

from resilient.adapters.logging_adapter import LoggingAdapter
from resilient.adapters.retry_tenacity import TenacityRetryAdapter
from resilient.core.config import RetryConfig
from resilient.core.interfaces.retry import RetryPort
from resilient.core.logging_config import configure_logging
from resilient.core.managers.observers import LoggingRetryObserver
from resilient.core.managers.retry_executor import RetryExecutor
from resilient.core.settings import ResilientSettings, app_settings, get_logger, set_logger


# main lives at the outermost layer (not in core)
# Instantiates the concrete retry backend
# Wires the logging observer into it


def build_retry_port(
    settings: Optional[ResilientSettings] = None,
    label: str = "operation",
) -> RetryPort:
    """Build the RetryPort selected by RESILIENT_RETRY_BACKEND.

    The default template comes from the settings; scheduled retries and
    give-ups are logged through the current logging port.
    """
    settings = settings or app_settings
    defaults = RetryConfig.from_app_settings(settings)
    observers = [LoggingRetryObserver(label=label)]

    if settings.RESILIENT_RETRY_BACKEND == "tenacity":
        return TenacityRetryAdapter(defaults=defaults, observers=observers)
    return RetryExecutor(defaults=defaults, observers=observers)


def main():
    # Central logging configuration BEFORE injecting adapter
    configure_logging(app_settings.RESILIENT_LOG_LEVEL)
    set_logger(LoggingAdapter("resilient", app_settings.RESILIENT_LOG_LEVEL))

    app_settings.print_settings(get_logger())
    port = build_retry_port(app_settings)
    defaults = port.defaults
    get_logger().info(
        "Retry backend=%s max_retries=%s base_delay=%ss exponential=%s max_jitter=%ss",
        type(port).__name__,
        defaults.max_retries,
        defaults.base_delay,
        defaults.use_exponential_backoff,
        defaults.max_jitter,
    )


if __name__ == "__main__":
    main()
