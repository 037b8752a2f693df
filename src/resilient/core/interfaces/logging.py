from abc import ABC, abstractmethod


class LoggingPort(ABC):
    """Minimal logging surface the core emits through.

    Messages use %-style placeholders; arguments are only formatted when the
    record is actually emitted.
    """

    @abstractmethod
    def info(self, msg: str, *args):
        pass

    @abstractmethod
    def warning(self, msg: str, *args):
        pass

    @abstractmethod
    def error(self, msg: str, *args):
        pass

    @abstractmethod
    def debug(self, msg: str, *args):
        pass
