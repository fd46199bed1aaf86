"""Error reporting for failures that are not surfaced as exceptions"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


class ErrorReporter(ABC):
    """Receives exceptions that the caller handles instead of raising"""

    @abstractmethod
    def capture_exception(
        self, exc: BaseException, context: Optional[Dict[str, Any]] = None
    ) -> None:
        pass


class LoggingErrorReporter(ErrorReporter):
    """Reports captured exceptions to the application log with their traceback"""

    def __init__(self, reporter_logger: Optional[logging.Logger] = None):
        self.logger = reporter_logger or logger

    def capture_exception(
        self, exc: BaseException, context: Optional[Dict[str, Any]] = None
    ) -> None:
        self.logger.error(
            f"Captured {type(exc).__name__}: {exc} context={context or {}}",
            exc_info=(type(exc), exc, exc.__traceback__),
        )


def get_error_reporter() -> ErrorReporter:
    return LoggingErrorReporter()
