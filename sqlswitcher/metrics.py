"""
Metrics collaborators for the conversion engine.

The engine calls these fire-and-forget; see SqlConverterEngine._record.
"""

import logging

from .models import Dialect

logger = logging.getLogger(__name__)


class NullMetrics:
    """Metrics sink that records nothing."""

    def record_request(self, source: Dialect, target: Dialect) -> None:
        pass

    def record_success(self, source: Dialect, target: Dialect) -> None:
        pass

    def record_error(self, source: Dialect, target: Dialect, error: str) -> None:
        pass

    def record_duration(self, source: Dialect, target: Dialect, duration_ms: float) -> None:
        pass


class LoggingMetrics(NullMetrics):
    """Metrics sink that writes every event to the sqlswitcher.metrics logger."""

    def __init__(self, level: int = logging.INFO):
        self.level = level

    def record_request(self, source: Dialect, target: Dialect) -> None:
        logger.log(self.level, "request %s -> %s", source.value, target.value)

    def record_success(self, source: Dialect, target: Dialect) -> None:
        logger.log(self.level, "success %s -> %s", source.value, target.value)

    def record_error(self, source: Dialect, target: Dialect, error: str) -> None:
        logger.log(self.level, "error %s -> %s: %s", source.value, target.value, error)

    def record_duration(self, source: Dialect, target: Dialect, duration_ms: float) -> None:
        logger.log(self.level, "duration %s -> %s: %.1f ms", source.value, target.value, duration_ms)
