import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from app.config.config import settings


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

LogMessage = Union[str, Dict[str, Any]]


def configure_logging(level: Optional[str] = None) -> None:
    """Install the root handler once, using `LOG_LEVEL` unless overridden."""
    logging.basicConfig(
        level=getattr(logging, (level or settings.LOG_LEVEL), logging.INFO),
        format=LOG_FORMAT,
    )


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LoggerMixin:
    """
    Mixin that gives a class structured logging helpers.

    Every helper accepts either a plain string or a dict event such as
    ``{"event": "patient_created", "patient_id": "P123456789"}``. Dict events
    are rendered as compact JSON so they stay greppable in aggregated logs.

    Example:
        class PatientService(LoggerMixin):
            async def create_patient(self, data):
                self.log_info({"event": "patient_create_started"})
    """

    _logger: Optional[logging.Logger] = None

    @property
    def logger(self) -> logging.Logger:
        if self._logger is None:
            self._logger = logging.getLogger(
                f"{self.__class__.__module__}.{self.__class__.__name__}"
            )
        return self._logger

    @staticmethod
    def _format_message(message: LogMessage) -> str:
        if isinstance(message, dict):
            return json.dumps(message, default=str, sort_keys=False)
        return message

    def log_info(self, message: LogMessage, **kwargs) -> None:
        self.logger.info(self._format_message(message), **kwargs)

    def log_warning(self, message: LogMessage, **kwargs) -> None:
        self.logger.warning(self._format_message(message), **kwargs)

    def log_error(self, message: LogMessage, exc_info: bool = False, **kwargs) -> None:
        """
        Log at error level.

        Args:
            message: String or dict event
            exc_info: Attach the active exception's traceback when True
        """
        self.logger.error(self._format_message(message), exc_info=exc_info, **kwargs)

    def log_debug(self, message: LogMessage, **kwargs) -> None:
        self.logger.debug(self._format_message(message), **kwargs)

    def log_security_event(self, message: LogMessage, **kwargs) -> None:
        """
        Log a security-relevant event (failed login, role denial, bad token).

        Emitted at warning level with a ``SECURITY EVENT:`` prefix so these
        lines can be filtered out of the regular application log.
        """
        self.logger.warning(f"SECURITY EVENT: {self._format_message(message)}", **kwargs)


class _ModuleLevelLogger(LoggerMixin):
    """Shared logger for routes and module-level helpers."""

    def __init__(self, name: str = "app"):
        self._logger = logging.getLogger(name)


logger = _ModuleLevelLogger()
