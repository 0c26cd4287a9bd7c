"""Logging sink: forwards notifications to the standard logging tree."""

from __future__ import annotations

import logging

from ecoforge.models.notifications import Notification, Severity

logger = logging.getLogger(__name__)

_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class LoggingSink:
    """Emits each notification as a log record on ``ecoforge.notifications``."""

    def __init__(self, logger_name: str = "ecoforge.notifications") -> None:
        self._logger = logging.getLogger(logger_name)

    @property
    def sink_name(self) -> str:
        return "logging"

    def accept(self, notification: Notification) -> None:
        prefix = f"[{notification.run_id}]"
        if notification.task_id:
            prefix += f"[{notification.task_id}]"
        self._logger.log(
            _LEVELS[notification.severity], "%s %s", prefix, notification.message
        )
