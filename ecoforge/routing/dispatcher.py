"""NotificationDispatcher: routes run notifications to every registered sink.

Each notification is fanned out to all sinks in registration order.  A
failing sink is logged and skipped; notification delivery never affects
the outcome of a run, so even a total sink outage is not raised.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ecoforge.models.notifications import Notification, Severity

if TYPE_CHECKING:
    from ecoforge.routing.sinks import NotificationSink

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Routes notifications to ALL configured sinks.

    Usage
    -----
    >>> dispatcher = NotificationDispatcher()
    >>> dispatcher.register_sink(LoggingSink())
    >>> dispatcher.notify("run-1", "Run started")
    """

    def __init__(self) -> None:
        self._sinks: list[NotificationSink] = []

    # ------------------------------------------------------------------
    # Sink management
    # ------------------------------------------------------------------

    def register_sink(self, sink: NotificationSink) -> None:
        """Register a sink; duplicate registration of one instance is ignored."""
        if sink not in self._sinks:
            self._sinks.append(sink)
            logger.debug("Registered sink: %s", sink.sink_name)

    def unregister_sink(self, sink: NotificationSink) -> None:
        if sink in self._sinks:
            self._sinks.remove(sink)
            logger.debug("Unregistered sink: %s", sink.sink_name)

    @property
    def registered_sinks(self) -> list[NotificationSink]:
        """Return a copy of the registered sink list."""
        return list(self._sinks)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, notification: Notification) -> list[str]:
        """Deliver *notification* to every sink.

        Returns the names of the sinks that accepted it.
        """
        succeeded: list[str] = []
        for sink in self._sinks:
            try:
                sink.accept(notification)
                succeeded.append(sink.sink_name)
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "Sink %s failed for notification on run %s: %s",
                    sink.sink_name,
                    notification.run_id,
                    exc,
                )

        if self._sinks and len(succeeded) < len(self._sinks):
            logger.warning(
                "Run %s: %d/%d sinks accepted notification",
                notification.run_id,
                len(succeeded),
                len(self._sinks),
            )
        return succeeded

    def notify(
        self,
        run_id: str,
        message: str,
        severity: Severity = Severity.INFO,
        *,
        task_id: str | None = None,
    ) -> Notification:
        """Build a notification and dispatch it."""
        notification = Notification(
            run_id=run_id, message=message, severity=severity, task_id=task_id
        )
        self.dispatch(notification)
        return notification
