"""Sink protocol for ecoforge notifications.

All sinks implement the ``NotificationSink`` protocol: a ``sink_name``
property and an ``accept(notification)`` method.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ecoforge.models.notifications import Notification


@runtime_checkable
class NotificationSink(Protocol):
    """Protocol that every notification sink must implement.

    Attributes
    ----------
    sink_name : str
        A unique human-readable identifier for this sink instance
        (e.g. ``"logging"``, ``"local_file"``).
    """

    @property
    def sink_name(self) -> str:
        """Return the unique name of this sink."""
        ...

    def accept(self, notification: Notification) -> None:
        """Accept and process a notification.

        The dispatcher logs any exception raised here and moves on to the
        next sink.
        """
        ...


from ecoforge.routing.sinks.console import ConsoleSink  # noqa: E402
from ecoforge.routing.sinks.local_file import LocalFileSink  # noqa: E402
from ecoforge.routing.sinks.logging_sink import LoggingSink  # noqa: E402

__all__ = ["ConsoleSink", "LocalFileSink", "LoggingSink", "NotificationSink"]
