"""Notification routing: dispatcher and pluggable sinks."""

from ecoforge.routing.dispatcher import NotificationDispatcher

__all__ = ["NotificationDispatcher"]
