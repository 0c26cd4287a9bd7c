"""Rich console sink: prints notifications as coloured one-liners."""

from __future__ import annotations

from rich.console import Console

from ecoforge.models.notifications import Notification, Severity

_STYLES = {
    Severity.INFO: "cyan",
    Severity.SUCCESS: "green",
    Severity.WARNING: "yellow",
    Severity.ERROR: "bold red",
}


class ConsoleSink:
    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(stderr=True)

    @property
    def sink_name(self) -> str:
        return "console"

    def accept(self, notification: Notification) -> None:
        style = _STYLES[notification.severity]
        label = f"[{style}]{notification.severity.value.upper():<7}[/{style}]"
        task = f" [dim]{notification.task_id}[/dim]" if notification.task_id else ""
        self._console.print(f"{label}{task} {notification.message}", highlight=False)
