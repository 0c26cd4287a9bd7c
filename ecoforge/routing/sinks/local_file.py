"""Local file sink: appends notifications to per-run JSON-lines files.

Layout: {base_path}/{run_id}.jsonl
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from ecoforge.core.hasher import canonical_json_bytes
from ecoforge.models.notifications import Notification

logger = logging.getLogger(__name__)


class LocalFileSink:
    """Writes notifications to local JSON-lines files.

    Parameters
    ----------
    base_path:
        Root directory for notification files.  Defaults to
        ``.ecoforge/notifications``.
    """

    def __init__(self, base_path: Path | str | None = None) -> None:
        self._base = Path(base_path) if base_path else Path(".ecoforge/notifications")
        self._base.mkdir(parents=True, exist_ok=True)

    @property
    def sink_name(self) -> str:
        return "local_file"

    def accept(self, notification: Notification) -> None:
        target = self._base / f"{notification.run_id}.jsonl"
        line = canonical_json_bytes(notification.model_dump(mode="json"))
        with target.open("ab") as fh:
            fh.write(line + b"\n")
        logger.debug("LocalFileSink: appended to %s", target)

    def read_events(self, run_id: str) -> list[dict]:
        """Read back every notification recorded for *run_id*."""
        target = self._base / f"{run_id}.jsonl"
        if not target.exists():
            return []
        return [
            json.loads(line)
            for line in target.read_text(encoding="utf-8").splitlines()
            if line.strip()
        ]
