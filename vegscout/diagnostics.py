import logging
from collections import deque
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


class DiagnosticLog:
    """Bounded per-analysis trace; oldest entries drop off once full."""

    def __init__(self, capacity: int = 200, scope: str | None = None) -> None:
        self._entries: deque[tuple[datetime, str, str]] = deque(maxlen=capacity)
        self._scope = scope

    def record(self, stage: str, message: str, *args: object) -> None:
        text = message % args if args else message
        self._entries.append((datetime.now(timezone.utc), stage, text))
        logger.debug("[%s] %s: %s", self._scope or "-", stage, text)

    def entries(self) -> list[str]:
        return [f"{ts.isoformat()} {stage}: {text}" for ts, stage, text in self._entries]

    def __len__(self) -> int:
        return len(self._entries)
