"""
Observability hook. Components receive a sink and call emit(name, **fields);
emission never alters control flow.
"""
import logging
from typing import Any, Dict, List, Tuple

logger = logging.getLogger(__name__)


class EventSink:
    """Base sink: drops every event."""

    def emit(self, name: str, **fields: Any) -> None:
        pass


class LoggingEventSink(EventSink):
    def __init__(self, level: int = logging.INFO):
        self.level = level

    def emit(self, name: str, **fields: Any) -> None:
        parts = " ".join(f"{k}={v}" for k, v in sorted(fields.items()))
        logger.log(self.level, "EVENT %s %s", name, parts)


class RecordingEventSink(EventSink):
    """Keeps events in memory, in emission order."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def emit(self, name: str, **fields: Any) -> None:
        self.events.append((name, dict(fields)))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]

    def of(self, name: str) -> List[Dict[str, Any]]:
        return [fields for n, fields in self.events if n == name]


def safe_emit(sink: EventSink, name: str, **fields: Any) -> None:
    """Emit through sink; a failing sink is logged and otherwise ignored."""
    try:
        sink.emit(name, **fields)
    except Exception as e:
        logger.warning("EVENT_SINK failed event=%s error=%s", name, e)
