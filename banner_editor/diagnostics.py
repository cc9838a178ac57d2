"""Structured diagnostics for ignored or skipped editor operations.

Operations that are deliberately tolerant (unknown ids, locked deletes,
unresolved images, missing measurements) log and record an event here
instead of raising, so hosts and tests can see what was skipped.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class DiagnosticKind(str, Enum):
    """Kinds of recorded anomalies."""

    UNKNOWN_COMPONENT = "unknown_component"
    LOCKED_COMPONENT = "locked_component"
    INVALID_OPERATION = "invalid_operation"
    MEASUREMENT_UNAVAILABLE = "measurement_unavailable"
    UNRESOLVED_ASSET = "unresolved_asset"


@dataclass
class DiagnosticEvent:
    """A single recorded anomaly."""

    kind: DiagnosticKind
    operation: str
    message: str
    component_id: Optional[str] = None
    details: dict = field(default_factory=dict)
    recorded_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "operation": self.operation,
            "message": self.message,
            "component_id": self.component_id,
            "details": dict(self.details),
            "recorded_at": self.recorded_at.isoformat(),
        }


class EditorDiagnostics:
    """Thread-safe bounded buffer of diagnostic events."""

    def __init__(self, max_events: int = 500):
        self._lock = threading.Lock()
        self._events: deque[DiagnosticEvent] = deque(maxlen=max_events)

    def record(
        self,
        kind: DiagnosticKind,
        operation: str,
        message: str,
        component_id: Optional[str] = None,
        **details,
    ) -> DiagnosticEvent:
        event = DiagnosticEvent(
            kind=kind,
            operation=operation,
            message=message,
            component_id=component_id,
            details=details,
        )
        with self._lock:
            self._events.append(event)
        logger.info("%s: %s (%s)", operation, message, kind.value)
        return event

    def events(self, kind: Optional[DiagnosticKind] = None) -> list[DiagnosticEvent]:
        with self._lock:
            items = list(self._events)
        if kind is None:
            return items
        return [e for e in items if e.kind == kind]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
