# taskboard/observability.py — Per-request operation observers
"""
The core never keeps process-wide counters or logs. Callers hand an observer
to ``BoardService``; one observer instance lives as long as the request that
created it.
"""
import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class OperationOutcome(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    INVALID = "invalid"
    ERROR = "error"


@dataclass
class OperationEvent:
    """One completed core operation"""
    operation: str
    outcome: OperationOutcome
    duration_ms: float
    timestamp: str
    request_id: Optional[str] = None
    entity_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "outcome": self.outcome.value,
            "duration_ms": round(self.duration_ms, 3),
            "timestamp": self.timestamp,
            "request_id": self.request_id,
            "entity_id": self.entity_id,
            "metadata": self.metadata,
            "error": self.error,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class OperationObserver:
    """No-op observer; subclass and override ``record``"""

    def __init__(self, request_id: Optional[str] = None):
        self.request_id = request_id or str(uuid.uuid4())[:12]

    def start(self) -> float:
        return time.perf_counter()

    def finish(
        self,
        operation: str,
        started: float,
        outcome: OperationOutcome = OperationOutcome.OK,
        entity_id: Optional[str] = None,
        error: Optional[BaseException] = None,
        **metadata: Any,
    ) -> OperationEvent:
        event = OperationEvent(
            operation=operation,
            outcome=outcome,
            duration_ms=(time.perf_counter() - started) * 1000,
            timestamp=datetime.now(timezone.utc).isoformat(),
            request_id=self.request_id,
            entity_id=entity_id,
            metadata=metadata,
            error=str(error) if error is not None else None,
        )
        self.record(event)
        return event

    def record(self, event: OperationEvent) -> None:
        pass


class LoggingObserver(OperationObserver):
    """Writes one structured line per operation to the ``taskboard.core`` logger"""

    def __init__(self, request_id: Optional[str] = None, logger: Optional[logging.Logger] = None):
        super().__init__(request_id)
        self.logger = logger or logging.getLogger("taskboard.core")

    def record(self, event: OperationEvent) -> None:
        if event.outcome == OperationOutcome.ERROR:
            level = logging.ERROR
        elif event.outcome == OperationOutcome.OK:
            level = logging.INFO
        else:
            level = logging.WARNING
        self.logger.log(level, "%s %s", event.operation, event.to_json())


class RecordingObserver(OperationObserver):
    """Keeps events in memory for the lifetime of one observer (tests, debugging)"""

    def __init__(self, request_id: Optional[str] = None):
        super().__init__(request_id)
        self.events: List[OperationEvent] = []

    def record(self, event: OperationEvent) -> None:
        self.events.append(event)

    def operations(self) -> List[str]:
        return [e.operation for e in self.events]
