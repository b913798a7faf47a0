#!/usr/bin/env python3
"""
Audit Event Emission

The engine reports every mutation to an audit sink as a structured change
event. Formatting and long-term storage of events belong to the sink.

Audit is best-effort: a failing sink never rolls back an applied mutation.
The failure is logged and surfaced to the caller as an AuditSinkWarning.
"""

import logging
import warnings
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from .errors import AuditSinkWarning
from .json_utils import append_json_line

logger = logging.getLogger(__name__)


class EntityType(Enum):
    """Kinds of entities the engine mutates."""

    ALLOCATION = "allocation"
    TRANSACTION = "transaction"
    TARGET = "target"
    ACCOUNT = "account"
    RECONCILIATION = "reconciliation"
    INCOME = "income"


class AuditSink(Protocol):
    """Receiver of change events."""

    def record(
        self,
        entity_type: EntityType,
        entity_id: str,
        before: dict[str, Any] | None,
        after: dict[str, Any] | None,
        reason: str,
    ) -> None: ...


@dataclass(frozen=True)
class AuditEvent:
    """A single recorded change."""

    entity_type: EntityType
    entity_id: str
    before: dict[str, Any] | None
    after: dict[str, Any] | None
    reason: str
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def operation(self) -> str:
        if self.before is None:
            return "create"
        if self.after is None:
            return "delete"
        return "update"

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "operation": self.operation,
            "entity_type": self.entity_type.value,
            "entity_id": self.entity_id,
            "before": self.before,
            "after": self.after,
            "reason": self.reason,
        }


class MemoryAuditSink:
    """Keeps events in a list; used by tests and short-lived sessions."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    def record(self, entity_type, entity_id, before, after, reason) -> None:
        self.events.append(AuditEvent(entity_type, entity_id, before, after, reason))

    def for_entity(self, entity_id: str) -> list[AuditEvent]:
        return [e for e in self.events if e.entity_id == entity_id]


class LoggingAuditSink:
    """Writes one INFO line per event to the 'envelope.audit' logger."""

    def __init__(self, audit_logger: logging.Logger | None = None):
        self._logger = audit_logger or logging.getLogger("envelope.audit")

    def record(self, entity_type, entity_id, before, after, reason) -> None:
        self._write(AuditEvent(entity_type, entity_id, before, after, reason))

    def _write(self, event: AuditEvent) -> None:
        self._logger.info(
            f"{event.operation.upper()} {event.entity_type.value} {event.entity_id}: {event.reason}"
        )


class FileAuditSink(LoggingAuditSink):
    """
    Appends every event as one JSON line to a monthly file in ``audit_dir``
    (e.g. ``audit-2025-01.jsonl``), and logs it like LoggingAuditSink.
    """

    def __init__(self, audit_dir: Path, audit_logger: logging.Logger | None = None):
        super().__init__(audit_logger)
        self.audit_dir = Path(audit_dir)

    def path_for(self, event: AuditEvent) -> Path:
        return self.audit_dir / f"audit-{event.timestamp:%Y-%m}.jsonl"

    def _write(self, event: AuditEvent) -> None:
        append_json_line(self.path_for(event), event.to_dict())
        super()._write(event)


def emit_audit(
    sink: AuditSink | None,
    entity_type: EntityType,
    entity_id: str,
    before: dict[str, Any] | None,
    after: dict[str, Any] | None,
    reason: str,
) -> bool:
    """
    Record an event without letting a sink failure undo the mutation.

    Returns:
        True if the sink accepted the event (or there is no sink)
    """
    if sink is None:
        return True
    try:
        sink.record(entity_type, entity_id, before, after, reason)
        return True
    except Exception as e:
        logger.warning(f"Audit sink failed for {entity_type.value} {entity_id}: {e}")
        warnings.warn(
            f"Audit event for {entity_type.value} {entity_id} was not recorded: {e}",
            AuditSinkWarning,
            stacklevel=3,
        )
        return False
