"""
In-process event bus + JSONL audit logger.

`EventLogger` and `redact` are re-exported here so callers only need
`lexdocs.core.events`.
"""

from lexdocs.core.events.legacy import EventLogger, redact
from lexdocs.core.events.models import BaseEvent, EventSeverity, SourceSubsystem
from lexdocs.core.events.bus import EventBus, EventBusConfig

__all__ = [
    "EventLogger",
    "redact",
    "BaseEvent",
    "EventSeverity",
    "SourceSubsystem",
    "EventBus",
    "EventBusConfig",
]
