"""Observability hooks for the refinement loops."""

from prompt_refinery.core.observability.trace import (
    CollectingTraceSink,
    LoggingTraceSink,
    TraceEvent,
    TraceEventType,
    TraceSink,
    emit_trace,
)

__all__ = [
    "CollectingTraceSink",
    "LoggingTraceSink",
    "TraceEvent",
    "TraceEventType",
    "TraceSink",
    "emit_trace",
]
