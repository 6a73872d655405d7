"""Iteration tracing for the refinement loops.

Orchestrators hand one metadata record per iteration to a ``TraceSink``.
Sinks are fire-and-forget: ``emit_trace`` logs and discards any failure so
observability can never abort a refinement run. Async sinks get
``SINK_TIMEOUT_SECONDS`` to finish before the record is dropped.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Dict, List, Optional, Protocol, Union, runtime_checkable

logger = logging.getLogger(__name__)

SINK_TIMEOUT_SECONDS = 5.0


class TraceEventType(Enum):
    """Kinds of trace records emitted by the orchestrators."""

    ITERATION = "iteration"
    RUN_COMPLETED = "run_completed"


@dataclass
class TraceEvent:
    """One trace record."""

    event_type: TraceEventType
    trace_id: str
    loop: str
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "event_type": self.event_type.value,
            "trace_id": self.trace_id,
            "loop": self.loop,
            "timestamp": self.timestamp,
            **self.details,
        }


@runtime_checkable
class TraceSink(Protocol):
    """Receiver for iteration metadata; ``record`` may be sync or async."""

    def record(self, metadata: Dict[str, Any]) -> Union[None, Awaitable[None]]: ...


class LoggingTraceSink:
    """
    Trace sink writing to a dedicated logger.

    Records go to ``prompt_refinery.core.observability.trace.records`` for
    easy filtering.
    """

    def __init__(self) -> None:
        self._logger = logging.getLogger(f"{__name__}.records")

    def record(self, metadata: Dict[str, Any]) -> None:
        self._logger.info(
            f"TRACE: {metadata.get('loop', '?')} {metadata.get('event_type', '?')}",
            extra={"trace": metadata},
        )


class CollectingTraceSink:
    """In-memory sink, handy for callers that inspect a run afterwards."""

    def __init__(self) -> None:
        self.records: List[Dict[str, Any]] = []

    def record(self, metadata: Dict[str, Any]) -> None:
        self.records.append(dict(metadata))


async def emit_trace(
    sink: Optional[TraceSink],
    event: TraceEvent,
    timeout: Optional[float] = None,
) -> None:
    """Deliver ``event`` to ``sink``; sink failures are logged, never raised.

    Args:
        sink: Receiver, or None to skip tracing
        event: Record to deliver
        timeout: Seconds an async sink may take (defaults to ``SINK_TIMEOUT_SECONDS``)
    """
    if sink is None:
        return
    limit = SINK_TIMEOUT_SECONDS if timeout is None else timeout
    try:
        outcome = sink.record(event.to_dict())
        if inspect.isawaitable(outcome):
            await asyncio.wait_for(asyncio.ensure_future(outcome), timeout=limit)
    except asyncio.TimeoutError:
        logger.warning(
            f"Trace sink {type(sink).__name__} timed out after {limit}s; record dropped",
            extra={"trace_id": event.trace_id, "error_type": "TimeoutError"},
        )
    except Exception as exc:
        logger.warning(
            f"Trace sink {type(sink).__name__} failed: {exc}",
            extra={"trace_id": event.trace_id, "error_type": type(exc).__name__},
        )
