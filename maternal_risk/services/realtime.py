"""
Realtime Notifier

In-process broadcaster for "medical record created" events. Subscribers
(the SSE endpoint, one queue per connected client) receive every event
emitted after they subscribed.
"""
import asyncio
import json
from typing import Any, Dict, Set

from maternal_risk.core.pipeline.base import RecordEvent
from maternal_risk.utils import get_logger

logger = get_logger(__name__)

RECORD_CREATED_EVENT = "medical_record_created"


class RealtimeNotifier:
    """Fan-out of record events to subscriber queues."""

    def __init__(self, max_queue_size: int = 100):
        self.max_queue_size = max_queue_size
        self._subscribers: Set[asyncio.Queue] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    async def emit(self, event: RecordEvent) -> int:
        """Deliver an event to every subscriber. Returns the delivery count."""
        message = event.to_dict()
        delivered = 0
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(message)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning("Realtime subscriber queue full, dropping event")
        logger.info(
            f"Emitted {RECORD_CREATED_EVENT} [{event.record_type}] for patient "
            f"{event.patient_id} to {delivered} subscriber(s)"
        )
        return delivered


def format_sse(message: Dict[str, Any], event: str = RECORD_CREATED_EVENT) -> str:
    """Encode a message as a Server-Sent Events frame."""
    return f"event: {event}\ndata: {json.dumps(message, default=str)}\n\n"
