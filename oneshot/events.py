"""
Protocol events delivered by a transport, and the channel they travel on.

A transport puts events on a Connection's channel from whatever thread drives
the exchange. The assembler consumes them one at a time with a blocking,
deadline-bounded receive that only accepts events matching its predicate.
"""
import queue
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

from .models import Header


@dataclass(frozen=True)
class StreamHandle:
    """Identifies the single request/response exchange on a connection."""
    connection_id: int
    stream_id: int


@dataclass(frozen=True)
class ConnectionDown:
    connection_id: int
    reason: str


@dataclass(frozen=True)
class HeadersReceived:
    stream: StreamHandle
    status: int
    headers: Tuple[Header, ...]
    is_final: bool


@dataclass(frozen=True)
class BodyChunk:
    stream: StreamHandle
    data: bytes
    is_final: bool


ResponseEvent = Union[ConnectionDown, HeadersReceived, BodyChunk]


class EventChannel:
    """Thread-safe event mailbox with selective, deadline-bounded receive."""

    def __init__(self):
        self._queue: "queue.Queue[ResponseEvent]" = queue.Queue()
        # Events seen by an earlier receive that did not match it
        self._pending = deque()

    def put(self, event: ResponseEvent) -> None:
        self._queue.put(event)

    def receive(self, match: Callable[[ResponseEvent], bool],
                timeout: float) -> Optional[ResponseEvent]:
        """Return the first event accepted by ``match``, or None once ``timeout`` seconds pass."""
        for index, event in enumerate(self._pending):
            if match(event):
                del self._pending[index]
                return event

        deadline = time.monotonic() + timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return None
            try:
                event = self._queue.get(timeout=remaining)
            except queue.Empty:
                return None
            if match(event):
                return event
            self._pending.append(event)

    def __len__(self):
        return len(self._pending) + self._queue.qsize()
