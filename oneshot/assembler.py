"""
Response assembly for a single request.

Owns one connection for the lifetime of one call: opens it, sends exactly one
request, then waits for protocol events until they add up to a complete
response or a failure. Every wait is bounded by the same timeout. The
connection is closed on every way out, including timeouts.
"""

from contextlib import contextmanager
from typing import Iterator, Optional, Sequence, Type, Union

import structlog

from .config import ClientSettings
from .events import BodyChunk, ConnectionDown, HeadersReceived, ResponseEvent, StreamHandle
from .models import Error, ErrorKind, Header, Method, Ok, Result, TIMEOUT, reason_phrase
from .transport import Connection, Transport

logger = structlog.get_logger(__name__)


class ResponseAssembler:
    """Turns the event stream of one exchange into a single Result."""

    def __init__(self, transport: Transport, settings: ClientSettings = None):
        self.transport = transport
        self.settings = settings or ClientSettings()

    def assemble(self, method: Method, host: str, port: int, path: str, query: str,
                 headers: Sequence[Header] = (), body: bytes = b'',
                 scheme: str = 'http') -> Result:
        """Open a connection, send one request and wait for its response.

        ``path`` and ``query`` together form the request target. ``headers``
        and ``body`` are sent as given; the body only goes out with POST.
        """
        with self._connection(host, port, scheme) as conn:
            target = path + query
            if method == Method.POST:
                stream = self.transport.send_post(conn, target, headers, body)
            else:
                stream = self.transport.send_get(conn, target, headers)
            logger.debug("request_sent", connection_id=conn.id, method=method.value, target=target)

            event = self._wait(conn, stream, HeadersReceived)

            if event is None:
                logger.warning("response_timeout", connection_id=conn.id, timeout_ms=self.settings.timeout_ms)
                return Error(ErrorKind.CONNECTION_FAILED, TIMEOUT)

            if isinstance(event, ConnectionDown):
                logger.warning("connection_failed", connection_id=conn.id, reason=event.reason)
                return Error(ErrorKind.CONNECTION_FAILED, event.reason)

            if event.is_final:
                return self._ok(event, b'')

            received = self.receive_body(conn, stream)
            if isinstance(received, Error):
                return received
            return self._ok(event, received)

    def receive_body(self, conn: Connection, stream: StreamHandle) -> Union[bytes, Error]:
        """Collect the response body that follows non-final headers.

        Chunks are appended until one is marked final. With
        ``accumulate_chunks`` off, the first chunk is the whole body.
        """
        parts = []
        while True:
            event = self._wait(conn, stream, BodyChunk)

            if event is None:
                logger.warning("body_timeout", connection_id=conn.id,
                               received_bytes=sum(len(p) for p in parts))
                return Error(ErrorKind.CONNECTION_FAILED, TIMEOUT)

            if isinstance(event, ConnectionDown):
                logger.warning("connection_failed_during_body", connection_id=conn.id, reason=event.reason)
                return Error(ErrorKind.CONNECTION_FAILED, event.reason)

            parts.append(event.data)
            if event.is_final or not self.settings.accumulate_chunks:
                return b''.join(parts)

    def _wait(self, conn: Connection, stream: StreamHandle,
              expected: Type[ResponseEvent]) -> Optional[ResponseEvent]:
        """Wait for a ConnectionDown of ``conn`` or an ``expected`` event of ``stream``.

        Other events stay queued on the channel. Returns None on timeout.
        """
        def matches(event: ResponseEvent) -> bool:
            if isinstance(event, ConnectionDown):
                return event.connection_id == conn.id
            return isinstance(event, expected) and event.stream == stream

        return conn.channel.receive(matches, self.settings.timeout)

    def _ok(self, headers: HeadersReceived, body: bytes) -> Ok:
        logger.info("response_received", status=headers.status, body_bytes=len(body))
        return Ok(
            http_version=self.settings.http_version,
            status=headers.status,
            reason=reason_phrase(headers.status),
            headers=tuple(headers.headers),
            body=body,
        )

    @contextmanager
    def _connection(self, host: str, port: int, scheme: str) -> Iterator[Connection]:
        """Open a connection and release it exactly once on exit."""
        conn = self.transport.open(host, port, scheme)
        try:
            yield conn
        finally:
            self.transport.close(conn)
