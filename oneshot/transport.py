"""
Connection transport: opens one session to an endpoint, sends one request on
it and reports what comes back as events on the connection's channel.
"""
import itertools
import threading
from typing import Optional, Sequence

import httpx
import structlog

from .events import BodyChunk, ConnectionDown, EventChannel, HeadersReceived, StreamHandle
from .models import Header

logger = structlog.get_logger(__name__)

BODYLESS_STATUSES = (204, 304)


class Connection:
    """Handle for one transport session to a single endpoint."""

    def __init__(self, connection_id: int, scheme: str, host: str, port: int):
        self.id = connection_id
        self.scheme = scheme
        self.host = host
        self.port = port
        self.channel = EventChannel()
        self.closed = False
        self.session = None
        self._stream_ids = itertools.count(1)

    def new_stream(self) -> StreamHandle:
        return StreamHandle(connection_id=self.id, stream_id=next(self._stream_ids))

    @property
    def base_url(self) -> str:
        host = f"[{self.host}]" if ':' in self.host else self.host
        return f"{self.scheme}://{host}:{self.port}"

    def __repr__(self):
        return f"Connection(id={self.id}, {self.base_url}, closed={self.closed})"


class Transport:
    """Base class for transports.

    ``open`` must not fail for unreachable endpoints; such failures are
    reported later as a ConnectionDown event on ``Connection.channel``.
    """

    def open(self, host: str, port: int, scheme: str = 'http') -> Connection:
        raise NotImplementedError

    def send_get(self, conn: Connection, target: str,
                 headers: Sequence[Header] = ()) -> StreamHandle:
        raise NotImplementedError

    def send_post(self, conn: Connection, target: str,
                  headers: Sequence[Header] = (), body: bytes = b'') -> StreamHandle:
        raise NotImplementedError

    def close(self, conn: Connection) -> None:
        raise NotImplementedError


class HttpxTransport(Transport):
    """Transport that runs each exchange through an httpx.Client on a background thread."""

    def __init__(self, user_agent: str = 'oneshot/0.1', connect_timeout: float = 10.0,
                 chunk_size: int = 8192, transport: Optional[httpx.BaseTransport] = None):
        self.user_agent = user_agent
        self.connect_timeout = connect_timeout
        self.chunk_size = chunk_size
        # Injected httpx transport, e.g. httpx.MockTransport
        self._transport = transport
        self._connection_ids = itertools.count(1)

    @classmethod
    def from_config(cls, config, transport: Optional[httpx.BaseTransport] = None) -> "HttpxTransport":
        """Build a transport from the ``transport`` configuration section."""
        section = config.transport
        return cls(
            user_agent=section.get('user_agent', 'oneshot/0.1'),
            connect_timeout=float(section.get('connect_timeout', 10.0)),
            chunk_size=int(section.get('chunk_size', 8192)),
            transport=transport,
        )

    def open(self, host: str, port: int, scheme: str = 'http') -> Connection:
        conn = Connection(next(self._connection_ids), scheme, host, port)
        conn.session = httpx.Client(
            base_url=conn.base_url,
            timeout=httpx.Timeout(self.connect_timeout),
            follow_redirects=False,
            headers={'User-Agent': self.user_agent},
            transport=self._transport,
        )
        logger.debug("connection_opened", connection_id=conn.id, base_url=conn.base_url)
        return conn

    def send_get(self, conn: Connection, target: str,
                 headers: Sequence[Header] = ()) -> StreamHandle:
        return self._start(conn, 'GET', target, headers, None)

    def send_post(self, conn: Connection, target: str,
                  headers: Sequence[Header] = (), body: bytes = b'') -> StreamHandle:
        return self._start(conn, 'POST', target, headers, bytes(body))

    def close(self, conn: Connection) -> None:
        if conn.closed:
            return
        conn.closed = True
        if conn.session is not None:
            conn.session.close()
        logger.debug("connection_closed", connection_id=conn.id)

    def _start(self, conn: Connection, method: str, target: str,
               headers: Sequence[Header], body: Optional[bytes]) -> StreamHandle:
        stream = conn.new_stream()
        worker = threading.Thread(
            target=self._run_exchange,
            args=(conn, stream, method, target, list(headers), body),
            name=f"oneshot-conn-{conn.id}",
            daemon=True,
        )
        worker.start()
        return stream

    def _run_exchange(self, conn: Connection, stream: StreamHandle, method: str,
                      target: str, headers: list, body: Optional[bytes]) -> None:
        """Stream one exchange, turning it into events on ``conn.channel``."""
        try:
            with conn.session.stream(method, target, headers=headers, content=body) as response:
                response_headers = tuple(response.headers.multi_items())

                if not self._has_body(response):
                    conn.channel.put(HeadersReceived(stream, response.status_code, response_headers, True))
                    return

                conn.channel.put(HeadersReceived(stream, response.status_code, response_headers, False))

                # Hold one chunk back so the last one can be marked final.
                # Raw bytes: the body is delivered as sent, Content-Encoding included
                previous = None
                for chunk in response.iter_raw(self.chunk_size):
                    if previous is not None:
                        conn.channel.put(BodyChunk(stream, previous, False))
                    previous = chunk
                conn.channel.put(BodyChunk(stream, previous or b'', True))

        # RuntimeError covers httpx.StreamError and sends on an already closed client
        except (httpx.HTTPError, RuntimeError) as e:
            logger.warning("connection_down",
                           connection_id=conn.id,
                           error=str(e) or type(e).__name__)
            conn.channel.put(ConnectionDown(conn.id, str(e) or type(e).__name__))
        except Exception as e:
            # Anything else ends the exchange too, e.g. header values httpx cannot encode
            logger.error("exchange_failed",
                         connection_id=conn.id,
                         error=str(e) or type(e).__name__,
                         exc_info=True)
            conn.channel.put(ConnectionDown(conn.id, str(e) or type(e).__name__))

    def _has_body(self, response: httpx.Response) -> bool:
        """Check whether any body bytes can follow the response headers."""
        if response.status_code < 200 or response.status_code in BODYLESS_STATUSES:
            return False
        return response.headers.get('content-length', '').strip() != '0'
