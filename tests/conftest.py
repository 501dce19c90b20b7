"""tests/conftest.py — Shared fixtures: a scripted in-memory transport and fast settings."""
import itertools

import pytest

from oneshot.config import ClientSettings
from oneshot.dispatcher import RequestDispatcher
from oneshot.events import BodyChunk, ConnectionDown, HeadersReceived
from oneshot.transport import Connection, Transport


def headers(status, fields=(), fin=False):
    return lambda conn, stream: HeadersReceived(stream, status, tuple(fields), fin)


def chunk(data, fin=False):
    return lambda conn, stream: BodyChunk(stream, data, fin)


def down(reason):
    return lambda conn, stream: ConnectionDown(conn.id, reason)


class ScriptedTransport(Transport):
    """Transport that replays a fixed list of events as soon as a request is sent.

    Each script entry is a callable ``(conn, stream) -> event``. Every call is
    recorded so tests can check what touched the network.
    """

    def __init__(self, script=()):
        self.script = list(script)
        self.opened = []
        self.sent = []
        self.closed = []
        self._ids = itertools.count(1)

    def open(self, host, port, scheme='http'):
        self.opened.append((scheme, host, port))
        return Connection(next(self._ids), scheme, host, port)

    def send_get(self, conn, target, headers=()):
        return self._send(conn, ('GET', target, tuple(headers), None))

    def send_post(self, conn, target, headers=(), body=b''):
        return self._send(conn, ('POST', target, tuple(headers), body))

    def close(self, conn):
        self.closed.append(conn.id)
        conn.closed = True

    def _send(self, conn, call):
        self.sent.append(call)
        stream = conn.new_stream()
        for make_event in self.script:
            conn.channel.put(make_event(conn, stream))
        return stream

    @property
    def network_calls(self):
        return len(self.opened) + len(self.sent) + len(self.closed)


@pytest.fixture
def fast_settings():
    """Settings with a short wait so timeout paths finish quickly."""
    return ClientSettings(timeout_ms=50)


@pytest.fixture
def make_dispatcher(fast_settings):
    def _make(*script, settings=None):
        transport = ScriptedTransport(script)
        return RequestDispatcher(transport, settings or fast_settings), transport
    return _make
