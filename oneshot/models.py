from dataclasses import dataclass, field
from enum import Enum
from http import HTTPStatus
from typing import Any, Tuple, Union

Header = Tuple[str, str]

TIMEOUT = "timeout"


class Method(str, Enum):
    """Request methods the client can send."""
    GET = "GET"
    POST = "POST"


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    BAD_FORMAT = "bad_format"
    CONNECTION_FAILED = "connection_failed"


# Request/Response Models
@dataclass(frozen=True)
class Request:
    """A validated request, read-only once built."""
    method: Method
    url: str
    headers: Tuple[Header, ...] = ()
    body: bytes = b''


@dataclass(frozen=True)
class ParsedTarget:
    """Decomposed URL: where to connect and what to ask for."""
    scheme: str
    host: str
    port: int
    path: str = '/'
    query: str = ''

    @property
    def target(self) -> str:
        """Request target as sent on the wire (path followed by query)."""
        return self.path + self.query


@dataclass(frozen=True)
class Ok:
    """A complete response."""
    http_version: str
    status: int
    reason: str
    headers: Tuple[Header, ...] = ()
    body: bytes = b''

    @property
    def ok(self) -> bool:
        return True

    @property
    def text(self) -> str:
        """Decode the body, falling back to replacement characters."""
        return self.body.decode('utf-8', errors='replace')


@dataclass(frozen=True)
class Error:
    """A terminal failure for one request."""
    kind: ErrorKind
    detail: Any = field(default=None)

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok, Error]


def reason_phrase(status: int) -> str:
    """Standard reason phrase for a status code, empty when unknown."""
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return ''
