"""
Entry point for a single request: validate, decompose the URL, hand off to the
response assembler. Nothing touches the network until input and URL are both
known to be good.
"""

from typing import Any, Callable, Optional, Sequence

import structlog

from .assembler import ResponseAssembler
from .config import ClientSettings, config
from .exceptions import UrlParseError
from .models import Error, ErrorKind, Header, Method, ParsedTarget, Request, Result
from .transport import HttpxTransport, Transport
from .url import parse_url

logger = structlog.get_logger(__name__)


class RequestDispatcher:
    def __init__(self, transport: Transport, settings: ClientSettings = None,
                 parse: Callable[[str], ParsedTarget] = parse_url):
        self.assembler = ResponseAssembler(transport, settings)
        self.parse = parse

    def dispatch(self, method: Any, url: Any, headers: Any, body: Any) -> Result:
        """Send one request and return its Result."""
        request = self._validate(method, url, headers, body)
        if request is None:
            logger.warning("invalid_request_input", method=repr(method), url=repr(url))
            return Error(ErrorKind.INVALID_INPUT, {
                'method': method,
                'url': url,
                'headers': headers,
                'body': body,
            })

        try:
            target = self.parse(request.url)
        except UrlParseError as e:
            logger.warning("url_parse_failed", url=request.url, reason=e.reason)
            return Error(ErrorKind.BAD_FORMAT, e.reason)

        logger.info("request_dispatched",
                    method=request.method.value,
                    host=target.host,
                    port=target.port,
                    target=target.target)

        return self.assembler.assemble(
            request.method,
            target.host,
            target.port,
            target.path,
            target.query,
            request.headers,
            request.body,
            scheme=target.scheme,
        )

    def _validate(self, method, url, headers, body) -> Optional[Request]:
        """Build a Request if every argument has the expected shape, else None."""
        if not isinstance(method, str):
            return None
        try:
            method = Method(method.upper())
        except ValueError:
            return None

        if not isinstance(url, str):
            return None
        if not isinstance(headers, (list, tuple)) or not all(_is_header(h) for h in headers):
            return None
        if not isinstance(body, (bytes, bytearray)):
            return None

        return Request(
            method=method,
            url=url,
            headers=tuple((field, value) for field, value in headers),
            body=bytes(body),
        )


def _is_header(header) -> bool:
    return (isinstance(header, (list, tuple))
            and len(header) == 2
            and isinstance(header[0], str)
            and isinstance(header[1], str))


def create_dispatcher(transport: Transport = None, settings: ClientSettings = None) -> RequestDispatcher:
    """Create a RequestDispatcher from the global configuration."""
    return RequestDispatcher(
        transport=transport or HttpxTransport.from_config(config),
        settings=settings or ClientSettings.from_config(config),
    )


def request(method: Any, url: Any, headers: Sequence[Header] = (), body: bytes = b'',
            transport: Transport = None) -> Result:
    """Issue one request and return an Ok or an Error; never raises for network problems."""
    return create_dispatcher(transport).dispatch(method, url, headers, body)
