"""
URL decomposition: turns a URL string into scheme, host, port, path and query.
"""
from urllib.parse import urlsplit

import structlog

from .exceptions import UrlParseError
from .models import ParsedTarget

logger = structlog.get_logger(__name__)

DEFAULT_PORTS = {
    'http': 80,
    'https': 443,
}

NO_SCHEME = "no_scheme"
UNSUPPORTED_SCHEME = "unsupported_scheme"
MALFORMED_URL = "malformed_url"


def parse_url(url: str) -> ParsedTarget:
    """Decompose ``url`` into a ParsedTarget.

    The query keeps its leading ``?`` so that ``path + query`` is the request
    target. Fragments and userinfo are dropped.

    Raises:
        UrlParseError: with reason ``no_scheme``, ``unsupported_scheme`` or
            ``malformed_url``.
    """
    if not url or '://' not in url:
        raise UrlParseError(NO_SCHEME, url)

    try:
        parsed = urlsplit(url)
    except ValueError:
        raise UrlParseError(MALFORMED_URL, url)

    scheme = parsed.scheme.lower()
    if not scheme:
        raise UrlParseError(NO_SCHEME, url)
    if scheme not in DEFAULT_PORTS:
        raise UrlParseError(UNSUPPORTED_SCHEME, url)

    host = parsed.hostname
    if not host:
        raise UrlParseError(MALFORMED_URL, url)

    try:
        port = parsed.port
    except ValueError:
        raise UrlParseError(MALFORMED_URL, url)
    if port is None:
        port = DEFAULT_PORTS[scheme]

    path = parsed.path or '/'
    query = '?' + parsed.query if parsed.query else ''

    logger.debug("url_parsed", url=url, host=host, port=port, path=path)
    return ParsedTarget(scheme=scheme, host=host, port=port, path=path, query=query)
