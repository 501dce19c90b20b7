"""oneshot - a single-request HTTP client that assembles a response from protocol events."""

from .assembler import ResponseAssembler
from .config import ClientSettings, Config
from .dispatcher import RequestDispatcher, create_dispatcher, request
from .exceptions import OneshotError, UrlParseError
from .models import TIMEOUT, Error, ErrorKind, Method, Ok, ParsedTarget, Request, Result
from .transport import Connection, HttpxTransport, Transport
from .url import parse_url

__version__ = "0.1.0"
