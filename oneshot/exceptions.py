class OneshotError(Exception):
    """Base exception for the client."""
    pass


class UrlParseError(OneshotError):
    """Raised when a URL cannot be decomposed into a request target."""
    def __init__(self, reason: str, url: str = None):
        super().__init__(f"{reason}: {url!r}" if url is not None else reason)
        self.reason = reason
        self.url = url
