# src/webapp2worker/errors.py


class ConversionError(Exception):
    """Base class for every failure that aborts a conversion."""


class ParseError(ConversionError):
    """The input could not be parsed as an HTML document."""


class ResourceFetchError(ConversionError):
    """An external stylesheet, script or the root document could not be loaded."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch {url}: {reason}")


class MalformedMessageError(ValueError):
    """An inbound runtime message is not a marker-prefixed JSON string."""
