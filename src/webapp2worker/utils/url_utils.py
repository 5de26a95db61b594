# src/webapp2worker/utils/url_utils.py
import logging
from pathlib import Path
from urllib.parse import urljoin, urlparse
from urllib.request import url2pathname

logger = logging.getLogger(__name__)


class UrlUtils:
    """A collection of static methods for URL parsing and manipulation."""

    @staticmethod
    def to_url(location: str) -> str:
        """
        Turns a CLI style location (URL or local path) into an absolute URL.
        Local paths become file:// URLs.
        """
        parsed = urlparse(location)
        if parsed.scheme in ("http", "https", "file"):
            return location
        return Path(location).expanduser().resolve().as_uri()

    @staticmethod
    def resolve(base_url: str, path: str) -> str:
        """Resolves a (possibly relative) resource reference against the document URL."""
        return urljoin(base_url, path)

    @staticmethod
    def is_file_url(url: str) -> bool:
        return urlparse(url).scheme == "file"

    @staticmethod
    def file_url_to_path(url: str) -> Path:
        parsed = urlparse(url)
        return Path(url2pathname(parsed.path))

    @staticmethod
    def location_fields(href: str) -> dict:
        """
        Splits a URL into the fields of a browser `Location` object.
        Empty components follow the browser convention ('' for a missing port,
        '?q' / '#h' prefixes for search and hash).
        """
        parsed = urlparse(href)
        hostname = parsed.hostname or ""
        port = str(parsed.port) if parsed.port is not None else ""
        host = f"{hostname}:{port}" if port else hostname
        protocol = f"{parsed.scheme}:" if parsed.scheme else ""
        pathname = parsed.path or "/"
        search = f"?{parsed.query}" if parsed.query else ""
        hash_ = f"#{parsed.fragment}" if parsed.fragment else ""
        origin = f"{protocol}//{host}" if host else "null"

        return {
            "hash": hash_,
            "host": host,
            "hostname": hostname,
            "href": f"{protocol}//{host}{pathname}{search}{hash_}",
            "origin": origin,
            "pathname": pathname,
            "port": port,
            "protocol": protocol,
            "search": search,
        }
