"""
URL helpers: HTTPS detection, current URL reconstruction and query
rewriting.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping
from urllib.parse import SplitResult, parse_qsl, urlencode, urlsplit

from loguru import logger

from pagecontext.exceptions import MalformedUrlError

DEFAULT_PORTS = {"http": "80", "https": "443"}


@dataclass(frozen=True)
class InvalidUrl:
    """Result of `rewrite` when the input URL cannot be used."""

    url: str
    reason: str

    def __bool__(self) -> bool:
        return False


def is_https(server: Mapping[str, str]) -> bool:
    """A forwarded proto set by a reverse proxy wins over the local TLS flag."""

    if server.get("HTTP_X_FORWARDED_PROTO") == "https":
        return True
    return server.get("HTTPS") == "on"


def current_url(server: Mapping[str, str]) -> str:
    """
    Rebuild the URL of the current request.

    Args:
        server: CGI-style server variables of the request

    Returns:
        ``scheme://host[:port]`` followed by the raw request target
    """
    scheme = "https" if is_https(server) else "http"
    host = server.get("SERVER_NAME") or server.get("HTTP_HOST", "")
    port = str(server.get("SERVER_PORT", "") or "")

    port_str = f":{port}" if port and port != DEFAULT_PORTS[scheme] else ""

    return f"{scheme}://{host}{port_str}{server.get('REQUEST_URI', '')}"


def _split(url: str) -> SplitResult:
    try:
        parts = urlsplit(url)
    except ValueError as exc:
        raise MalformedUrlError(str(exc)) from exc

    if not parts.scheme:
        raise MalformedUrlError("missing scheme")
    if not parts.netloc:
        raise MalformedUrlError("missing host")
    return parts


def rewrite(
    url: str, extra_queries: Mapping[str, Any] | None = None
) -> str | InvalidUrl:
    """
    Merge `extra_queries` into the query string of `url`.

    Keys in `extra_queries` overwrite the ones already in the URL; repeated
    keys in the URL collapse to their last occurrence. The fragment is not
    carried over.

    Args:
        url: Absolute URL to rewrite
        extra_queries: Parameters to add or replace

    Returns:
        The rewritten URL, or an `InvalidUrl` when `url` has no scheme or
        host or cannot be parsed
    """
    try:
        parts = _split(url)
    except MalformedUrlError as exc:
        logger.debug("Cannot rewrite {url!r}: {reason}", url=url, reason=str(exc))
        return InvalidUrl(url=url, reason=str(exc))

    queries: dict[str, Any] = dict(parse_qsl(parts.query, keep_blank_values=True))
    queries.update(extra_queries or {})
    # Null values are left out, as form encoders do.
    queries = {key: value for key, value in queries.items() if value is not None}

    query_string = urlencode(queries, doseq=True)
    return (
        f"{parts.scheme}://{parts.netloc}{parts.path}"
        f"{'?' + query_string if query_string else ''}"
    )
