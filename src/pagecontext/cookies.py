from __future__ import annotations

import time
from dataclasses import dataclass
from urllib.parse import unquote

SECONDS_PER_DAY = 60 * 60 * 24
EXPIRED_OFFSET = 3600


@dataclass(frozen=True)
class CookieDirective:
    """Attributes the response layer needs to emit a ``Set-Cookie`` header."""

    name: str
    value: str
    expires: int  # epoch seconds
    path: str = "/"
    domain: str = ""
    secure: bool = False
    http_only: bool = True


def build_set_directive(
    name: str,
    value: str,
    *,
    days: float,
    path: str,
    domain: str,
    secure: bool,
    http_only: bool,
    now: float | None = None,
) -> CookieDirective:
    """Directive storing `value` for `days` days from `now`."""

    now = time.time() if now is None else now
    return CookieDirective(
        name=name,
        value=value,
        expires=int(now + SECONDS_PER_DAY * days),
        path=path,
        domain=domain,
        secure=secure,
        http_only=http_only,
    )


def build_delete_directive(
    name: str,
    *,
    path: str,
    domain: str,
    now: float | None = None,
) -> CookieDirective:
    """Directive with an empty value and an expiry an hour in the past."""

    now = time.time() if now is None else now
    return CookieDirective(
        name=name,
        value="",
        expires=int(now - EXPIRED_OFFSET),
        path=path,
        domain=domain,
    )


def parse_cookie_header(header: str) -> dict[str, str]:
    """
    Decode a request ``Cookie`` header into name -> value.

    Pairs without ``=`` or with an empty name are skipped; the first
    occurrence of a repeated name wins. Values lose surrounding double
    quotes and are percent-decoded.

    Args:
        header: Raw ``Cookie`` header value

    Returns:
        Cookies in header order
    """
    cookies: dict[str, str] = {}

    for pair in header.split(";"):
        name, sep, value = pair.partition("=")
        name = name.strip()
        if not sep or not name or name in cookies:
            continue

        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]
        cookies[name] = unquote(value)

    return cookies
