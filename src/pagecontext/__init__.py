"""Request context helpers: client IP, current URL, cookies and query rewriting."""

from pagecontext.client_ip import is_public_ip, resolve_client_ip
from pagecontext.context import RequestContext, Source
from pagecontext.cookies import CookieDirective
from pagecontext.exceptions import MalformedUrlError, PageContextError
from pagecontext.sanitize import sanitize, strip_slashes
from pagecontext.settings import Settings, configure_logging, settings
from pagecontext.url import InvalidUrl, current_url, is_https, rewrite

__all__ = [
    "CookieDirective",
    "InvalidUrl",
    "MalformedUrlError",
    "PageContextError",
    "RequestContext",
    "Settings",
    "Source",
    "configure_logging",
    "current_url",
    "is_https",
    "is_public_ip",
    "resolve_client_ip",
    "rewrite",
    "sanitize",
    "settings",
    "strip_slashes",
]
