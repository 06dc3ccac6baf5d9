"""
Per-request snapshot of query, form, cookie and server data.

The host HTTP layer builds one `RequestContext` per incoming request and
hands it to the request-handling code, which reads parameters through it
and collects the cookie directives it produces.
"""

from __future__ import annotations

from enum import IntEnum
from types import MappingProxyType
from typing import Any, Mapping, Sequence
from urllib.parse import parse_qs, quote

from loguru import logger

from pagecontext import client_ip, url
from pagecontext.cookies import (
    CookieDirective,
    build_delete_directive,
    build_set_directive,
    parse_cookie_header,
)
from pagecontext.sanitize import sanitize as sanitize_value
from pagecontext.settings import Settings
from pagecontext.settings import settings as default_settings

Value = str | list[str]


class Source(IntEnum):
    """Which parameter set `RequestContext.request` reads from."""

    BOTH = 0
    GET = 1
    POST = 2


def _freeze(data: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(data or {}))


def _quote_path(path: str) -> str:
    # WSGI passes paths decoded as latin-1; anything wider came from a host
    # that decoded them as UTF-8.
    try:
        path.encode("latin1")
        encoding = "latin1"
    except UnicodeEncodeError:
        encoding = "utf-8"
    return quote(path, safe="/;=,", encoding=encoding) or "/"


def _collapse(values: dict[str, list[str]]) -> dict[str, Value]:
    return {
        key: items[0] if len(items) == 1 else items for key, items in values.items()
    }


class RequestContext:
    """
    Read-only view over the ambient data of a single request.

    Only the cookie mapping changes after construction: `set_cookie` and
    `delete_cookie` replace it with a copy reflecting the pending change.
    """

    def __init__(
        self,
        query: Mapping[str, Value] | None = None,
        form: Mapping[str, Value] | None = None,
        cookies: Mapping[str, str] | None = None,
        server: Mapping[str, str] | None = None,
        *,
        settings: Settings | None = None,
    ) -> None:
        self._query = _freeze(query)
        self._form = _freeze(form)
        self._cookies = _freeze(cookies)
        self._server = _freeze(server)
        self._settings = settings or default_settings
        self._directives: list[CookieDirective] = []

    @classmethod
    def from_environ(
        cls,
        environ: Mapping[str, Any],
        form: Mapping[str, Value] | None = None,
        *,
        settings: Settings | None = None,
    ) -> RequestContext:
        """
        Build a context from a WSGI environ.

        Args:
            environ: WSGI environ of the request
            form: Body fields, already decoded by the host
            settings: Overrides the module-level settings

        Returns:
            A context whose server variables are the string entries of
            `environ`
        """
        server = {
            key: value for key, value in environ.items() if isinstance(value, str)
        }
        query_string = server.get("QUERY_STRING", "")

        if "REQUEST_URI" not in server:
            path = _quote_path(
                server.get("SCRIPT_NAME", "") + server.get("PATH_INFO", "")
            )
            server["REQUEST_URI"] = f"{path}?{query_string}" if query_string else path

        return cls(
            query=_collapse(parse_qs(query_string, keep_blank_values=True)),
            form=form,
            cookies=parse_cookie_header(server.get("HTTP_COOKIE", "")),
            server=server,
            settings=settings,
        )

    @property
    def query(self) -> Mapping[str, Value]:
        return self._query

    @property
    def form(self) -> Mapping[str, Value]:
        return self._form

    @property
    def cookies(self) -> Mapping[str, str]:
        return self._cookies

    @property
    def server(self) -> Mapping[str, str]:
        return self._server

    @property
    def cookie_directives(self) -> tuple[CookieDirective, ...]:
        """Directives issued so far, oldest first."""
        return tuple(self._directives)

    # Server-derived accessors

    @property
    def client_ip(self) -> str | None:
        return client_ip.resolve_client_ip(self._server)

    @property
    def current_url(self) -> str:
        return url.current_url(self._server)

    @property
    def is_https(self) -> bool:
        return url.is_https(self._server)

    @property
    def user_agent(self) -> str:
        return self._server.get("HTTP_USER_AGENT", "")

    @property
    def referer(self) -> str:
        return self._server.get("HTTP_REFERER", "")

    @property
    def is_post(self) -> bool:
        return bool(self._form)

    def get_variable(self, key: str | Sequence[str]) -> Any:
        """Server variable by name, or a dict of them for a list of names."""

        if isinstance(key, str):
            return self._server.get(key)
        return {name: self._server.get(name) for name in key}

    def rewrite(
        self,
        extra_queries: Mapping[str, Any] | None = None,
        target: str | None = None,
    ) -> str | url.InvalidUrl:
        """Rewrite `target`, defaulting to the current URL."""

        if target is None:
            target = self.current_url
        return url.rewrite(target, extra_queries)

    # Parameters

    def request(
        self, key: str, source: Source = Source.BOTH, sanitize: bool = True
    ) -> Any:
        """
        Look up a GET or POST parameter.

        Args:
            key: Parameter name
            source: Parameter set to read; BOTH prefers GET over POST
            sanitize: Strip, trim and HTML-escape the value

        Returns:
            The value, or None when the key is absent from every source read
        """
        if source == Source.GET:
            value = self._query.get(key)
        elif source == Source.POST:
            value = self._form.get(key)
        else:
            value = self._query.get(key)
            if value is None:
                value = self._form.get(key)

        if value is None or not sanitize:
            return value
        return sanitize_value(value, html_escape=True)

    # Cookies

    def get_cookie(self, name: str) -> str | None:
        return self._cookies.get(name)

    def set_cookie(
        self,
        name: str,
        value: str = "",
        days: float | None = None,
        path: str | None = None,
        domain: str | None = None,
        secure: bool | None = None,
        http_only: bool | None = None,
    ) -> CookieDirective:
        """
        Queue a cookie for the response and expose it to later reads.

        Omitted attributes fall back to the ``cookie_*`` settings.

        Returns:
            The directive the response layer should emit
        """
        cfg = self._settings
        directive = build_set_directive(
            name,
            value,
            days=cfg.cookie_days if days is None else days,
            path=cfg.cookie_path if path is None else path,
            domain=cfg.cookie_domain if domain is None else domain,
            secure=cfg.cookie_secure if secure is None else secure,
            http_only=cfg.cookie_http_only if http_only is None else http_only,
        )
        self._cookies = _freeze({**self._cookies, name: value})
        return self._issue(directive)

    def delete_cookie(self, name: str) -> CookieDirective:
        """Queue an expiring cookie and drop `name` from the snapshot."""

        directive = build_delete_directive(
            name, path=self._settings.cookie_path, domain=self._settings.cookie_domain
        )
        self._cookies = _freeze(
            {key: value for key, value in self._cookies.items() if key != name}
        )
        return self._issue(directive)

    def _issue(self, directive: CookieDirective) -> CookieDirective:
        self._directives.append(directive)
        logger.debug(
            "Cookie directive {name} expires={expires}",
            name=directive.name,
            expires=directive.expires,
        )
        return directive
