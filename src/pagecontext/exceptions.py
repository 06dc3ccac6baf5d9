class PageContextError(ValueError):
    """Base error for request context helpers."""


class MalformedUrlError(PageContextError):
    """Raised when a URL cannot be split into scheme, host and path."""
