"""Tests for HTTPS detection, current URL and query rewriting."""

from urllib.parse import parse_qs, urlsplit

import pytest

from pagecontext.url import InvalidUrl, current_url, is_https, rewrite


def _query(url: str) -> dict[str, list[str]]:
    return parse_qs(urlsplit(url).query, keep_blank_values=True)


def test_forwarded_proto_wins() -> None:
    assert is_https({"HTTP_X_FORWARDED_PROTO": "https"})
    assert is_https({"HTTP_X_FORWARDED_PROTO": "http", "HTTPS": "on"})


def test_forwarded_proto_is_case_sensitive() -> None:
    assert not is_https({"HTTP_X_FORWARDED_PROTO": "HTTPS"})


def test_tls_flag() -> None:
    assert is_https({"HTTPS": "on"})
    assert not is_https({"HTTPS": "off"})
    assert not is_https({})


def test_current_url_omits_default_https_port() -> None:
    server = {
        "SERVER_NAME": "example.com",
        "SERVER_PORT": "443",
        "HTTPS": "on",
        "REQUEST_URI": "/a?b=1",
    }
    assert current_url(server) == "https://example.com/a?b=1"


def test_current_url_keeps_custom_port() -> None:
    server = {
        "SERVER_NAME": "example.com",
        "SERVER_PORT": "8443",
        "HTTPS": "on",
        "REQUEST_URI": "/a",
    }
    assert current_url(server) == "https://example.com:8443/a"


def test_current_url_plain_http() -> None:
    server = {"SERVER_NAME": "example.com", "SERVER_PORT": "80", "REQUEST_URI": "/"}
    assert current_url(server) == "http://example.com/"


def test_current_url_port_is_relative_to_scheme() -> None:
    https_on_80 = {
        "SERVER_NAME": "example.com",
        "SERVER_PORT": "80",
        "HTTPS": "on",
        "REQUEST_URI": "/",
    }
    http_on_443 = {
        "SERVER_NAME": "example.com",
        "SERVER_PORT": "443",
        "REQUEST_URI": "/",
    }
    assert current_url(https_on_80) == "https://example.com:80/"
    assert current_url(http_on_443) == "http://example.com:443/"


def test_current_url_keeps_request_target_raw() -> None:
    server = {
        "SERVER_NAME": "example.com",
        "SERVER_PORT": "80",
        "REQUEST_URI": "/caf%C3%A9/../x?q=a%20b",
    }
    assert current_url(server) == "http://example.com/caf%C3%A9/../x?q=a%20b"


def test_current_url_falls_back_to_host_header() -> None:
    server = {"HTTP_HOST": "api.example.com", "REQUEST_URI": "/v1"}
    assert current_url(server) == "http://api.example.com/v1"


def test_rewrite_merges_queries() -> None:
    result = rewrite("https://example.com/page?x=1&y=2", {"y": 5, "z": "show"})

    assert isinstance(result, str)
    assert result.startswith("https://example.com/page?")
    assert _query(result) == {"x": ["1"], "y": ["5"], "z": ["show"]}


def test_rewrite_keeps_existing_key_order() -> None:
    result = rewrite("https://example.com/page?x=1&y=2", {"y": 5, "z": "show"})
    assert result == "https://example.com/page?x=1&y=5&z=show"


def test_rewrite_last_repeated_key_wins() -> None:
    assert rewrite("http://example.com/?a=1&a=2") == "http://example.com/?a=2"


def test_rewrite_without_queries_omits_question_mark() -> None:
    assert rewrite("http://example.com/path?") == "http://example.com/path"
    assert rewrite("http://example.com") == "http://example.com"


def test_rewrite_percent_encodes_values() -> None:
    result = rewrite("http://example.com/s", {"q": "a b&c"})
    assert result == "http://example.com/s?q=a+b%26c"


def test_rewrite_keeps_port_and_drops_fragment() -> None:
    result = rewrite("https://example.com:8443/a?b=1#top", {"c": "2"})
    assert result == "https://example.com:8443/a?b=1&c=2"


def test_rewrite_is_idempotent_for_canonical_urls() -> None:
    url = "https://example.com/page?x=1&name=a+b&empty="
    assert rewrite(url) == url
    assert rewrite(url, {}) == url


@pytest.mark.parametrize(
    "url", ["not a url", "/relative/path?x=1", "example.com/page", "http://[::1"]
)
def test_rewrite_invalid_url(url: str) -> None:
    result = rewrite(url, {})

    assert isinstance(result, InvalidUrl)
    assert not result
    assert result.url == url
    assert result.reason


def test_rewrite_repeats_keys_for_list_values() -> None:
    result = rewrite("http://example.com/f?t=old&x=1", {"t": ["a", "b"]})
    assert result == "http://example.com/f?t=a&t=b&x=1"


def test_rewrite_leaves_out_none_values() -> None:
    assert rewrite("http://example.com/f?k=1", {"k": None, "j": "2"}) == (
        "http://example.com/f?j=2"
    )
    assert rewrite("http://example.com/f", {"k": None}) == "http://example.com/f"
