"""
Client IP resolution for requests that may have crossed reverse proxies.

Forwarded headers are checked in a fixed priority order and each candidate
must be a well-formed public address. The transport peer address is the
last resort and is returned as-is.
"""

from __future__ import annotations

import ipaddress
from typing import Mapping

from loguru import logger

CF_CONNECTING_IP = "HTTP_CF_CONNECTING_IP"
X_REAL_IP = "HTTP_X_REAL_IP"
X_FORWARDED_FOR = "HTTP_X_FORWARDED_FOR"
REMOTE_ADDR = "REMOTE_ADDR"

# Highest priority first.
FORWARDED_HEADERS = (CF_CONNECTING_IP, X_REAL_IP, X_FORWARDED_FOR)


def is_public_ip(candidate: str) -> bool:
    """
    Check that `candidate` is an IPv4/IPv6 address outside private and
    reserved ranges.

    Args:
        candidate: Address text, already trimmed

    Returns:
        True if the address parses and is routable on the public internet
    """
    if not candidate:
        return False

    try:
        address = ipaddress.ip_address(candidate)
    except ValueError:
        return False

    return not (
        address.is_private
        or address.is_reserved
        or address.is_loopback
        or address.is_link_local
        or address.is_multicast
        or address.is_unspecified
    )


def _header_candidate(server: Mapping[str, str], key: str) -> str | None:
    value = server.get(key)
    if value is None:
        return None
    if key == X_FORWARDED_FOR:
        # Leftmost entry is the originating client.
        value = value.split(",", 1)[0]
    return value.strip()


def resolve_client_ip(server: Mapping[str, str]) -> str | None:
    """
    Resolve the originating client address from server variables.

    Args:
        server: CGI-style server variables of the request

    Returns:
        The first valid public address from the forwarded headers, else
        ``REMOTE_ADDR`` unvalidated, else None
    """
    for key in FORWARDED_HEADERS:
        candidate = _header_candidate(server, key)
        if candidate is None:
            continue
        if is_public_ip(candidate):
            logger.debug("Client IP {ip} taken from {source}", ip=candidate, source=key)
            return candidate
        logger.debug(
            "Rejected client IP candidate {ip!r} from {source}",
            ip=candidate,
            source=key,
        )

    return server.get(REMOTE_ADDR)
