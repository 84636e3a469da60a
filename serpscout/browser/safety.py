"""Network guard for rendered sessions."""

from __future__ import annotations

import ipaddress
from urllib.parse import urlparse

_LOCAL_HOSTNAMES = {
    "localhost",
    "localhost.localdomain",
    "host.docker.internal",
}

# Sub-resource schemes a rendered result page legitimately loads.
_PASSIVE_SCHEMES = {"about", "blob", "data"}


def navigation_block_reason(
    url: str,
    *,
    allow_private_network: bool,
    block_file_scheme: bool,
    top_level: bool = True,
) -> str | None:
    """
    Return why a session may not load `url`, or None when it is allowed.

    Top-level navigations must be http(s); sub-resource requests may also use
    passive schemes such as `data:` and `blob:`.
    """
    parsed = urlparse(url)
    scheme = (parsed.scheme or "").lower()

    if scheme == "file":
        return "file:// URLs are blocked" if block_file_scheme else None

    if scheme not in {"http", "https"}:
        if not top_level and scheme in _PASSIVE_SCHEMES:
            return None
        return f"Only http/https URLs are allowed, got '{scheme or 'none'}'"

    host = parsed.hostname
    if not host:
        return "URL host is required"

    if not allow_private_network and is_private_or_local_host(host):
        return f"Private/local host blocked: {host}"

    return None


def is_private_or_local_host(host: str) -> bool:
    """Check whether a host is local/private by name or literal IP."""
    normalized = host.strip("[]").rstrip(".").lower()

    if normalized in _LOCAL_HOSTNAMES or normalized.endswith(".local"):
        return True

    try:
        ip = ipaddress.ip_address(normalized)
    except ValueError:
        return False

    return (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_reserved
        or ip.is_multicast
        or ip.is_unspecified
    )
