import ipaddress
from typing import Optional
from urllib.parse import urljoin, urlparse


def get_domain(url: str) -> str:
    """
    Host name of a URL without a leading "www.", used for fallback titles.
    Returns the input unchanged when no host can be parsed.
    """
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return url
    if not hostname:
        return url
    if hostname.startswith("www."):
        hostname = hostname[len("www."):]
    return hostname


def extract_user_handle(url: str) -> Optional[str]:
    """First path segment of a URL, e.g. "jack" for https://x.com/jack/status/20"""
    try:
        segments = [part for part in urlparse(url).path.split("/") if part]
    except ValueError:
        return None
    return segments[0] if segments else None


def make_absolute_url(value: Optional[str], base_url: str) -> Optional[str]:
    """
    Resolve a possibly relative URL against the page it was found on.
    Never raises: on a parse failure the original value is returned.
    """
    if not value:
        return None
    try:
        parsed = urlparse(value)
        if parsed.scheme and parsed.netloc:
            return value
        return urljoin(base_url, value)
    except ValueError:
        return value


def is_safe_url(url: str) -> bool:
    """
    Check that a URL is http(s), well formed and does not target
    loopback or private network hosts.
    """
    try:
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return False

        # Out-of-range ports raise ValueError on access
        if parsed.port is not None and parsed.port < 1:
            return False

        hostname = (parsed.hostname or "").lower()
        if not hostname or hostname == "localhost" or hostname.endswith(".localhost"):
            return False

        try:
            address = ipaddress.ip_address(hostname)
        except ValueError:
            return True
        return not (address.is_private or address.is_loopback
                    or address.is_link_local or address.is_reserved)
    except ValueError:
        return False
