"""Utility functions for domain extraction and URL handling."""

from __future__ import annotations

from datetime import datetime, timezone
from urllib.parse import urlparse

import tldextract

# Schemes that never correspond to a network fetch
NON_NETWORK_SCHEMES = frozenset({"data", "blob", "about", "chrome-extension", "javascript"})

# Bundled public suffix snapshot only; no fetch on first use
_extract = tldextract.TLDExtract(suffix_list_urls=())


def extract_registered_domain(url_or_domain: str) -> str:
    """Extract the registered domain from a URL or domain string.

    Examples:
        'https://widget.intercom.io/widget/1' -> 'intercom.io'
        'i.ytimg.com' -> 'ytimg.com'
    """
    ext = _extract(url_or_domain)
    if ext.top_domain_under_public_suffix:
        return ext.top_domain_under_public_suffix
    # Fallback for IPs or unusual domains
    try:
        parsed = urlparse(url_or_domain if "://" in url_or_domain else f"https://{url_or_domain}")
        return parsed.hostname or url_or_domain
    except ValueError:
        return url_or_domain


def extract_hostname(url: str) -> str:
    """Extract hostname from a URL."""
    try:
        parsed = urlparse(url)
        return parsed.hostname or ""
    except ValueError:
        return ""


def is_network_url(url: str) -> bool:
    """False for data:, blob: and similar URLs that never hit the network."""
    scheme, sep, _rest = url.partition(":")
    if not sep:
        return False
    return scheme.lower() not in NON_NETWORK_SCHEMES


def strip_scheme(url: str) -> str:
    """'https://www.youtube.com/embed/x' -> 'www.youtube.com/embed/x'"""
    _scheme, sep, rest = url.partition("://")
    return rest if sep else url


def now_iso() -> str:
    """Return current UTC time as ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


def normalize_url(url: str) -> str:
    """Ensure URL has a scheme and strip trailing slash."""
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"
    return url.rstrip("/")
