"""Shared URL utilities — resolve page URLs against their website."""

from __future__ import annotations

from urllib.parse import urljoin, urlparse


def validate_base_url(url: str) -> str:
    """Return ``url`` if it is an absolute http(s) URL, else raise ValueError."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Website URL must be absolute http(s): {url!r}")
    return url


def resolve_page_url(base_url: str, path: str) -> str:
    """Resolve a page path relative to its website's base URL."""
    validate_base_url(base_url)
    return urljoin(base_url, path)
