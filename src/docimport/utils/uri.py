"""URI validation and source classification."""

from __future__ import annotations

from urllib.parse import urlparse

_REMOTE_SCHEMES: frozenset[str] = frozenset({"http", "https"})


def validate_uri(value: str) -> bool:
    """Return ``True`` when *value* is an absolute URI.

    A scheme is required, whitespace is not allowed, and hierarchical
    schemes (``http``, ``https``, ``ftp`` ...) also need a host.

    Examples
    --------
    >>> validate_uri("https://example.com/a")
    True
    >>> validate_uri("notes/b.md")
    False
    >>> validate_uri("mailto:someone@example.com")
    True
    """
    value = value.strip()
    if not value or any(ch.isspace() for ch in value):
        return False
    parsed = urlparse(value)
    if not parsed.scheme or len(parsed.scheme) < 2:
        # A single letter scheme is a Windows drive, not a URI.
        return False
    if value[len(parsed.scheme) + 1 :].startswith("//"):
        return bool(parsed.netloc)
    return bool(parsed.path or parsed.netloc)


def is_remote(source: str) -> bool:
    """True when *source* is an ``http(s)`` URL rather than a local path."""
    return urlparse(source).scheme in _REMOTE_SCHEMES
