"""
Input sanitization utilities to prevent XSS.

Forum text is stored as plain text: every tag is stripped before storage and
image/avatar URLs are restricted to safe protocols.
"""

import html
from typing import Optional

import bleach


def sanitize_plain_text(content: Optional[str]) -> Optional[str]:
    """
    Strip all HTML tags for plain text fields.

    Args:
        content: Raw content from user input

    Returns:
        Plain text with all HTML removed, or None if input is None. Entities
        bleach escapes are turned back into characters.

    Examples:
        >>> sanitize_plain_text('<b>Bold</b> text')
        'Bold text'
        >>> sanitize_plain_text('Tom & Jerry')
        'Tom & Jerry'
    """
    if content is None:
        return None

    return html.unescape(bleach.clean(content, tags=[], strip=True))


def clean_text(content: Optional[str]) -> str:
    """Trim and strip HTML; None becomes an empty string."""
    if content is None:
        return ""
    return (sanitize_plain_text(content.strip()) or "").strip()


def within_length(content: Optional[str], min_length: int, max_length: int) -> bool:
    """Check bounds on the trimmed user input, before any sanitizing."""
    length = len(content.strip()) if content else 0
    return min_length <= length <= max_length


def sanitize_url(url: Optional[str]) -> Optional[str]:
    """
    Sanitize URLs to prevent javascript: protocol attacks.

    Only http, https and site-relative URLs are kept.

    Args:
        url: URL from user input

    Returns:
        Sanitized URL, empty string if the protocol is not allowed, or None

    Examples:
        >>> sanitize_url('javascript:alert(1)')
        ''
        >>> sanitize_url('/uploads/badges/a.png')
        '/uploads/badges/a.png'
    """
    if url is None:
        return None

    url = url.strip()
    if not url:
        return url

    if url.lower().startswith(("http://", "https://")):
        return url

    # Relative URLs produced by the upload store
    if url.startswith("/") and not url.startswith("//"):
        return url

    return ""
