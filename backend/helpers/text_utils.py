"""
Small text helpers shared by services.
"""

import re
import unicodedata

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def slugify(value: str, max_length: int = 120) -> str:
    """
    Build a URL slug from free text.

    Accents are folded to ASCII, anything else non-alphanumeric collapses
    to a single hyphen.

    Examples:
        >>> slugify("Règles du forum !")
        'regles-du-forum'
    """
    folded = (
        unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    )
    slug = _NON_SLUG_CHARS.sub("-", folded.lower()).strip("-")
    return slug[:max_length].strip("-")


def make_snippet(content: str | None, length: int = 140) -> str:
    """Return the first `length` characters of content."""
    if not content:
        return ""
    return content[:length]
