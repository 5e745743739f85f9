"""Text normalization for feed markup.

Feed descriptions arrive as HTML fragments. normalize() turns them into
plain single-spaced text before any extraction runs:

    1. Drop markup tags
    2. Drop HTML entity escapes (&amp;, &#39;, &nbsp;, ...)
    3. Drop characters other than word characters, whitespace and . , ! ? -
    4. Collapse whitespace runs and trim

Example:
    >>> normalize("<p>Rain &amp; floods hit <b>Assam</b></p>")
    'Rain floods hit Assam'
"""

import re

_TAG_PATTERN = re.compile(r"<[^>]*>")
_ENTITY_PATTERN = re.compile(r"&[^;\s]+;")
_DISALLOWED_PATTERN = re.compile(r"[^\w\s.,!?-]")
_SPACE_PATTERN = re.compile(r"\s+")


def normalize(raw: str | None) -> str:
    """Strip markup and collapse whitespace. Total; never raises."""
    if not raw:
        return ""
    text = _TAG_PATTERN.sub(" ", raw)
    text = _ENTITY_PATTERN.sub("", text)
    text = _DISALLOWED_PATTERN.sub("", text)
    return _SPACE_PATTERN.sub(" ", text).strip()
