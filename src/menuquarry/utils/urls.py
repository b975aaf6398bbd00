"""
URL canonicalization for de-duplicating candidate pages.
"""

from __future__ import annotations

from urllib.parse import urlsplit, urlunsplit


def canonical_url(url: str) -> str:
    """
    Comparison key for ``url``.

    Scheme and host are lowercased, the fragment is dropped, an empty path
    becomes ``/`` and any other path loses its trailing slash. The query is
    kept as-is since it can select a different document.
    """
    parts = urlsplit(url.strip())
    path = parts.path or "/"
    if path != "/":
        path = path.rstrip("/") or "/"
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, parts.query, ""))
