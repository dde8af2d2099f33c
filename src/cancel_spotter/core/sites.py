# src/cancel_spotter/core/sites.py

from __future__ import annotations

from urllib.parse import urlsplit


def site_from_url(url: str) -> str:
    """
    "https://www.netflix.com/account" -> "netflix.com"

    Anything that doesn't parse as a URL with a host is returned unchanged (stripped),
    so a bare "netflix.com" passes through.
    """
    raw = (url or "").strip()
    try:
        host = urlsplit(raw).hostname
    except ValueError:
        return raw
    if not host:
        return raw
    return host.replace("www.", "", 1)
