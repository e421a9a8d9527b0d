from __future__ import annotations

import hmac
from typing import Optional
from urllib.parse import urlsplit, urlunsplit


def resolve_signed_url(request_url: str, public_url: Optional[str]) -> str:
    """Return the URL the provider signed.

    Reverse proxies and tunnels rewrite the host we observe, so when a public
    URL is configured it replaces our scheme and host, and any path it carries
    is prefixed to the request path. The request query is kept.
    """
    if not public_url:
        return request_url
    public = urlsplit(public_url)
    observed = urlsplit(request_url)
    path = public.path.rstrip("/") + observed.path
    return urlunsplit((public.scheme, public.netloc, path, observed.query, ""))


def signatures_match(expected: str, provided: str) -> bool:
    """Constant-time comparison of two base64 signatures."""
    if len(expected) != len(provided):
        return False
    return hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))
