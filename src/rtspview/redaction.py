"""Credential redaction for stream URLs in logs and API responses."""

from __future__ import annotations

from urllib.parse import SplitResult, urlsplit, urlunsplit

REDACTED_USERINFO = "***:***"


def redact_rtsp_url(url: str) -> str:
    """Replace the user/password part of a stream URL with a placeholder."""
    if not url:
        return url
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        # Unparseable authority; drop everything before the host marker.
        scheme, sep, rest = url.partition("://")
        if sep and "@" in rest:
            return f"{scheme}://{REDACTED_USERINFO}@{rest.rsplit('@', 1)[1]}"
        return url
    if parts.username is None and parts.password is None:
        return url

    host = parts.hostname or ""
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    if port is not None:
        host = f"{host}:{port}"

    redacted = SplitResult(
        scheme=parts.scheme,
        netloc=f"{REDACTED_USERINFO}@{host}",
        path=parts.path,
        query=parts.query,
        fragment=parts.fragment,
    )
    return urlunsplit(redacted)
