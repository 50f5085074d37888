"""
Instagram link helpers: find a link in free text, guess its media type and
validate that it points at instagram.com.
"""
from __future__ import annotations

import re
from urllib.parse import urlparse

from reel_relay.errors import ValidationError
from reel_relay.models import MediaType


_INSTAGRAM_HOST_RE = re.compile(r"(^|\.)instagram\.com$", re.IGNORECASE)
_INSTAGRAM_URL_RE = re.compile(
    r"(https?://(?:www\.)?instagram\.com/[A-Za-z0-9._/?=&%-]+)", re.IGNORECASE
)


def extract_instagram_url(text: str | None) -> str | None:
    """Return the first instagram.com URL found in a chat message."""
    if not text:
        return None
    match = _INSTAGRAM_URL_RE.search(text)
    return match.group(1) if match else None


def strip_url(text: str | None, url: str) -> str | None:
    """Remove url from text; None when nothing but whitespace is left."""
    if not text:
        return None
    rest = " ".join(text.replace(url, " ").split())
    return rest or None


def infer_media_type(url: str) -> MediaType:
    segments = [s for s in urlparse(url).path.split("/") if s]
    if "stories" in segments or "s" in segments:
        return MediaType.STORY
    return MediaType.REEL


def is_instagram_host(host: str | None) -> bool:
    return bool(host) and bool(_INSTAGRAM_HOST_RE.search(host))


def validate_instagram_url(url: str) -> str:
    """Raise ValidationError unless url is an http(s) link on instagram.com."""
    try:
        parsed = urlparse(str(url).strip())
        host = parsed.hostname
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid Instagram URL: {url!r}") from e

    if parsed.scheme.lower() not in {"http", "https"} or not is_instagram_host(host):
        raise ValidationError(f"Invalid Instagram URL: {url!r}")
    return url
