"""
Turns a yt-dlp JSON document into a MediaDescriptor.

yt-dlp output is loosely structured: carousels and some reels come back as a
playlist whose `entries` hold the real items, and fields like `ext`, `title`
or `timestamp` may be missing. Everything tolerant lives here so the rest of
the code only sees MediaDescriptor.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Union
from urllib.parse import urlparse

from reel_relay.errors import ExtractionEmptyError
from reel_relay.models import MediaDescriptor, MediaKind


IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "webp"}

_UPLOAD_DATE_RE = re.compile(r"^\d{8}$")


@dataclass(frozen=True)
class LeafRecord:
    fields: dict[str, Any]


@dataclass(frozen=True)
class PlaylistRecord:
    entries: list[Any]


RawRecord = Union[LeafRecord, PlaylistRecord]


def parse_record(raw: Any) -> RawRecord:
    if not raw or not isinstance(raw, dict):
        raise ExtractionEmptyError("yt-dlp returned no metadata for Instagram media")
    entries = raw.get("entries")
    if isinstance(entries, list) and entries:
        return PlaylistRecord(entries)
    return LeafRecord(raw)


def reduce_to_leaf(record: RawRecord) -> LeafRecord:
    """Follow the first entry of every playlist level down to a leaf."""
    while isinstance(record, PlaylistRecord):
        record = parse_record(record.entries[0])
    return record


def _first_download_ext(info: dict[str, Any]) -> str | None:
    downloads = info.get("requested_downloads")
    if isinstance(downloads, list) and downloads and isinstance(downloads[0], dict):
        return downloads[0].get("ext") or None
    return None


def resolve_extension(info: dict[str, Any], fallback_kind: MediaKind) -> str:
    ext = info.get("ext") or _first_download_ext(info)
    if ext:
        return str(ext).lstrip(".")
    return "mp4" if fallback_kind == MediaKind.VIDEO else "jpg"


def infer_kind(info: dict[str, Any]) -> MediaKind:
    # Extension decides; resolved with the video fallback so no-ext means video.
    ext = resolve_extension(info, MediaKind.VIDEO)
    if ext.lower() in IMAGE_EXTENSIONS:
        return MediaKind.IMAGE
    return MediaKind.VIDEO


def resolve_captured_at(info: dict[str, Any]) -> datetime | None:
    ts = info.get("timestamp")
    if ts is not None and not isinstance(ts, bool):
        try:
            return datetime.fromtimestamp(float(ts), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError, OSError):
            pass

    upload_date = info.get("upload_date")
    if upload_date is not None and _UPLOAD_DATE_RE.match(str(upload_date)):
        try:
            return datetime.strptime(str(upload_date), "%Y%m%d").replace(tzinfo=timezone.utc)
        except ValueError:
            return None
    return None


def id_from_url(url: str) -> str:
    """https://instagram.com/reel/ABC/ -> reel_ABC_"""
    try:
        path = urlparse(url).path
    except ValueError:
        path = ""
    return path.lstrip("/").replace("/", "_") or "unknown"


def _text(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value)
    return s if s else None


def normalize(raw: Any, request_url: str) -> MediaDescriptor:
    info = reduce_to_leaf(parse_record(raw)).fields

    kind = infer_kind(info)
    extension = resolve_extension(info, kind)

    raw_id = info.get("id")
    media_id = str(raw_id) if raw_id not in (None, "") else id_from_url(request_url)

    return MediaDescriptor(
        id=media_id,
        kind=kind,
        file_extension=extension,
        caption=_text(info.get("title")) or _text(info.get("description")),
        owner_handle=_text(info.get("uploader_id")) or _text(info.get("uploader")),
        captured_at=resolve_captured_at(info),
    )
