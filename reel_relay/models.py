from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import NamedTuple


class MediaType(str, Enum):
    """What the user asked us to mirror."""

    REEL = "reel"
    STORY = "story"


class MediaKind(str, Enum):
    VIDEO = "video"
    IMAGE = "image"


@dataclass(frozen=True)
class MediaRequest:
    source_url: str
    declared_type: MediaType = MediaType.REEL


@dataclass(frozen=True)
class MediaDescriptor:
    """Normalized metadata produced from the extractor output.

    `kind` and `file_extension` always agree: image extensions only ever come
    with MediaKind.IMAGE.
    """

    id: str
    kind: MediaKind
    file_extension: str
    caption: str | None = None
    owner_handle: str | None = None
    captured_at: datetime | None = None


@dataclass(frozen=True)
class MediaAsset:
    source_url: str
    kind: MediaKind
    local_path: str
    file_name: str
    mime_type: str
    byte_size: int


@dataclass(frozen=True)
class PublishOptions:
    caption: str | None = None
    expires_in_seconds: int | None = None


@dataclass(frozen=True)
class PublishCommand:
    url: str
    media_type: MediaType = MediaType.REEL
    caption_override: str | None = None
    expires_in_seconds: int | None = None


class AcquisitionResult(NamedTuple):
    asset: MediaAsset
    descriptor: MediaDescriptor
