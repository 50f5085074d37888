"""
yt-dlp 媒体获取器

Probes metadata with `--dump-single-json`, then downloads into a temp path
handed out by the storage. yt-dlp picks the final extension itself, so the
file it actually wrote is located afterwards and renamed to the requested path.
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any

from reel_relay.errors import FetchError, ProbeError, ReconciliationError
from reel_relay.extractors.base import BaseExtractor
from reel_relay.extractors.normalizer import normalize
from reel_relay.models import AcquisitionResult, MediaAsset, MediaDescriptor, MediaKind, MediaRequest
from reel_relay.utils.logger import logger
from reel_relay.utils.process import ProcessResult, ProcessRunner
from reel_relay.utils.storage import LocalFileStorage


IMAGE_MIME_TYPES = {"jpg": "image/jpeg", "jpeg": "image/jpeg", "png": "image/png", "webp": "image/webp"}
VIDEO_MIME_TYPES = {"mp4": "video/mp4", "mov": "video/quicktime", "webm": "video/webm"}

# Error text kept on exceptions is capped; yt-dlp can be very chatty.
MAX_DETAILS_CHARS = 4000


@dataclass(frozen=True)
class YtDlpAuth:
    """Instagram auth material. Only the first configured option is used."""

    session_id: str = ""
    cookies_from_browser: str = ""
    cookies_file: str = ""

    def to_args(self) -> list[str]:
        if self.session_id:
            return ["--add-header", f"Cookie: sessionid={self.session_id}"]
        if self.cookies_from_browser:
            return ["--cookies-from-browser", self.cookies_from_browser]
        if self.cookies_file:
            return ["--cookies", self.cookies_file]
        return []


def resolve_mime_type(extension: str, kind: MediaKind) -> str:
    ext = extension.lower().lstrip(".")
    if kind == MediaKind.IMAGE:
        return IMAGE_MIME_TYPES.get(ext, "image/jpeg")
    return VIDEO_MIME_TYPES.get(ext, "video/mp4")


def _details(result: ProcessResult) -> str:
    text = (result.stderr or "").strip() or (result.stdout or "").strip()
    return text[-MAX_DETAILS_CHARS:]


class YtDlpExtractor(BaseExtractor):
    def __init__(
        self,
        storage: LocalFileStorage,
        *,
        binary: str = "yt-dlp",
        auth: YtDlpAuth | None = None,
        timeout: float | None = 180.0,
        runner: ProcessRunner | None = None,
    ):
        super().__init__(runner)
        self.storage = storage
        self.binary = binary
        self.auth = auth or YtDlpAuth()
        self.timeout = timeout

    def acquire(self, request: MediaRequest) -> AcquisitionResult:
        raw = self.probe(request.source_url)
        descriptor = normalize(raw, request.source_url)
        logger.info(
            f"Probed {request.source_url}: id={descriptor.id} kind={descriptor.kind.value} "
            f"ext={descriptor.file_extension}"
        )

        temp_path = self.storage.create_temp_file(descriptor.kind, descriptor.file_extension)
        try:
            local_path = self.fetch(request.source_url, temp_path, descriptor.file_extension)
            asset = self._create_asset(request.source_url, local_path, descriptor)
        except Exception:
            self._discard(temp_path)
            raise

        logger.info(f"Downloaded {asset.file_name} ({asset.byte_size} bytes, {asset.mime_type})")
        return AcquisitionResult(asset, descriptor)

    # -- yt-dlp invocations --

    def _build_args(self, options: list[str], url: str) -> list[str]:
        # Auth args go right before the URL
        return [self.binary, *options, *self.auth.to_args(), url]

    def probe(self, url: str) -> Any:
        logger.debug(f"Probing Instagram media via yt-dlp: {url}")
        args = self._build_args(
            ["--dump-single-json", "--no-warnings", "-f", "bestvideo*+bestaudio/best"],
            url,
        )
        result = self.runner.run(args, timeout=self.timeout)
        if not result.ok:
            logger.error(f"yt-dlp metadata extraction failed (exit {result.returncode}): {_details(result)}")
            raise ProbeError(
                f"Failed to extract Instagram media metadata using yt-dlp (exit {result.returncode})",
                details=_details(result),
            )
        try:
            return json.loads(result.stdout)
        except ValueError as e:
            logger.error(f"yt-dlp returned unparsable metadata: {e}")
            raise ProbeError(
                f"yt-dlp returned unparsable metadata: {e}",
                details=(result.stdout or "")[:MAX_DETAILS_CHARS],
            ) from e

    def fetch(self, url: str, target_path: str, expected_extension: str) -> str:
        output_template = os.path.splitext(target_path)[0]
        logger.debug(f"Downloading Instagram media via yt-dlp: {url} -> {target_path}")
        args = self._build_args(
            [
                "--no-warnings",
                "--quiet",
                "--no-part",
                "--no-mtime",
                "--force-overwrites",
                "-o",
                f"{output_template}.%(ext)s",
            ],
            url,
        )
        result = self.runner.run(args, timeout=self.timeout)
        if not result.ok:
            logger.error(f"yt-dlp media download failed (exit {result.returncode}): {_details(result)}")
            raise FetchError(
                f"Failed to download Instagram media using yt-dlp (exit {result.returncode})",
                details=_details(result),
            )
        return self.reconcile(target_path, output_template, expected_extension)

    # -- output file reconciliation --

    def reconcile(self, target_path: str, output_template: str, expected_extension: str) -> str:
        """Find the file yt-dlp actually wrote and move it to target_path."""
        ext = expected_extension.lstrip(".")
        candidates = [
            target_path,
            f"{output_template}.{ext}",
            f"{output_template}.{ext.lower()}",
            f"{target_path}.{ext}",
            f"{target_path}.{ext.lower()}",
        ]
        for candidate in candidates:
            if os.path.isfile(candidate):
                return self._move_into_place(candidate, target_path)

        directory = os.path.dirname(target_path) or "."
        base_name = os.path.basename(output_template)
        try:
            entries = os.listdir(directory)
        except OSError as e:
            logger.warning(f"Failed to inspect download directory {directory}: {e}")
            entries = []

        for entry in entries:
            if entry.startswith(base_name):
                return self._move_into_place(os.path.join(directory, entry), target_path)

        raise ReconciliationError(f"yt-dlp did not produce a file at the expected path {target_path}")

    def _move_into_place(self, found: str, target_path: str) -> str:
        if found != target_path:
            logger.debug(f"Renaming {found} -> {target_path}")
            os.replace(found, target_path)
        return target_path

    def _create_asset(self, source_url: str, local_path: str, descriptor: MediaDescriptor) -> MediaAsset:
        extension = os.path.splitext(local_path)[1].lstrip(".") or descriptor.file_extension
        return MediaAsset(
            source_url=source_url,
            kind=descriptor.kind,
            local_path=local_path,
            file_name=os.path.basename(local_path),
            mime_type=resolve_mime_type(extension, descriptor.kind),
            byte_size=os.path.getsize(local_path),
        )

    def _discard(self, path: str) -> None:
        try:
            self.storage.delete(path)
        except OSError as e:
            logger.warning(f"Failed to remove partial download {path}: {e}")
