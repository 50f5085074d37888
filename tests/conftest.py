"""
Shared test fixtures for Reel Relay tests.

No test runs the real yt-dlp or talks to Telegram: the extractor gets a
FakeRunner, the Bot API gets an httpx.MockTransport, and the webhook app gets
mocks through app.dependency_overrides.
"""
import json
import os

import pytest
from unittest.mock import MagicMock
from fastapi.testclient import TestClient

from api.main import create_app
from api.dependencies import get_update_router
from reel_relay.models import AcquisitionResult, MediaAsset, MediaDescriptor, MediaKind
from reel_relay.utils.config import AppConfig
from reel_relay.utils.process import ProcessResult
from reel_relay.utils.storage import LocalFileStorage


class FakeRunner:
    """Replays a canned yt-dlp probe and writes a file on fetch."""

    def __init__(self, probe=None, *, probe_result=None, fetch_result=None, write_ext="mp4", on_fetch=None):
        self.probe = probe
        self.probe_result = probe_result
        self.fetch_result = fetch_result
        self.write_ext = write_ext
        self.on_fetch = on_fetch
        self.calls = []

    def run(self, args, timeout=None):
        self.calls.append(list(args))
        if "--dump-single-json" in args:
            if self.probe_result is not None:
                return self.probe_result
            return ProcessResult(0, json.dumps(self.probe), "")

        template = args[args.index("-o") + 1]
        if self.on_fetch is not None:
            self.on_fetch(template)
        elif self.fetch_result is None or self.fetch_result.ok:
            with open(template.replace("%(ext)s", self.write_ext), "wb") as f:
                f.write(b"\x00" * 128)
        return self.fetch_result or ProcessResult(0, "", "")


@pytest.fixture
def storage(tmp_path):
    return LocalFileStorage(str(tmp_path / "cache"))


@pytest.fixture
def reel_probe():
    """A typical yt-dlp document for a single Instagram reel."""
    return {
        "id": "C1a2B3c4D5e",
        "title": "Video by someone",
        "description": "sunset at the pier",
        "uploader": "Some One",
        "uploader_id": "someone",
        "timestamp": 1686787200,
        "upload_date": "20230615",
        "ext": "mp4",
        "webpage_url": "https://www.instagram.com/reel/C1a2B3c4D5e/",
    }


@pytest.fixture
def video_asset(tmp_path):
    """A real file on disk wrapped as a MediaAsset plus its descriptor."""
    path = tmp_path / "video-1-abcd.mp4"
    path.write_bytes(b"\x00" * 64)
    asset = MediaAsset(
        source_url="https://instagram.com/reel/ABC123/",
        kind=MediaKind.VIDEO,
        local_path=str(path),
        file_name=path.name,
        mime_type="video/mp4",
        byte_size=64,
    )
    descriptor = MediaDescriptor(
        id="ABC123",
        kind=MediaKind.VIDEO,
        file_extension="mp4",
        caption="original caption",
        owner_handle="someone",
    )
    return AcquisitionResult(asset, descriptor)


@pytest.fixture
def photo_asset(tmp_path):
    path = tmp_path / "image-1-abcd.jpg"
    path.write_bytes(b"\xff\xd8\xff" + b"\x00" * 32)
    asset = MediaAsset(
        source_url="https://instagram.com/p/XYZ/",
        kind=MediaKind.IMAGE,
        local_path=str(path),
        file_name=path.name,
        mime_type="image/jpeg",
        byte_size=os.path.getsize(path),
    )
    descriptor = MediaDescriptor(id="XYZ", kind=MediaKind.IMAGE, file_extension="jpg", caption=None)
    return AcquisitionResult(asset, descriptor)


@pytest.fixture
def mock_update_router():
    mock = MagicMock()
    mock.handle.return_value = None
    return mock


@pytest.fixture
def app_config():
    return AppConfig(telegram_secret_token="s3cret", webhook_path="/telegram/webhook")


@pytest.fixture
def di_client(app_config, mock_update_router):
    """Webhook app with the update router mocked via DI overrides."""
    app = create_app(app_config)
    app.dependency_overrides[get_update_router] = lambda: mock_update_router

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
