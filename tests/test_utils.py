"""
Tests for the small utilities: process runner, temp storage, Bot API client,
request-id logging and the CLI entry point.
"""
import json
import logging
import os
import sys

import httpx
import pytest
from unittest.mock import MagicMock

from reel_relay import cli
from reel_relay.errors import TelegramApiError, ValidationError
from reel_relay.models import MediaKind, MediaType
from reel_relay.utils.config import AppConfig
from reel_relay.utils.logger import InjectRequestIdFilter, clear_request_id, set_request_id
from reel_relay.utils.process import EXIT_NOT_FOUND, EXIT_TIMEOUT, ProcessRunner
from reel_relay.utils.storage import LocalFileStorage
from reel_relay.utils.telegram import TelegramBot


class TestProcessRunner:
    def test_captures_output(self):
        result = ProcessRunner().run([sys.executable, "-c", "import sys; print('out'); print('err', file=sys.stderr)"])
        assert result.ok
        assert result.stdout.strip() == "out"
        assert result.stderr.strip() == "err"

    def test_non_zero_exit(self):
        result = ProcessRunner().run([sys.executable, "-c", "raise SystemExit(3)"])
        assert not result.ok
        assert result.returncode == 3

    def test_missing_binary(self):
        result = ProcessRunner().run(["definitely-not-a-real-binary-xyz"])
        assert result.returncode == EXIT_NOT_FOUND
        assert "not found" in result.stderr

    def test_timeout(self):
        result = ProcessRunner().run([sys.executable, "-c", "import time; time.sleep(5)"], timeout=0.2)
        assert result.returncode == EXIT_TIMEOUT


class TestLocalFileStorage:
    def test_temp_path_shape(self, tmp_path):
        storage = LocalFileStorage(str(tmp_path / "cache"))
        path = storage.create_temp_file(MediaKind.VIDEO, "mp4")

        assert os.path.dirname(path) == str(tmp_path / "cache")
        assert os.path.isdir(str(tmp_path / "cache"))
        assert not os.path.exists(path)
        name = os.path.basename(path)
        assert name.startswith("video-")
        assert name.endswith(".mp4")

    def test_paths_are_unique(self, tmp_path):
        storage = LocalFileStorage(str(tmp_path))
        paths = {storage.create_temp_file("image", ".jpg") for _ in range(50)}
        assert len(paths) == 50

    def test_delete_is_idempotent(self, tmp_path):
        storage = LocalFileStorage(str(tmp_path))
        path = tmp_path / "x.mp4"
        path.write_bytes(b"x")

        storage.delete(str(path))
        storage.delete(str(path))
        assert not path.exists()


def _bot(handler):
    return TelegramBot("123:abc", transport=httpx.MockTransport(handler))


class TestTelegramBot:
    def test_send_message(self):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"ok": True, "result": {}})

        assert _bot(handler).send_message(5, "hi") is True
        assert seen[0]["chat_id"] == 5
        assert seen[0]["text"] == "hi"

    def test_send_message_failure_is_logged_not_raised(self, caplog):
        bot = _bot(lambda request: httpx.Response(403, json={"ok": False, "description": "Forbidden: bot was blocked"}))
        with caplog.at_level(logging.WARNING, logger="reel_relay"):
            assert bot.send_message(5, "hi") is False
        assert "bot was blocked" in caplog.text

    def test_non_json_reply(self):
        bot = _bot(lambda request: httpx.Response(502, text="<html>Bad Gateway</html>"))
        with pytest.raises(TelegramApiError) as exc_info:
            bot.set_webhook("https://x/hook", "s")
        assert exc_info.value.status_code == 502

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(TelegramApiError, match="refused"):
            _bot(handler).delete_webhook()

    def test_set_webhook_payload(self):
        seen = []

        def handler(request):
            seen.append((request.url.path, json.loads(request.content)))
            return httpx.Response(200, json={"ok": True, "result": True})

        assert _bot(handler).set_webhook("https://relay.example.com/telegram/webhook", "s3cret") is True
        path, body = seen[0]
        assert path.endswith("/setWebhook")
        assert body == {
            "url": "https://relay.example.com/telegram/webhook",
            "secret_token": "s3cret",
            "drop_pending_updates": True,
        }

    def test_connection(self):
        bot = _bot(lambda request: httpx.Response(200, json={"ok": True, "result": {"username": "relay_bot"}}))
        assert bot.test_connection() == (True, "relay_bot")

    def test_connection_failure(self):
        bot = _bot(lambda request: httpx.Response(401, json={"ok": False, "description": "Unauthorized"}))
        assert bot.test_connection() == (False, "Unauthorized")


class TestRequestIdFilter:
    def _record(self):
        return logging.LogRecord("reel_relay", logging.INFO, __file__, 1, "msg", None, None)

    def test_default(self):
        record = self._record()
        InjectRequestIdFilter().filter(record)
        assert record.request_id == "-"

    def test_thread_local_id(self):
        set_request_id("u77")
        try:
            record = self._record()
            InjectRequestIdFilter().filter(record)
            assert record.request_id == "u77"
        finally:
            clear_request_id()


class TestCli:
    def test_url_required(self, monkeypatch):
        monkeypatch.setattr(cli, "load_config", lambda: AppConfig())
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])
        assert exc_info.value.code == 2

    def test_runs_pipeline(self, monkeypatch):
        pipeline = MagicMock()
        built = []
        monkeypatch.setattr(cli, "load_config", lambda: AppConfig())
        monkeypatch.setattr(cli, "build_pipeline", lambda cfg: built.append(cfg) or pipeline)

        cli.main(["--url", "https://instagram.com/stories/a/1/", "--caption", "hi", "--expires", "86400", "--no-publish"])

        command = pipeline.execute.call_args.args[0]
        assert command.media_type == MediaType.STORY
        assert command.caption_override == "hi"
        assert command.expires_in_seconds == 86400
        assert built[0].story_publish_enabled is False
        pipeline.close.assert_called_once()

    def test_relay_error_exits_1(self, monkeypatch):
        pipeline = MagicMock()
        pipeline.execute.side_effect = ValidationError("Invalid Instagram URL")
        monkeypatch.setattr(cli, "load_config", lambda: AppConfig())
        monkeypatch.setattr(cli, "build_pipeline", lambda cfg: pipeline)

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--url", "https://example.com/x"])

        assert exc_info.value.code == 1
        pipeline.close.assert_called_once()
