"""
Tests for webhook secret-token checks.
"""
import pytest

from api.security import SECRET_TOKEN_HEADER, is_valid_secret


class TestIsValidSecret:
    def test_match(self):
        assert is_valid_secret("s3cret", "s3cret") is True

    def test_mismatch(self):
        assert is_valid_secret("s3cret", "guess") is False

    @pytest.mark.parametrize("expected,received", [("", ""), ("", "x"), ("s3cret", None), (None, None)])
    def test_unset_never_matches(self, expected, received):
        assert is_valid_secret(expected, received) is False

    def test_non_ascii(self):
        assert is_valid_secret("ключ", "ключ") is True


class TestWebhookAuth:
    UPDATE = {"update_id": 1, "message": {"message_id": 1, "chat": {"id": 5}, "text": "hi"}}

    def test_missing_header(self, di_client, mock_update_router):
        response = di_client.post("/telegram/webhook", json=self.UPDATE)
        assert response.status_code == 401
        mock_update_router.handle.assert_not_called()

    def test_wrong_header(self, di_client, mock_update_router):
        response = di_client.post("/telegram/webhook", json=self.UPDATE, headers={SECRET_TOKEN_HEADER: "nope"})
        assert response.status_code == 401
        mock_update_router.handle.assert_not_called()

    def test_unset_secret_rejects_everything(self, mock_update_router):
        from fastapi.testclient import TestClient

        from api.dependencies import get_update_router
        from api.main import create_app
        from reel_relay.utils.config import AppConfig

        app = create_app(AppConfig(telegram_secret_token=""))
        app.dependency_overrides[get_update_router] = lambda: mock_update_router
        with TestClient(app) as client:
            response = client.post("/telegram/webhook", json=self.UPDATE, headers={SECRET_TOKEN_HEADER: ""})
        assert response.status_code == 401
