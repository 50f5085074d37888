"""
Telegram Bot API 客户端
用于发送预览、回退发布以及 webhook 注册
"""
from __future__ import annotations

import os
from typing import Any

import httpx

from reel_relay.errors import TelegramApiError
from reel_relay.utils.logger import logger


class TelegramBot:
    """Telegram Bot API 封装"""

    def __init__(
        self,
        bot_token: str,
        *,
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.bot_token = bot_token
        self.base_url = f"https://api.telegram.org/bot{bot_token}"
        self.timeout = timeout
        # Injected in tests (httpx.MockTransport)
        self._transport = transport

    def _client(self, timeout: float | None = None) -> httpx.Client:
        return httpx.Client(timeout=timeout or self.timeout, transport=self._transport)

    def _call(
        self,
        method: str,
        *,
        json: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Invoke a Bot API method and return its `result`.

        Raises:
            TelegramApiError: transport failure, non-JSON reply or ok=false
        """
        try:
            with self._client(timeout) as client:
                response = client.post(f"{self.base_url}/{method}", json=json, data=data, files=files)
        except httpx.TimeoutException as e:
            raise TelegramApiError(method, f"timeout: {e}") from e
        except httpx.HTTPError as e:
            raise TelegramApiError(method, str(e)) from e

        try:
            payload = response.json()
        except ValueError:
            raise TelegramApiError(method, f"HTTP {response.status_code}", response.status_code)

        if not isinstance(payload, dict):
            raise TelegramApiError(method, f"HTTP {response.status_code}", response.status_code)
        if response.status_code != 200 or not payload.get("ok"):
            description = payload.get("description") or f"HTTP {response.status_code}"
            raise TelegramApiError(method, description, response.status_code)
        return payload.get("result")

    def send_message(self, chat_id: str | int, text: str, parse_mode: str | None = None) -> bool:
        """发送文本消息，失败只记录日志

        Returns:
            是否发送成功
        """
        body: dict[str, Any] = {
            "chat_id": chat_id,
            "text": text,
            "disable_web_page_preview": True,
        }
        if parse_mode:
            body["parse_mode"] = parse_mode
        try:
            self._call("sendMessage", json=body, timeout=30.0)
            return True
        except TelegramApiError as e:
            logger.warning(f"[Telegram] Failed to send message: {e}")
            return False

    def _send_file(
        self,
        method: str,
        field: str,
        chat_id: str | int,
        path: str,
        mime_type: str,
        extra: dict[str, Any],
    ) -> Any:
        data = {"chat_id": str(chat_id)}
        for k, v in extra.items():
            if v is None:
                continue
            data[k] = ("true" if v else "false") if isinstance(v, bool) else str(v)
        with open(path, "rb") as fh:
            files = {field: (os.path.basename(path), fh, mime_type)}
            return self._call(method, data=data, files=files)

    def send_video(
        self,
        chat_id: str | int,
        path: str,
        *,
        caption: str | None = None,
        mime_type: str = "video/mp4",
        supports_streaming: bool | None = None,
    ) -> Any:
        return self._send_file(
            "sendVideo",
            "video",
            chat_id,
            path,
            mime_type,
            {"caption": caption, "supports_streaming": supports_streaming},
        )

    def send_photo(
        self,
        chat_id: str | int,
        path: str,
        *,
        caption: str | None = None,
        mime_type: str = "image/jpeg",
    ) -> Any:
        return self._send_file("sendPhoto", "photo", chat_id, path, mime_type, {"caption": caption})

    def set_webhook(self, url: str, secret_token: str, drop_pending_updates: bool = True) -> Any:
        return self._call(
            "setWebhook",
            json={
                "url": url,
                "secret_token": secret_token,
                "drop_pending_updates": drop_pending_updates,
            },
        )

    def delete_webhook(self) -> Any:
        return self._call("deleteWebhook", json={})

    def test_connection(self) -> tuple[bool, str]:
        """测试 Bot Token 是否有效

        Returns:
            (是否成功, 错误信息)
        """
        try:
            me = self._call("getMe", timeout=10.0)
        except TelegramApiError as e:
            return False, e.description
        return True, str((me or {}).get("username", ""))
