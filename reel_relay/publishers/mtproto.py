"""
MTProto story publisher (Telethon).

Posts a real Telegram story through a pre-authenticated user session. The
Telethon client lives on its own event loop thread; synchronous callers
submit coroutines to it and wait with a timeout, which serializes access to
the shared connection across worker threads.
"""
from __future__ import annotations

import asyncio
import concurrent.futures
import threading
from typing import Any, Awaitable, Callable

from telethon import TelegramClient, functions, types
from telethon.sessions import StringSession

from reel_relay.errors import AuthenticationError
from reel_relay.models import MediaAsset, MediaDescriptor, MediaKind, PublishOptions
from reel_relay.publishers.base import StoryPublisher, resolve_caption
from reel_relay.utils.config import MtProtoCredentials
from reel_relay.utils.logger import logger


class _LoopThread:
    """An asyncio loop running forever on a daemon thread."""

    def __init__(self, name: str = "mtproto-loop"):
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    def submit(self, coro: Awaitable[Any], timeout: float | None) -> Any:
        future = asyncio.run_coroutine_threadsafe(coro, self.loop)
        try:
            return future.result(timeout)
        except concurrent.futures.TimeoutError:
            future.cancel()
            raise TimeoutError(f"MTProto call did not finish within {timeout}s")

    def stop(self) -> None:
        if self.loop.is_closed():
            return
        self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(timeout=5)
        if not self._thread.is_alive():
            self.loop.close()


def _default_client(creds: MtProtoCredentials) -> TelegramClient:
    return TelegramClient(
        StringSession(creds.session),
        creds.app_id,
        creds.app_hash,
        connection_retries=5,
    )


class MtProtoStoryPublisher(StoryPublisher):
    name = "mtproto"

    def __init__(self, client: Any, runner: _LoopThread, *, timeout: float = 120.0):
        # Use initialize(); the client must already be connected and authorized.
        self.client = client
        self._runner = runner
        self.timeout = timeout

    @classmethod
    def initialize(
        cls,
        creds: MtProtoCredentials,
        *,
        timeout: float = 120.0,
        connect_timeout: float = 30.0,
        client_factory: Callable[[MtProtoCredentials], Any] | None = None,
    ) -> "MtProtoStoryPublisher":
        """Connect with a saved StringSession.

        Raises:
            AuthenticationError: no session, connection failure, or the session
                is not logged in. Interactive login is never attempted.
        """
        if not creds.session:
            raise AuthenticationError(
                "MTProto session string is empty. Generate one offline with scripts/export_session.py"
            )

        factory = client_factory or _default_client
        runner = _LoopThread()

        async def _connect() -> Any:
            # Built on the loop thread so Telethon binds to that loop.
            client = factory(creds)
            await client.connect()
            if not await client.is_user_authorized():
                await client.disconnect()
                raise AuthenticationError(
                    "MTProto session is not authorized. Interactive login is not supported in this "
                    "environment; generate a session string offline."
                )
            return client

        try:
            client = runner.submit(_connect(), connect_timeout)
        except AuthenticationError:
            runner.stop()
            raise
        except Exception as e:
            runner.stop()
            raise AuthenticationError(f"Failed to connect MTProto client: {e}") from e

        logger.info("MTProto story publisher connected")
        return cls(client, runner, timeout=timeout)

    def publish(
        self,
        asset: MediaAsset,
        descriptor: MediaDescriptor,
        options: PublishOptions | None = None,
    ) -> None:
        caption = resolve_caption(descriptor, options)
        period = options.expires_in_seconds if options is not None else None
        self._runner.submit(self._send_story(asset, caption, period), self.timeout)
        logger.info(f"Published Telegram story through MTProto (media {descriptor.id})")

    async def _send_story(self, asset: MediaAsset, caption: str, period: int | None) -> None:
        logger.debug(f"Uploading media through MTProto: {asset.file_name}")
        uploaded = await self.client.upload_file(asset.local_path, file_name=asset.file_name)

        if asset.kind == MediaKind.VIDEO:
            media = types.InputMediaUploadedDocument(
                file=uploaded,
                mime_type=asset.mime_type,
                attributes=[
                    types.DocumentAttributeVideo(duration=0, w=0, h=0, supports_streaming=True),
                ],
            )
        else:
            media = types.InputMediaUploadedPhoto(file=uploaded)

        await self.client(
            functions.stories.SendStoryRequest(
                peer=types.InputPeerSelf(),
                media=media,
                privacy_rules=[types.InputPrivacyValueAllowAll()],
                caption=caption,
                period=period,
            )
        )

    async def _disconnect(self) -> None:
        await self.client.disconnect()

    def close(self) -> None:
        try:
            self._runner.submit(self._disconnect(), 10.0)
        except Exception as e:
            logger.warning(f"MTProto disconnect failed: {e}")
        finally:
            self._runner.stop()
