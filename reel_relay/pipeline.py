"""
Reel Relay publish pipeline - Instagram 媒体转发到 Telegram 快拍
"""
from __future__ import annotations

import secrets

from reel_relay.errors import AuthenticationError
from reel_relay.extractors.base import BaseExtractor
from reel_relay.extractors.ytdlp import YtDlpAuth, YtDlpExtractor
from reel_relay.models import MediaAsset, MediaDescriptor, MediaRequest, PublishCommand, PublishOptions
from reel_relay.publishers.base import PreviewSender, StoryPublisher
from reel_relay.publishers.bot_api import BotApiPreviewSender, BotApiStoryPublisher
from reel_relay.publishers.composite import CompositeStoryPublisher
from reel_relay.publishers.mtproto import MtProtoStoryPublisher
from reel_relay.utils.config import AppConfig
from reel_relay.utils.links import validate_instagram_url
from reel_relay.utils.logger import clear_request_id, get_request_id, logger, set_request_id
from reel_relay.utils.storage import LocalFileStorage
from reel_relay.utils.telegram import TelegramBot


class PublishPipeline:
    """Validate -> acquire -> preview (best effort) -> publish -> cleanup."""

    def __init__(
        self,
        extractor: BaseExtractor,
        preview_sender: PreviewSender,
        publisher: StoryPublisher,
        storage: LocalFileStorage,
        *,
        publish_enabled: bool = True,
        default_expires_in_seconds: int | None = None,
    ):
        self.extractor = extractor
        self.preview_sender = preview_sender
        self.publisher = publisher
        self.storage = storage
        self.publish_enabled = publish_enabled
        self.default_expires_in_seconds = default_expires_in_seconds

    def execute(self, command: PublishCommand) -> None:
        """
        Run one request end to end.

        Raises:
            ValidationError: the URL is not an instagram.com link
            AcquisitionError: probe/fetch/reconciliation failed
            AllStrategiesExhaustedError: no strategy could publish the story
        """
        owns_request_id = get_request_id() is None
        if owns_request_id:
            set_request_id(secrets.token_hex(4))
        try:
            self._execute(command)
        finally:
            if owns_request_id:
                clear_request_id()

    def _execute(self, command: PublishCommand) -> None:
        logger.info(f"Starting Instagram story publish pipeline: {command.url} ({command.media_type.value})")

        validate_instagram_url(command.url)

        asset, descriptor = self.extractor.acquire(
            MediaRequest(source_url=command.url, declared_type=command.media_type)
        )

        # The temp file belongs to this invocation from here on.
        try:
            caption = command.caption_override if command.caption_override is not None else descriptor.caption
            expires = command.expires_in_seconds
            if expires is None:
                expires = self.default_expires_in_seconds
            options = PublishOptions(caption=caption, expires_in_seconds=expires)

            self._send_preview(asset, descriptor, caption)

            if not self.publish_enabled:
                logger.info(f"Story publishing disabled, stopping after preview (media {descriptor.id})")
                return

            self.publisher.publish(asset, descriptor, options)
            logger.info(f"Successfully published story to Telegram (media {descriptor.id})")
        finally:
            self._safe_cleanup(asset.local_path)

    def _send_preview(self, asset: MediaAsset, descriptor: MediaDescriptor, caption: str | None) -> None:
        try:
            self.preview_sender.send_preview(asset, descriptor, caption)
        except Exception as e:
            logger.warning(f"Failed to deliver preview to review chat: {e}")

    def _safe_cleanup(self, path: str) -> None:
        try:
            self.storage.delete(path)
        except Exception as e:
            logger.warning(f"Failed to cleanup temporary file {path}: {e}")

    def close(self) -> None:
        self.publisher.close()


def build_story_publisher(cfg: AppConfig, bot: TelegramBot) -> CompositeStoryPublisher:
    """MTProto first when a session is configured, Bot API as the fallback."""
    primary = None
    creds = cfg.mtproto_credentials()
    if creds is not None:
        try:
            primary = MtProtoStoryPublisher.initialize(creds, timeout=cfg.telegram_timeout_sec)
        except AuthenticationError as e:
            logger.warning(f"Failed to initialize MTProto publisher. Falling back to Bot API only: {e}")

    fallback = BotApiStoryPublisher(bot, cfg.telegram_target_chat_id)
    return CompositeStoryPublisher(primary=primary, fallback=fallback)


def build_pipeline(cfg: AppConfig, bot: TelegramBot | None = None) -> PublishPipeline:
    bot = bot or TelegramBot(cfg.telegram_bot_token, timeout=cfg.telegram_timeout_sec)
    storage = LocalFileStorage(cfg.media_temp_dir or None)
    extractor = YtDlpExtractor(
        storage,
        binary=cfg.ytdlp_binary,
        auth=YtDlpAuth(
            session_id=cfg.instagram_session_id,
            cookies_from_browser=cfg.ytdlp_cookies_from_browser,
            cookies_file=cfg.ytdlp_cookies_file,
        ),
        timeout=cfg.ytdlp_timeout_sec,
    )
    return PublishPipeline(
        extractor,
        BotApiPreviewSender(bot, cfg.review_chat_id),
        build_story_publisher(cfg, bot),
        storage,
        publish_enabled=cfg.story_publish_enabled,
        default_expires_in_seconds=cfg.default_story_period,
    )
