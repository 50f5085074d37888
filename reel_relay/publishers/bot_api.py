"""
Bot API based delivery: the fallback story publisher and the review preview.

Bots cannot post real stories through the Bot API, so the fallback sends the
media as a regular video/photo message to a fixed chat.
"""
from __future__ import annotations

from reel_relay.errors import DestinationMissingError
from reel_relay.models import MediaAsset, MediaDescriptor, MediaKind, PublishOptions
from reel_relay.publishers.base import PreviewSender, StoryPublisher, resolve_caption
from reel_relay.utils.logger import logger
from reel_relay.utils.telegram import TelegramBot


class BotApiStoryPublisher(StoryPublisher):
    name = "bot_api"

    def __init__(self, bot: TelegramBot, target_chat_id: str):
        self.bot = bot
        self.target_chat_id = target_chat_id

    def publish(
        self,
        asset: MediaAsset,
        descriptor: MediaDescriptor,
        options: PublishOptions | None = None,
    ) -> None:
        if not self.target_chat_id:
            raise DestinationMissingError(
                "TELEGRAM_TARGET_CHAT_ID is required when MTProto configuration is not provided"
            )

        caption = resolve_caption(descriptor, options)
        if asset.kind == MediaKind.VIDEO:
            self.bot.send_video(self.target_chat_id, asset.local_path, caption=caption, mime_type=asset.mime_type)
        else:
            self.bot.send_photo(self.target_chat_id, asset.local_path, caption=caption, mime_type=asset.mime_type)

        logger.info(f"Published media using Bot API fallback to chat {self.target_chat_id}")


class BotApiPreviewSender(PreviewSender):
    def __init__(self, bot: TelegramBot, review_chat_id: str):
        self.bot = bot
        self.review_chat_id = review_chat_id

    def send_preview(
        self,
        asset: MediaAsset,
        descriptor: MediaDescriptor,
        caption: str | None = None,
    ) -> None:
        if not self.review_chat_id:
            raise DestinationMissingError("No review chat configured for previews")

        text = caption if caption is not None else (descriptor.caption or "")
        if asset.kind == MediaKind.VIDEO:
            self.bot.send_video(
                self.review_chat_id,
                asset.local_path,
                caption=text,
                mime_type=asset.mime_type,
                supports_streaming=True,
            )
        else:
            self.bot.send_photo(self.review_chat_id, asset.local_path, caption=text, mime_type=asset.mime_type)

        logger.info(f"Delivered preview to review chat {self.review_chat_id}")
