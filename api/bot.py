"""
Routes incoming Telegram updates to the publish pipeline and replies to the user.
"""
from __future__ import annotations

from api.schemas import TelegramUpdate
from reel_relay.models import PublishCommand
from reel_relay.pipeline import PublishPipeline
from reel_relay.utils.links import extract_instagram_url, infer_media_type, strip_url
from reel_relay.utils.logger import clear_request_id, logger, set_request_id
from reel_relay.utils.telegram import TelegramBot


START_TEXT = "Send me an Instagram reel or story URL and I will mirror it to Telegram stories."
NO_URL_TEXT = "Please send a valid Instagram reel or story URL."
PUBLISHED_TEXT = "✅ Your Instagram media is being published to Telegram stories."
PREVIEW_ONLY_TEXT = "👀 Preview sent to the review chat. Story publishing is disabled."
FAILED_TEXT = "❌ Failed to process this Instagram link. Please try again later."


def _is_start_command(text: str | None) -> bool:
    words = (text or "").split()
    return bool(words) and words[0].split("@")[0] == "/start"


class UpdateRouter:
    def __init__(self, pipeline: PublishPipeline, bot: TelegramBot):
        self.pipeline = pipeline
        self.bot = bot

    def handle(self, update: TelegramUpdate) -> None:
        set_request_id(f"u{update.update_id}")
        try:
            self._handle(update)
        finally:
            clear_request_id()

    def _handle(self, update: TelegramUpdate) -> None:
        message = update.effective_message
        if message is None:
            logger.debug("Ignoring update without a message")
            return

        chat_id = message.chat.id
        text = message.body

        if _is_start_command(text):
            self.bot.send_message(chat_id, START_TEXT)
            return

        url = extract_instagram_url(text)
        if not url:
            logger.debug("No Instagram URL found in message")
            self.bot.send_message(chat_id, NO_URL_TEXT)
            return

        command = PublishCommand(
            url=url,
            media_type=infer_media_type(url),
            caption_override=strip_url(text, url),
        )

        # Top-level boundary of a background task: report, never re-raise.
        try:
            self.pipeline.execute(command)
        except Exception as e:
            logger.error(f"Failed to process Instagram media {url}: {e}")
            self.bot.send_message(chat_id, FAILED_TEXT)
            return

        self.bot.send_message(chat_id, PUBLISHED_TEXT if self.pipeline.publish_enabled else PREVIEW_ONLY_TEXT)
