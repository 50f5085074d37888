from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TelegramChat(BaseModel):
    id: int
    type: str | None = None


class TelegramUser(BaseModel):
    id: int
    is_bot: bool = False
    username: str | None = None


class TelegramMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message_id: int
    chat: TelegramChat
    from_user: TelegramUser | None = Field(default=None, alias="from")
    text: str | None = None
    caption: str | None = None

    @property
    def body(self) -> str | None:
        """Text for plain messages, caption for media messages."""
        return self.text if self.text is not None else self.caption


class TelegramUpdate(BaseModel):
    """The subset of a Bot API Update this service reacts to."""

    update_id: int
    message: TelegramMessage | None = None
    channel_post: TelegramMessage | None = None

    @property
    def effective_message(self) -> TelegramMessage | None:
        return self.message or self.channel_post


class WebhookAck(BaseModel):
    ok: bool = True
