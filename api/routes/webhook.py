from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends

from api.bot import UpdateRouter
from api.dependencies import get_update_router
from api.schemas import TelegramUpdate, WebhookAck
from api.security import verify_secret_token


def build_webhook_router(webhook_path: str) -> APIRouter:
    """The webhook path is configurable, so the router is built per app."""
    router = APIRouter()

    @router.post(webhook_path, response_model=WebhookAck, dependencies=[Depends(verify_secret_token)])
    async def telegram_webhook(
        update: TelegramUpdate,
        background_tasks: BackgroundTasks,
        update_router: UpdateRouter = Depends(get_update_router),
    ):
        # Ack immediately; Telegram retries slow webhooks.
        background_tasks.add_task(update_router.handle, update)
        return WebhookAck()

    return router
