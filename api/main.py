from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.async_utils import run_sync
from api.constants import API_VERSION
from api.dependencies import get_bot, get_pipeline
from api.routes.system import router as system_router
from api.routes.webhook import build_webhook_router
from reel_relay.errors import TelegramApiError
from reel_relay.utils.config import AppConfig, load_config
from reel_relay.utils.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理: 注册 / 注销 webhook"""
    cfg: AppConfig = app.state.config
    registered = False
    if cfg.webhook_host and cfg.telegram_bot_token and cfg.telegram_secret_token:
        webhook_url = f"{cfg.webhook_host}{cfg.webhook_path}"
        try:
            await run_sync(get_bot().set_webhook, webhook_url, cfg.telegram_secret_token)
            registered = True
            logger.info(f"Telegram webhook registered: {webhook_url}")
        except TelegramApiError as e:
            logger.error(f"Failed to register Telegram webhook: {e}")

    yield

    logger.info("Shutting down")
    if registered:
        try:
            await run_sync(get_bot().delete_webhook)
        except TelegramApiError as e:
            logger.warning(f"Failed to delete Telegram webhook: {e}")
    if get_pipeline.cache_info().currsize:
        await run_sync(get_pipeline().close)


def create_app(cfg: AppConfig | None = None) -> FastAPI:
    cfg = cfg or load_config()
    app = FastAPI(title="Reel Relay", version=API_VERSION, lifespan=lifespan)
    app.state.config = cfg

    app.include_router(system_router, tags=["system"])
    app.include_router(build_webhook_router(cfg.webhook_path), tags=["webhook"])
    return app


app = create_app()
if __name__ == "__main__":
    import uvicorn
    app.state.config.validate_for_server()
    uvicorn.run(app, host="0.0.0.0", port=app.state.config.port)
