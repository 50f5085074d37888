"""
Centralized dependency injection for FastAPI routes.

Singletons (config, bot client, pipeline, update router) are created lazily
here and injected via Depends(), so tests can swap them with
app.dependency_overrides[get_xxx] = lambda: mock_instance.
"""
from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from api.bot import UpdateRouter
    from reel_relay.pipeline import PublishPipeline
    from reel_relay.utils.config import AppConfig
    from reel_relay.utils.telegram import TelegramBot


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    from reel_relay.utils.config import load_config
    return load_config()


@lru_cache(maxsize=1)
def get_bot() -> TelegramBot:
    from reel_relay.utils.telegram import TelegramBot
    cfg = get_config()
    return TelegramBot(cfg.telegram_bot_token, timeout=cfg.telegram_timeout_sec)


@lru_cache(maxsize=1)
def get_pipeline() -> PublishPipeline:
    from reel_relay.pipeline import build_pipeline
    return build_pipeline(get_config(), get_bot())


@lru_cache(maxsize=1)
def get_update_router() -> UpdateRouter:
    from api.bot import UpdateRouter
    return UpdateRouter(get_pipeline(), get_bot())
