from __future__ import annotations

import json
import os
import tempfile
import threading
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any


CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

_config_lock = threading.Lock()

# Telegram only accepts these story lifetimes (6h, 12h, 24h, 48h). 0 = server default.
VALID_STORY_PERIODS = {0, 6 * 3600, 12 * 3600, 24 * 3600, 48 * 3600}

MIN_TIMEOUT_SEC = 5.0

# Environment overrides: config field -> env names (first non-empty wins)
ENV_OVERRIDES: dict[str, tuple[str, ...]] = {
    "telegram_bot_token": ("TELEGRAM_BOT_TOKEN",),
    "telegram_secret_token": ("TELEGRAM_SECRET_TOKEN",),
    "webhook_host": ("WEBHOOK_HOST",),
    "webhook_path": ("WEBHOOK_PATH",),
    "port": ("PORT",),
    "telegram_target_chat_id": ("TELEGRAM_TARGET_CHAT_ID",),
    "telegram_review_chat_id": ("TELEGRAM_REVIEW_CHAT_ID",),
    "telegram_app_id": ("TELEGRAM_APP_ID",),
    "telegram_app_hash": ("TELEGRAM_APP_HASH",),
    "telegram_bot_phone": ("TELEGRAM_BOT_PHONE",),
    "telegram_session": ("TELEGRAM_BOT_SESSION",),
    "instagram_session_id": ("INSTAGRAM_SESSION_ID",),
    "ytdlp_binary": ("YTDLP_PATH", "YTDLP_BINARY"),
    "ytdlp_cookies_from_browser": ("YTDLP_COOKIES_BROWSER",),
    "ytdlp_cookies_file": ("YTDLP_COOKIES_FILE", "YTDLP_COOKIES"),
    "story_publish_enabled": ("STORY_PUBLISH_ENABLED",),
    "story_period_sec": ("STORY_PERIOD_SEC",),
    "media_temp_dir": ("MEDIA_TEMP_DIR",),
}


@dataclass(frozen=True)
class MtProtoCredentials:
    app_id: int
    app_hash: str
    session: str
    bot_phone: str = ""


def _as_bool(value: object, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value or "").strip().lower()
    if text in {"1", "true", "yes", "on"}:
        return True
    if text in {"0", "false", "no", "off"}:
        return False
    return default


def _as_int(value: object, default: int) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def _as_float(value: object, default: float) -> float:
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return default


@dataclass
class AppConfig:
    # --- Telegram Bot API ---
    telegram_bot_token: str = ""
    # Checked against X-Telegram-Bot-Api-Secret-Token on every webhook call
    telegram_secret_token: str = ""
    # Public base URL, e.g. https://relay.example.com
    webhook_host: str = ""
    webhook_path: str = "/telegram/webhook"
    port: int = 3000
    telegram_target_chat_id: str = ""
    # If empty, previews go to the target chat.
    telegram_review_chat_id: str = ""
    telegram_timeout_sec: float = 60.0

    # --- Telegram MTProto (optional, enables real stories) ---
    telegram_app_id: int = 0
    telegram_app_hash: str = ""
    telegram_bot_phone: str = ""
    # StringSession produced offline by scripts/export_session.py
    telegram_session: str = ""

    # --- Instagram / yt-dlp ---
    # Priority: session id -> browser cookie jar -> cookies file
    instagram_session_id: str = ""
    ytdlp_binary: str = "yt-dlp"
    ytdlp_cookies_from_browser: str = ""
    ytdlp_cookies_file: str = ""
    ytdlp_timeout_sec: float = 180.0

    # --- Pipeline ---
    # When off, the pipeline stops after sending the preview.
    story_publish_enabled: bool = True
    # 0 = let Telegram pick the default lifetime
    story_period_sec: int = 0
    # If empty, <system tmp>/insta-story-cache
    media_temp_dir: str = ""

    def __post_init__(self) -> None:
        self.port = _as_int(self.port, 3000)
        if not (0 < self.port < 65536):
            self.port = 3000

        path = str(self.webhook_path or "").strip() or "/telegram/webhook"
        self.webhook_path = path if path.startswith("/") else f"/{path}"
        self.webhook_host = str(self.webhook_host or "").strip().rstrip("/")

        self.telegram_target_chat_id = str(self.telegram_target_chat_id or "").strip()
        self.telegram_review_chat_id = str(self.telegram_review_chat_id or "").strip()

        self.telegram_app_id = _as_int(self.telegram_app_id, 0)
        self.ytdlp_binary = str(self.ytdlp_binary or "").strip() or "yt-dlp"

        self.story_publish_enabled = _as_bool(self.story_publish_enabled, True)
        self.story_period_sec = _as_int(self.story_period_sec, 0)
        if self.story_period_sec not in VALID_STORY_PERIODS:
            self.story_period_sec = 0

        self.telegram_timeout_sec = max(MIN_TIMEOUT_SEC, _as_float(self.telegram_timeout_sec, 60.0))
        self.ytdlp_timeout_sec = max(MIN_TIMEOUT_SEC, _as_float(self.ytdlp_timeout_sec, 180.0))

    @property
    def review_chat_id(self) -> str:
        return self.telegram_review_chat_id or self.telegram_target_chat_id

    @property
    def default_story_period(self) -> int | None:
        return self.story_period_sec or None

    def mtproto_credentials(self) -> MtProtoCredentials | None:
        """Credentials for the privileged publisher, or None when not configured."""
        if not (self.telegram_app_id and self.telegram_app_hash and self.telegram_session):
            return None
        return MtProtoCredentials(
            app_id=self.telegram_app_id,
            app_hash=self.telegram_app_hash,
            session=self.telegram_session,
            bot_phone=self.telegram_bot_phone,
        )

    def validate_for_server(self) -> None:
        missing = [
            name
            for name in (
                "telegram_bot_token",
                "telegram_secret_token",
                "webhook_host",
                "telegram_target_chat_id",
            )
            if not getattr(self, name)
        ]
        if missing:
            raise ValueError(f"Missing configuration: {', '.join(missing)}")

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for serialization."""
        return {k: v for k, v in self.__dict__.items()}


def apply_env_overrides(cfg: AppConfig, environ: dict[str, str] | None = None) -> AppConfig:
    env = os.environ if environ is None else environ
    for field_name, names in ENV_OVERRIDES.items():
        for name in names:
            value = env.get(name)
            if value is not None and value != "":
                setattr(cfg, field_name, value)
                break
    cfg.__post_init__()
    return cfg


def load_config(*, use_env: bool = True) -> AppConfig:
    cfg = AppConfig()
    data: dict[str, Any] = {}
    with _config_lock:
        if CONFIG_PATH.exists():
            try:
                data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                data = {}

    known = {f.name for f in fields(AppConfig)}
    if isinstance(data, dict):
        for k, v in data.items():
            if k in known:
                setattr(cfg, k, v)
    cfg.__post_init__()

    if use_env:
        apply_env_overrides(cfg)
    return cfg


def save_config(cfg: AppConfig) -> None:
    """Write config.json atomically (temp file + rename)."""
    payload = json.dumps(cfg.to_dict(), ensure_ascii=False, indent=4)
    with _config_lock:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".config-", suffix=".json", dir=str(CONFIG_PATH.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_path, CONFIG_PATH)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
