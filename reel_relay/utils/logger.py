"""
日志模块
"""
import logging
import os
import sys
import threading


_request_ctx = threading.local()

# 日志文件默认存放在项目根目录的 logs/ 目录下
LOGS_DIR = os.environ.get("REEL_RELAY_LOG_DIR") or os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))), "logs"
)
os.makedirs(LOGS_DIR, exist_ok=True)
DEFAULT_LOG_FILE = os.path.join(LOGS_DIR, "reel_relay.log")

LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_log_level_from_env() -> int:
    """Get log level from REEL_RELAY_LOG_LEVEL or LOG_LEVEL."""
    level_str = os.environ.get("REEL_RELAY_LOG_LEVEL") or os.environ.get("LOG_LEVEL") or "INFO"
    return LOG_LEVEL_MAP.get(level_str.upper(), logging.INFO)


def set_request_id(request_id: int | str | None) -> None:
    """Tag log records emitted by the current thread with a request id."""
    if request_id is None:
        clear_request_id()
        return
    _request_ctx.request_id = str(request_id)


def clear_request_id() -> None:
    if hasattr(_request_ctx, "request_id"):
        delattr(_request_ctx, "request_id")


def get_request_id() -> str | None:
    return getattr(_request_ctx, "request_id", None)


class InjectRequestIdFilter(logging.Filter):
    """Injects request_id into LogRecord (thread-local), defaulting to '-'"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = getattr(_request_ctx, "request_id", "-")
        return True


def setup_logger(name="reel_relay", level=None, log_file=None):
    """配置并返回日志记录器

    Args:
        name: Logger name
        level: Log level (if None, read from environment variable)
        log_file: Log file path (if None, use default in logs/ directory)
    """
    if level is None:
        level = get_log_level_from_env()

    if log_file is None:
        log_file = DEFAULT_LOG_FILE

    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not any(isinstance(f, InjectRequestIdFilter) for f in logger.filters):
        logger.addFilter(InjectRequestIdFilter())

    # 防止重复添加处理器
    if logger.hasHandlers():
        return logger

    formatter = logging.Formatter(
        "%(asctime)s - %(levelname)s - [%(request_id)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


logger = setup_logger()
