"""
Reel Relay CLI - 把一个 Instagram 链接转发为 Telegram 快拍
"""
import argparse
import sys

from reel_relay.errors import RelayError
from reel_relay.models import MediaType, PublishCommand
from reel_relay.pipeline import build_pipeline
from reel_relay.utils.config import load_config
from reel_relay.utils.links import infer_media_type
from reel_relay.utils.logger import logger
from reel_relay.utils.telegram import TelegramBot


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Reel Relay: mirror an Instagram reel/story to Telegram stories"
    )

    parser.add_argument(
        "--url",
        type=str,
        help="Instagram reel / story / post URL"
    )
    parser.add_argument(
        "--type",
        choices=[t.value for t in MediaType],
        default=None,
        help="媒体类型 (默认根据 URL 推断)"
    )
    parser.add_argument(
        "--caption",
        type=str,
        default=None,
        help="覆盖原始标题"
    )
    parser.add_argument(
        "--expires",
        type=int,
        default=None,
        help="快拍有效期（秒），例如 86400"
    )
    parser.add_argument(
        "--no-publish",
        action="store_true",
        help="只发送预览，不发布快拍"
    )
    parser.add_argument(
        "--check-bot",
        action="store_true",
        help="检查 Bot Token 是否有效后退出"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="显示详细日志"
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logger.setLevel("DEBUG")

    cfg = load_config()

    if args.check_bot:
        ok, info = TelegramBot(cfg.telegram_bot_token, timeout=cfg.telegram_timeout_sec).test_connection()
        if ok:
            logger.info(f"Bot token OK: @{info}")
            sys.exit(0)
        logger.error(f"Bot token check failed: {info}")
        sys.exit(1)

    if not args.url:
        parser.error("--url is required")

    if args.no_publish:
        cfg.story_publish_enabled = False

    media_type = MediaType(args.type) if args.type else infer_media_type(args.url)
    logger.info(f"Target URL: {args.url} ({media_type.value})")

    pipeline = build_pipeline(cfg)
    try:
        pipeline.execute(
            PublishCommand(
                url=args.url,
                media_type=media_type,
                caption_override=args.caption,
                expires_in_seconds=args.expires,
            )
        )
    except KeyboardInterrupt:
        logger.info("\nInterrupted by user")
        sys.exit(0)
    except RelayError as e:
        logger.error(f"Failed to relay {args.url}: {e}")
        sys.exit(1)
    except Exception as e:
        logger.critical(f"Unexpected error: {e}")
        sys.exit(1)
    finally:
        pipeline.close()


if __name__ == "__main__":
    main()
