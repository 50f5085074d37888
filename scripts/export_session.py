"""
Interactive one-time MTProto login.

Run this on a machine where you can type the login code, then put the printed
string into TELEGRAM_BOT_SESSION. The relay itself never logs in interactively.

    python scripts/export_session.py --app-id 12345 --app-hash abcdef --phone +15550001111
"""
import argparse
import os
import sys

from telethon.sessions import StringSession
from telethon.sync import TelegramClient


def main():
    parser = argparse.ArgumentParser(description="Export a Telethon StringSession for Reel Relay")
    parser.add_argument("--app-id", type=int, default=int(os.environ.get("TELEGRAM_APP_ID") or 0))
    parser.add_argument("--app-hash", default=os.environ.get("TELEGRAM_APP_HASH", ""))
    parser.add_argument("--phone", default=os.environ.get("TELEGRAM_BOT_PHONE", ""))
    args = parser.parse_args()

    if not args.app_id or not args.app_hash:
        print("--app-id and --app-hash are required (or TELEGRAM_APP_ID / TELEGRAM_APP_HASH)")
        sys.exit(1)

    client = TelegramClient(StringSession(), args.app_id, args.app_hash)
    if args.phone:
        client.start(phone=args.phone)
    else:
        client.start()
    try:
        me = client.get_me()
        print(f"Logged in as {getattr(me, 'username', None) or me.id}")
        print("\nTELEGRAM_BOT_SESSION=" + client.session.save())
    finally:
        client.disconnect()


if __name__ == "__main__":
    main()
