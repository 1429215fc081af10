"""Build a signed X-Telegram-Init-Data value for local testing of the API.

Usage:
  python scripts/make_init_data.py --user-id 42 --first-name Alice
  curl -H "X-Telegram-Init-Data: $(python scripts/make_init_data.py --user-id 42)" \
       http://localhost:8000/api/user
"""

import argparse
import json
import os
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.services.init_data import sign_init_data  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sign Telegram WebApp init data with a bot token.")
    parser.add_argument("--user-id", type=int, required=True)
    parser.add_argument("--first-name", default="Test")
    parser.add_argument("--last-name", default=None)
    parser.add_argument("--username", default=None)
    parser.add_argument("--language-code", default="ru")
    parser.add_argument("--auth-date", type=int, default=None, help="Unix time; defaults to now.")
    parser.add_argument(
        "--bot-token",
        default=os.getenv("BOT_TOKEN", ""),
        help="Defaults to the BOT_TOKEN environment variable.",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    if not args.bot_token:
        print("BOT_TOKEN is not set; pass --bot-token", file=sys.stderr)
        return 1

    user = {"id": args.user_id, "first_name": args.first_name, "language_code": args.language_code}
    if args.last_name:
        user["last_name"] = args.last_name
    if args.username:
        user["username"] = args.username

    fields = {
        "auth_date": str(args.auth_date or int(time.time())),
        "query_id": f"local-{args.user_id}",
        "user": json.dumps(user, separators=(",", ":"), ensure_ascii=False),
    }
    print(sign_init_data(fields, args.bot_token))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
