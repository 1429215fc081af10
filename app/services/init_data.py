"""Telegram WebApp init data signature check.

https://core.telegram.org/bots/webapps#validating-data-received-via-the-mini-app

Every failure raises the same ``Unauthenticated`` error so a caller cannot learn
which check rejected the payload.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from typing import Mapping, Optional
from urllib.parse import parse_qsl, urlencode

from pydantic import ValidationError

from ..core.errors import Unauthenticated
from ..schemas import TelegramIdentity

WEBAPP_DATA_KEY = b"WebAppData"
HASH_FIELD = "hash"
USER_FIELD = "user"


def parse_init_data(init_data: str) -> dict[str, str]:
    """Split the query string into decoded pairs. Raises ValueError on bad structure."""
    pairs = parse_qsl(init_data, keep_blank_values=True, strict_parsing=True)
    parsed: dict[str, str] = {}
    for key, value in pairs:
        if key in parsed:
            raise ValueError(f"duplicate field {key!r}")
        parsed[key] = value
    return parsed


def build_data_check_string(fields: Mapping[str, str]) -> str:
    return "\n".join(f"{key}={fields[key]}" for key in sorted(fields))


def _secret_key(bot_token: str) -> bytes:
    return hmac.new(WEBAPP_DATA_KEY, bot_token.encode("utf-8"), hashlib.sha256).digest()


def compute_hash(fields: Mapping[str, str], bot_token: str) -> str:
    check_string = build_data_check_string(fields)
    return hmac.new(
        _secret_key(bot_token), check_string.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def sign_init_data(fields: Mapping[str, str], bot_token: str) -> str:
    """Produce a signed init data string, the way the Telegram client does."""
    unsigned = {key: str(value) for key, value in fields.items() if key != HASH_FIELD}
    signed = dict(unsigned)
    signed[HASH_FIELD] = compute_hash(unsigned, bot_token)
    return urlencode(signed)


def verify_init_data(
    init_data: Optional[str],
    bot_token: str,
    max_age_seconds: int = 0,
    now: Optional[float] = None,
) -> TelegramIdentity:
    if not init_data or not bot_token:
        raise Unauthenticated()
    try:
        fields = parse_init_data(init_data)
    except ValueError:
        raise Unauthenticated() from None

    received_hash = fields.pop(HASH_FIELD, "")
    if not received_hash:
        raise Unauthenticated()

    expected_hash = compute_hash(fields, bot_token)
    if not hmac.compare_digest(expected_hash.encode("utf-8"), received_hash.encode("utf-8")):
        raise Unauthenticated()

    auth_date: Optional[int] = None
    raw_auth_date = fields.get("auth_date")
    if raw_auth_date:
        try:
            auth_date = int(raw_auth_date)
        except ValueError:
            raise Unauthenticated() from None
    if max_age_seconds > 0:
        current = time.time() if now is None else now
        if auth_date is None or current - auth_date > max_age_seconds:
            raise Unauthenticated()

    try:
        claim = json.loads(fields.get(USER_FIELD) or "")
    except json.JSONDecodeError:
        raise Unauthenticated() from None
    if not isinstance(claim, dict):
        raise Unauthenticated()
    try:
        return TelegramIdentity.model_validate({**claim, "auth_date": auth_date})
    except ValidationError:
        raise Unauthenticated() from None
