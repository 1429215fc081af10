from __future__ import annotations

from typing import Any, Optional

_SUFFIXES = (
    (1_000_000_000, "B"),
    (1_000_000, "M"),
    (1_000, "K"),
)


def format_number(value: Any) -> str:
    try:
        number = int(value or 0)
    except (TypeError, ValueError):
        return "0"
    for threshold, suffix in _SUFFIXES:
        if number >= threshold:
            return f"{number / threshold:.1f}{suffix}"
    return str(number)


def rating_percent(up_votes: Any, down_votes: Any) -> Optional[int]:
    up = int(up_votes or 0)
    down = int(down_votes or 0)
    if up + down <= 0:
        return None
    return round(up / (up + down) * 100)
