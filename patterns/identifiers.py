"""Identifier generation for books, reviews and cart line items.

Ids are millisecond timestamps, bumped forward when two calls land in the
same millisecond so that they stay unique and sortable within a process.
"""
from __future__ import annotations
import secrets
import string
import threading
import time

_BASE36 = string.digits + string.ascii_lowercase

_lock = threading.Lock()
_last_ms = 0


def timestamp_id() -> str:
    """Numeric-string id, strictly increasing within the process."""
    global _last_ms
    with _lock:
        now = time.time_ns() // 1_000_000
        _last_ms = max(now, _last_ms + 1)
        return str(_last_ms)


def random_suffix(length: int = 9) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def review_id() -> str:
    return f"review-{timestamp_id()}"


def cart_item_id() -> str:
    return f"cart-{timestamp_id()}-{random_suffix()}"
