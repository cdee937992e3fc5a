"""
utils/time_utils.py

Purpose: Time and expiry helpers

- Millisecond timestamps for verification records
- Code expiry calculation
"""

import time


def now_ms() -> int:
    """
    Current time as integer milliseconds since the epoch.
    """
    return int(time.time() * 1000)


def calculate_code_expiry(created_at_ms: int, validity_minutes: int = 5) -> int:
    """
    Calculates verification code expiry timestamp.
    """
    return created_at_ms + validity_minutes * 60 * 1000


def format_timestamp_ms(ts_ms: int) -> str:
    """
    Formats a millisecond timestamp for log messages.
    """
    return time.strftime("%Y-%m-%d %H:%M:%S", time.gmtime(ts_ms / 1000))
