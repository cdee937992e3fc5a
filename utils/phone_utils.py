"""
utils/phone_utils.py

Purpose: Phone number normalization

- Converts user-entered numbers to +<digits> international form
- No length or country-code validation; the identity directory rejects bad numbers

Known simplification: a number starting with 1 is assumed to already carry
its country code, and a leading 0 is treated as a local trunk prefix and
dropped. Both guesses are wrong for some countries.
"""

import re

NON_DIGITS = re.compile(r"\D")


def has_digits(phone_number: str) -> bool:
    return bool(phone_number) and bool(NON_DIGITS.sub("", phone_number))


def normalize_phone_number(phone_number: str) -> str:
    """
    Normalizes a phone number to a leading "+" followed by digits.

    Rules, in order:
    1. Strip every non-digit character
    2. Digits starting with 1 -> "+" + digits
    3. Digits starting with 0 -> drop leading zeros, "+" + rest
    4. Input without a leading "+" -> "+" + digits
    5. Input already international -> "+" + digits

    Args:
        phone_number: Raw user input, e.g. "(071) 234-5678"

    Returns:
        Normalized number, e.g. "+712345678"

    Example:
        >>> normalize_phone_number("0712345678")
        '+712345678'
        >>> normalize_phone_number("+44 20 7946 0958")
        '+442079460958'
    """
    digits = NON_DIGITS.sub("", phone_number)

    # Rules 2, 4 and 5 all reduce to "+" + digits
    if digits.startswith("0"):
        # Strip all zeros, not one: "00447..." must normalize in one pass to stay idempotent
        return f"+{digits.lstrip('0')}"

    return f"+{digits}"
