"""
Phone Number Normalization Service.

Canonicalizes raw phone strings to the 10-digit key used by every registry
table, plus small helpers for area codes and display formatting.

Rules:
- Every non-digit character is removed
- A single leading country code '1' is dropped when 11 digits remain
- Only exactly 10 digits form a valid key; normalization itself never fails

Usage:
    from dnc_backend.services.phone import normalize_phone_number, is_valid_phone_key

    key = normalize_phone_number("+1 (801) 555-1234")  # "8015551234"
    if is_valid_phone_key(key):
        ...
"""

import re
from typing import Optional, Union

from dnc_backend.models.enums import PhoneDisplayStyle


# =============================================================================
# Constants
# =============================================================================

PHONE_KEY_LENGTH: int = 10

AREA_CODE_LENGTH: int = 3

TOLL_FREE_AREA_CODES = frozenset({'800', '833', '844', '855', '866', '877', '888'})

_NON_DIGIT = re.compile(r'\D')


# =============================================================================
# Normalization
# =============================================================================

def strip_non_digits(value: str) -> str:
    """Remove every character that is not an ASCII digit."""
    return _NON_DIGIT.sub('', value or '')


def normalize_phone_number(raw: str) -> str:
    """
    Normalize a raw phone string to digits, dropping a US country code.

    The result is not validated; callers use is_valid_phone_key() before
    treating it as a lookup key.

    Args:
        raw: Phone number in any format (dashes, parentheses, spaces, +1).

    Returns:
        str: Digit-only string, 10 digits for any well-formed US number.

    Example:
        >>> normalize_phone_number("+1 (555) 123-4567")
        '5551234567'
        >>> normalize_phone_number("123")
        '123'
    """
    digits = strip_non_digits(raw)

    if len(digits) == PHONE_KEY_LENGTH + 1 and digits[0] == '1':
        return digits[1:]

    return digits


def is_valid_phone_key(phone: str) -> bool:
    """Return True when phone is exactly 10 ASCII digits."""
    return len(phone) == PHONE_KEY_LENGTH and phone.isascii() and phone.isdigit()


def is_valid_phone(raw: str) -> bool:
    """Return True when raw normalizes to a valid 10-digit key."""
    if not raw or not isinstance(raw, str):
        return False
    return is_valid_phone_key(normalize_phone_number(raw))


# =============================================================================
# Derived Attributes
# =============================================================================

def get_area_code(phone: str) -> Optional[str]:
    """
    Extract the 3-digit area code from a phone number.

    Args:
        phone: Normalized or formatted phone number.

    Returns:
        Optional[str]: Area code, or None when the number is invalid.
    """
    normalized = normalize_phone_number(phone)
    if not is_valid_phone_key(normalized):
        return None
    return normalized[:AREA_CODE_LENGTH]


def is_toll_free(phone: str) -> bool:
    """Return True for numbers in a toll-free area code (800, 833, ...)."""
    return get_area_code(phone) in TOLL_FREE_AREA_CODES


def format_phone_display(
    phone: str,
    style: Union[PhoneDisplayStyle, str] = PhoneDisplayStyle.DASHED
) -> str:
    """
    Format a phone number for display.

    Numbers that do not normalize to 10 digits are returned unchanged.

    Args:
        phone: Phone number in any format.
        style: One of dashed (801-555-1234), parentheses ((801) 555-1234)
            or dots (801.555.1234).

    Returns:
        str: Formatted phone number.
    """
    normalized = normalize_phone_number(phone)
    if not is_valid_phone_key(normalized):
        return phone

    area_code = normalized[:3]
    exchange = normalized[3:6]
    subscriber = normalized[6:]

    style = PhoneDisplayStyle(style)
    if style == PhoneDisplayStyle.PARENTHESES:
        return f"({area_code}) {exchange}-{subscriber}"
    if style == PhoneDisplayStyle.DOTS:
        return f"{area_code}.{exchange}.{subscriber}"
    return f"{area_code}-{exchange}-{subscriber}"


__all__ = [
    # Constants
    'PHONE_KEY_LENGTH',
    'AREA_CODE_LENGTH',
    'TOLL_FREE_AREA_CODES',
    # Normalization
    'strip_non_digits',
    'normalize_phone_number',
    'is_valid_phone_key',
    'is_valid_phone',
    # Derived attributes
    'get_area_code',
    'is_toll_free',
    'format_phone_display',
]
