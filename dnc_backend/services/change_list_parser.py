"""
FTC Change-List Parser

Extracts phone records from a change-list file. Files are line oriented:
each line is either a bare phone number or a CSV row whose first field is the
phone number.

Per line:
- trim, skip if empty
- keep the first comma-separated field
- strip non-digits
- accept 10 digits, or 11 digits starting with '1' (the '1' is dropped)
- drop the record if an area-code allow-list is given and does not contain it

Rejected lines are dropped silently. Records keep file order and are not
deduplicated; registry upserts make duplicates harmless.
"""

import re
from typing import Iterable, List, Optional

from dnc_backend.models.schemas import PhoneRecord
from dnc_backend.services.phone import AREA_CODE_LENGTH, PHONE_KEY_LENGTH, strip_non_digits


_LINE_BREAK = re.compile(r'\r?\n')


def parse_phone_line(line: str) -> Optional[str]:
    """
    Extract a normalized phone number from one change-list line.

    Args:
        line: Raw line text.

    Returns:
        Optional[str]: 10-digit phone number, or None if the line holds none.
    """
    line = line.strip()
    if not line:
        return None

    if ',' in line:
        line = line.split(',', 1)[0].strip()

    digits = strip_non_digits(line)

    if len(digits) == PHONE_KEY_LENGTH:
        return digits
    if len(digits) == PHONE_KEY_LENGTH + 1 and digits[0] == '1':
        return digits[1:]
    return None


def parse_change_list(text: str, area_codes: Optional[Iterable[str]] = None) -> List[PhoneRecord]:
    """
    Parse a change-list file into phone records.

    Args:
        text: File contents.
        area_codes: Allowed area codes; empty or None allows every area code.

    Returns:
        List[PhoneRecord]: Accepted records in file order.

    Example:
        >>> parse_change_list("15551234567,UT", ["555"])
        [PhoneRecord(phone_number='5551234567', area_code='555')]
        >>> parse_change_list("15551234567,UT", ["999"])
        []
    """
    allowed = set(area_codes or [])
    records: List[PhoneRecord] = []

    for line in _LINE_BREAK.split(text):
        phone = parse_phone_line(line)
        if phone is None:
            continue

        area_code = phone[:AREA_CODE_LENGTH]
        if allowed and area_code not in allowed:
            continue

        records.append(PhoneRecord(phone_number=phone, area_code=area_code))

    return records


def decode_change_list(content: bytes) -> str:
    """Decode file bytes as UTF-8, dropping a byte order mark if present."""
    return content.decode('utf-8-sig', errors='replace')


__all__ = [
    'parse_phone_line',
    'parse_change_list',
    'decode_change_list',
]
