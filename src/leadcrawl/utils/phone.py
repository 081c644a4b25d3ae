"""Phone number normalization and fake-number detection."""

import re

_NON_DIGITS = re.compile(r"\D")
_SINGLE_DIGIT_RUN = re.compile(r"^(\d)\1{9}$")

# Sequential runs and well-known placeholder numbers
SEQUENTIAL_NUMBERS = frozenset({"1234567890", "0123456789", "9876543210", "0987654321"})
KNOWN_FAKE_NUMBERS = frozenset({
    "0000000000", "1111111111", "2222222222", "5555555555",
    "1234567890", "0987654321", "1231231234", "9999999999",
})


def normalize_phone(phone: str) -> str:
    """Reduce a phone number to its digits, dropping a leading US country code.

    >>> normalize_phone("+1 (415) 555-1234")
    '4155551234'
    """
    digits = _NON_DIGITS.sub("", str(phone))
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    return digits


def is_fake_phone(phone: str) -> bool:
    """Check whether a normalized 10-digit number looks fake or invalid.

    Rejects wrong lengths, repeated digits (including 9 of 10 the same),
    repeated 2- and 3-digit patterns, sequential runs, known test numbers,
    and area codes starting with 0 or 1.
    """
    if len(phone) != 10 or not phone.isdigit():
        return True

    if _SINGLE_DIGIT_RUN.match(phone):
        return True

    if max(phone.count(d) for d in set(phone)) >= 9:
        return True

    # 7037037037
    first3 = phone[:3]
    if phone == first3 * 3 + first3[0]:
        return True

    # 1212121212
    if phone == phone[:2] * 5:
        return True

    if phone in SEQUENTIAL_NUMBERS or phone in KNOWN_FAKE_NUMBERS:
        return True

    # Invalid US area codes
    return phone[0] in "01"
