"""Ghanaian phone number utilities

Numbers arrive as +233551234567, 233551234567, 0551234567 or 551234567, with
or without separators. Provider detection works on the local format.
"""
import re
from typing import Optional

COUNTRY_CODE = "233"

# Minimum digits before a vendor mobile money number is validated
MIN_VENDOR_NUMBER_DIGITS = 9

# Minimum digits before a guest phone number is used for balance queries
MIN_GUEST_PHONE_DIGITS = 10

PROVIDER_PREFIXES = {
    "mtn": ("024", "054", "055", "059", "056"),
    "vodafone": ("020", "050"),
    "airteltigo": ("027", "057", "026", "028", "029"),
}

_PREFIX_TO_PROVIDER = {
    prefix: provider
    for provider, prefixes in PROVIDER_PREFIXES.items()
    for prefix in prefixes
}


def digits_only(value: Optional[str]) -> str:
    """Strip everything but digits"""
    return re.sub(r"\D", "", value or "")


def to_local(phone_number: str) -> str:
    """Local format with a leading 0"""
    digits = digits_only(phone_number)
    if not digits:
        return ""
    if digits.startswith(COUNTRY_CODE):
        return "0" + digits[len(COUNTRY_CODE):]
    if digits.startswith("0"):
        return digits
    return "0" + digits


def to_international(phone_number: str) -> str:
    """International format without the plus sign, e.g. 233551234567"""
    local = to_local(phone_number)
    if not local:
        return ""
    return COUNTRY_CODE + local[1:]


def detect_provider(phone_number: str) -> Optional[str]:
    """Mobile money provider for a number, None when the prefix is unknown"""
    local = to_local(phone_number)
    if len(local) < 3:
        return None
    return _PREFIX_TO_PROVIDER.get(local[:3])
