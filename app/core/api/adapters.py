"""Response adapters

The platform endpoints return the same information in several shapes: bare
objects, objects wrapped in {"data": ...}, and lists wrapped once or twice.
Every endpoint response passes through one of these functions so the rest of
the service only sees canonical values.
"""

import logging
import math
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Probe order for balance fields, first non-null wins
BALANCE_FIELDS = (
    ("data", "total_balance"),
    ("total_balance",),
    ("data", "balance"),
    ("balance",),
    ("data", "amount"),
    ("amount",),
)

SUCCESS_STATUS_CODES = {200, 201}


def _probe(response: Any, path: tuple) -> Any:
    current = response
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def to_number(value: Any) -> Optional[float]:
    """Coerce a balance-like value to a number, None when not numeric"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            # Number("") would be 0, but a blank field carries no balance
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def extract_balance(response: Any) -> Optional[float]:
    """Resolve the redeemable balance from any balance endpoint response

    An explicit 0 is a valid balance and wins over lower-priority fields.
    """
    if not isinstance(response, dict):
        return None
    for path in BALANCE_FIELDS:
        value = _probe(response, path)
        if value is not None:
            return to_number(value)
    return None


def _as_list(value: Any) -> Optional[List[Dict[str, Any]]]:
    if isinstance(value, list):
        return [item for item in value if isinstance(item, dict)]
    return None


def extract_cards(response: Any) -> List[Dict[str, Any]]:
    """Card records from a recipient-amount or balance response"""
    if isinstance(response, list):
        return _as_list(response)
    if not isinstance(response, dict):
        return []
    for path in (("data", "cards"), ("cards",), ("data",)):
        cards = _as_list(_probe(response, path))
        if cards is not None:
            return cards
    return []


def first_card_id(response: Any) -> Optional[int]:
    """card_id of the first card in a recipient-amount response"""
    cards = extract_cards(response)
    if not cards:
        return None
    card_id = cards[0].get("card_id")
    return card_id if card_id is not None else None


def extract_vendors(response: Any) -> List[Dict[str, Any]]:
    """Vendor records from the public vendor list"""
    if isinstance(response, list):
        return _as_list(response)
    if not isinstance(response, dict):
        return []
    for path in (("data", "data"), ("data", "vendors"), ("data",), ("vendors",)):
        vendors = _as_list(_probe(response, path))
        if vendors is not None:
            return vendors
    return []


def extract_account_name(response: Any) -> Optional[str]:
    """Resolved wallet holder name from the mobile money validation response"""
    if not isinstance(response, dict):
        return None
    for path in (
        ("data", "vendor_name"),
        ("data", "account_name"),
        ("vendor_name",),
        ("account_name",),
    ):
        name = _probe(response, path)
        if isinstance(name, str) and name.strip():
            return name.strip()
    return None


def is_success(response: Any) -> bool:
    """Whether a mutation response reports success"""
    if not isinstance(response, dict):
        return False
    if response.get("status") == "success":
        return True
    status_code = response.get("statusCode")
    try:
        return int(status_code) in SUCCESS_STATUS_CODES
    except (TypeError, ValueError):
        return False


def extract_message(response: Any, default: str = "") -> str:
    """Human readable message carried by a response"""
    if isinstance(response, dict):
        for path in (("message",), ("data", "message"), ("error", "message")):
            message = _probe(response, path)
            if isinstance(message, str) and message:
                return message
    return default
