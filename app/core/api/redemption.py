"""Redemption operations using pure functions

One function per platform endpoint the redemption workflow consumes. Each
returns the decoded response body and lets ServiceException propagate to the
workflow, which converts it into session state.
"""
import logging
from typing import Any, Dict, Optional

from core.error.exceptions import ConfigurationException

from .base import make_api_request

logger = logging.getLogger(__name__)

RECIPIENT_AMOUNT_ENDPOINTS = {
    "dashgo": "recipient_amount_dashgo",
    "dashpro": "recipient_amount_dashpro",
    "dashx": "recipient_amount_dashx",
    "dashpass": "recipient_amount_dashpass",
}


def _auth_headers(token: Optional[str]) -> Optional[Dict[str, str]]:
    return {"Authorization": f"Bearer {token}"} if token else None


def validate_vendor_mobile_money(phone_number: str, provider: str) -> Dict[str, Any]:
    """Resolve the wallet holder behind a vendor mobile money number"""
    logger.info(f"Validating vendor mobile money number with provider {provider}")
    return make_api_request(
        "validate_vendor_mobile_money",
        payload={"phone_number": phone_number, "provider": provider}
    )


def search_vendors(search: str, limit: int = 20) -> Dict[str, Any]:
    """Search the public vendor list"""
    logger.info(f"Searching vendors: {search!r}")
    return make_api_request(
        "public_vendors",
        params={"search": search, "limit": limit}
    )


def get_recipient_amount(
    card_type: str,
    phone_number: str,
    branch_id: Optional[int] = None,
    vendor_id: Optional[int] = None,
    token: Optional[str] = None
) -> Dict[str, Any]:
    """Redeemable total and card records for one card type

    DashPro is scoped by phone number only, the other types may be narrowed to
    a vendor and branch.
    """
    endpoint = RECIPIENT_AMOUNT_ENDPOINTS.get(card_type)
    if not endpoint:
        raise ConfigurationException(
            message=f"No recipient amount endpoint for card type: {card_type}",
            code="INVALID_CARD_TYPE",
            service="redemption_api",
            action="get_recipient_amount"
        )

    params: Dict[str, Any] = {"phone_number": phone_number}
    if card_type != "dashpro":
        params.update({"branch_id": branch_id, "vendor_id": vendor_id})

    logger.info(f"Fetching {card_type} recipient amount")
    return make_api_request(endpoint, params=params, headers=_auth_headers(token))


def get_card_balance(phone_number: str, card_type: str, token: Optional[str] = None) -> Dict[str, Any]:
    """Direct balance lookup used for DashX and DashPass cards"""
    logger.info(f"Fetching card balance for {card_type}")
    return make_api_request(
        "card_balance",
        params={"phone_number": phone_number, "card_type": card_type},
        headers=_auth_headers(token)
    )


def process_cards_redemption(payload: Dict[str, Any], token: Optional[str] = None) -> Dict[str, Any]:
    """Submit a card redemption"""
    logger.info(f"Submitting {payload.get('card_type')} redemption")
    return make_api_request("cards_redemption", payload=payload, headers=_auth_headers(token))


def rate_card(card_id: int, rating: int, token: Optional[str] = None) -> Dict[str, Any]:
    """Rate a redeemed card"""
    logger.info(f"Rating card {card_id}: {rating}")
    return make_api_request(
        "rate_card",
        payload={"card_id": card_id, "rating": rating},
        headers=_auth_headers(token)
    )
