"""Values derived from RedemptionState for display and validation"""
import math
from typing import Any, Dict, List, Optional

from core.api.adapters import extract_cards

from .balance import source_data, usable_phone
from .types import AmountStatus, CardType, RedemptionMethod, VendorCard
from .vendors import filter_cards, normalize_card


def parse_amount(value: Optional[str]) -> Optional[float]:
    """Amount typed by the user, None when it is not a finite number"""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        amount = float(text)
    except ValueError:
        return None
    if math.isnan(amount) or math.isinf(amount):
        return None
    return amount


def enters_amount(state) -> bool:
    """Whether the current selection redeems a typed amount"""
    if state.method == RedemptionMethod.VENDOR_MOBILE_MONEY:
        return True
    return state.card_type in (CardType.DASHGO, CardType.DASHPRO)


def amount_status(state) -> AmountStatus:
    """Feedback for the amount field

    An explicit balance of 0 makes every positive amount insufficient.
    """
    if not str(state.amount or "").strip():
        return AmountStatus.EMPTY
    amount = parse_amount(state.amount)
    if amount is None or amount <= 0:
        return AmountStatus.INVALID
    balance = state.balance.balance
    if balance is not None and amount > balance:
        return AmountStatus.INSUFFICIENT
    return AmountStatus.VALID


def available_cards(state) -> List[VendorCard]:
    """Concrete cards offered for the chosen DashX or DashPass type

    Vendor cards come first, then cards the recipient-amount query returned,
    deduplicated by card_id. An empty list means "no cards available".
    """
    card_type = state.card_type
    if card_type is None or not card_type.requires_card:
        return []

    cards = list(state.vendor_cards)
    for raw in extract_cards(source_data(state, card_type)):
        card = normalize_card(raw)
        if card is not None:
            cards.append(card)

    return filter_cards(cards, card_type, state.selected_branch_id)


def vendor_display_name(state) -> str:
    if state.method == RedemptionMethod.VENDOR_MOBILE_MONEY:
        return state.vendor_validated_name or ""
    if state.vendor is not None:
        return state.vendor.vendor_name
    return ""


def redemption_summary(state) -> Optional[Dict[str, Any]]:
    """What was redeemed, available once the redemption succeeded"""
    if state.redeemed_amount is None and state.redeemed_card_id is None:
        return None

    balance = state.balance.balance
    amount = state.redeemed_amount
    remaining = None
    if balance is not None and amount is not None:
        remaining = round(balance - amount, 2)

    return {
        "amount": amount,
        "vendor_name": vendor_display_name(state),
        "card_type": state.card_type.label if state.card_type else CardType.DASHPRO.label,
        "card_id": state.redeemed_card_id,
        "remaining_balance": remaining,
        "user_type": "registered" if state.auth_phone else "guest",
        "phone_number": usable_phone(state),
    }
