"""Balance resolver

Decides which balance source answers for the current selection and turns its
last response into a BalanceState. Both functions read the full state, so the
balance is always recomputed from scratch rather than patched.

Sources:
- dashgo, dashpro, dashx, dashpass: recipient-amount queries, one per card type
- card_balance: direct lookup for a selected DashX or DashPass card
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from core.api.adapters import extract_balance

from .phone import MIN_GUEST_PHONE_DIGITS, digits_only, to_international
from .types import BalanceState, CardType, RedemptionMethod

logger = logging.getLogger(__name__)

CARD_BALANCE_SOURCE = "card_balance"


@dataclass(frozen=True)
class SourceRequest:
    """A balance source and the parameters it must be queried with"""
    name: str
    params: Dict[str, Any]

    @property
    def key(self) -> str:
        return json.dumps(self.params, sort_keys=True)

    @property
    def card_type(self) -> Optional[CardType]:
        if self.name == CARD_BALANCE_SOURCE:
            return CardType.parse(self.params.get("card_type"))
        return CardType.parse(self.name)


def usable_phone(state) -> Optional[str]:
    """Phone the balance queries and redemption are made for

    The authenticated user's phone wins. A guest phone counts once it has
    enough digits and is sent in international format.
    """
    if state.auth_phone:
        return state.auth_phone
    if len(digits_only(state.guest_phone)) >= MIN_GUEST_PHONE_DIGITS:
        return to_international(state.guest_phone)
    return None


def selected_branch_id(state) -> Optional[int]:
    if state.selected_branch_id is not None:
        return state.selected_branch_id
    if state.selected_card is not None:
        return state.selected_card.branch_id
    return None


def amount_query_request(state, card_type: CardType) -> Optional[SourceRequest]:
    """Recipient-amount query for one card type, None without a usable phone"""
    phone = usable_phone(state)
    if phone is None:
        return None
    params: Dict[str, Any] = {"phone_number": phone}
    if card_type != CardType.DASHPRO:
        params["branch_id"] = selected_branch_id(state)
        params["vendor_id"] = state.vendor.vendor_id if state.vendor else None
    return SourceRequest(name=card_type.value, params=params)


def active_request(state) -> Optional[SourceRequest]:
    """Source that answers for the current selection, in priority order"""
    phone = usable_phone(state)
    if phone is None:
        return None

    if state.method == RedemptionMethod.VENDOR_MOBILE_MONEY:
        # Vendor mobile money redeems DashPro only
        return amount_query_request(state, CardType.DASHPRO)

    if state.method != RedemptionMethod.VENDOR_ID:
        return None

    if state.selected_card is not None:
        card_type = CardType.parse(state.selected_card.card_type)
        if card_type in (CardType.DASHGO, CardType.DASHPRO):
            return amount_query_request(state, card_type)
        return SourceRequest(
            name=CARD_BALANCE_SOURCE,
            params={
                "phone_number": phone,
                "card_type": card_type.label if card_type else state.selected_card.card_type
            }
        )

    if state.card_type is not None:
        return amount_query_request(state, state.card_type)

    return None


def resolve_balance(state) -> BalanceState:
    """Normalized balance for the current selection"""
    request = active_request(state)
    if request is None:
        return BalanceState()

    entry = state.sources.get(request.name)
    if entry is None or entry.key != request.key or entry.loading:
        return BalanceState(loading=True)

    if entry.error is not None:
        return BalanceState(error=entry.error)

    balance = extract_balance(entry.data)
    return BalanceState(
        balance=balance,
        dash_go_balance=balance if request.name == CardType.DASHGO.value else None
    )


def source_data(state, card_type: CardType) -> Optional[Dict[str, Any]]:
    """Last loaded recipient-amount response for a card type under current params"""
    request = amount_query_request(state, card_type)
    if request is None:
        return None
    entry = state.sources.get(request.name)
    if entry is None or entry.key != request.key or not entry.loaded:
        return None
    return entry.data
