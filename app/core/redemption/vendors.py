"""Vendor resolver derivations

Turns vendor and card payloads from the platform into Branch and VendorCard
records. Vendor payloads nest cards under branches_with_cards[].cards and may
also carry a flat vendor_cards list without branch context.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from core.api.adapters import to_number

from .types import Branch, CardType, Vendor, VendorCard

logger = logging.getLogger(__name__)


def _to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def normalize_vendor(raw: Dict[str, Any]) -> Optional[Vendor]:
    """Vendor from a vendor list record, None when it has no id"""
    vendor_id = _to_int(raw.get("vendor_id", raw.get("id")))
    if vendor_id is None:
        return None
    return Vendor(
        vendor_id=vendor_id,
        vendor_name=raw.get("business_name") or raw.get("vendor_name") or "",
        country=raw.get("country"),
        gvid=raw.get("gvid"),
        raw=raw
    )


def normalize_card(
    raw: Dict[str, Any],
    branch: Optional[Dict[str, Any]] = None,
    vendor: Optional[Vendor] = None
) -> Optional[VendorCard]:
    """VendorCard from a card record, with optional branch and vendor context"""
    card_id = _to_int(raw.get("card_id", raw.get("id")))
    if card_id is None:
        return None

    branch = branch or {}
    price = to_number(raw.get("card_price", raw.get("price")))
    return VendorCard(
        card_id=card_id,
        card_name=raw.get("card_name") or raw.get("name") or "",
        card_type=str(raw.get("card_type") or raw.get("type") or "").lower(),
        card_price=price if price is not None else 0.0,
        currency=raw.get("currency") or "GHS",
        status=raw.get("status") or "",
        branch_id=_to_int(branch.get("branch_id", raw.get("branch_id"))),
        branch_name=branch.get("branch_name", raw.get("branch_name")),
        branch_location=branch.get("branch_location", raw.get("branch_location")),
        vendor_id=vendor.vendor_id if vendor else _to_int(raw.get("vendor_id")),
        vendor_name=vendor.vendor_name if vendor else raw.get("vendor_name"),
        recipient_id=_to_int(raw.get("recipient_id"))
    )


def derive_branches(vendor: Vendor) -> Tuple[Branch, ...]:
    """Branches of a vendor, deduplicated by branch_id in first-seen order"""
    seen = set()
    branches: List[Branch] = []
    for raw in vendor.raw.get("branches_with_cards") or []:
        branch_id = _to_int(raw.get("branch_id"))
        if branch_id is None or branch_id in seen:
            continue
        seen.add(branch_id)
        branches.append(Branch(
            branch_id=branch_id,
            branch_name=raw.get("branch_name") or "",
            branch_location=raw.get("branch_location")
        ))
    return tuple(branches)


def flatten_vendor_cards(vendor: Vendor) -> Tuple[VendorCard, ...]:
    """Cards under every branch followed by the flat vendor_cards list"""
    cards: List[VendorCard] = []
    for branch in vendor.raw.get("branches_with_cards") or []:
        for raw in branch.get("cards") or []:
            card = normalize_card(raw, branch=branch, vendor=vendor)
            if card:
                cards.append(card)

    for raw in vendor.raw.get("vendor_cards") or []:
        card = normalize_card(raw, vendor=vendor)
        if card:
            cards.append(card)

    logger.debug(f"Vendor {vendor.vendor_id}: {len(cards)} cards")
    return tuple(cards)


def filter_cards(
    cards: Iterable[VendorCard],
    card_type: CardType,
    branch_id: Optional[int] = None
) -> List[VendorCard]:
    """Cards of one type, narrowed to a branch when one is set

    Cards without branch context stay visible for every branch.
    """
    result = []
    seen = set()
    for card in cards:
        if card.card_type != card_type.value:
            continue
        if branch_id is not None and card.branch_id is not None and card.branch_id != branch_id:
            continue
        if card.card_id in seen:
            continue
        seen.add(card.card_id)
        result.append(card)
    return result
