"""Submission builder

Validates the session and assembles the type-specific redemption payload.
Nothing here calls the platform; the workflow submits what build_payload
returns.

Payload rules:
- DashGo/DashPro: typed amount, card_id from the first card of the
  recipient-amount response (0 when it has none)
- DashX: the selected card, amount is its price
- DashPass: the selected card, else the first card of the DashPass
  recipient-amount response
"""
import logging
from typing import Optional

from core.api.adapters import extract_cards, first_card_id
from core.error.exceptions import (InvalidStepException, NoCardAvailableError,
                                   NoCardSelectedError,
                                   NotImplementedRedemptionError,
                                   ValidationException)
from core.utils.error_handler import ErrorHandler

from .balance import selected_branch_id, source_data, usable_phone
from .phone import digits_only
from .selectors import amount_status, parse_amount
from .types import (AmountStatus, CardType, RedemptionMethod,
                    RedemptionPayload, SessionStep, VendorCard)
from .vendors import normalize_card

logger = logging.getLogger(__name__)


def _validation_error(key: str, field: str, value: str = "") -> ValidationException:
    return ValidationException(
        message=ErrorHandler.message("component", key),
        component="submission_builder",
        field=field,
        value=value
    )


def _require_phone(state) -> str:
    phone = usable_phone(state)
    if phone is None:
        raise _validation_error("missing_phone", "phone_number", state.guest_phone)
    return phone


def _require_amount(state) -> float:
    status = amount_status(state)
    if status in (AmountStatus.EMPTY, AmountStatus.INVALID):
        raise _validation_error("invalid_amount", "amount", state.amount)
    if status == AmountStatus.INSUFFICIENT:
        raise _validation_error("insufficient_balance", "amount", state.amount)
    return parse_amount(state.amount)


def _require_branch(state) -> None:
    if state.available_branches and state.selected_branch_id is None:
        raise _validation_error("missing_branch", "branch_id")


def _card_id(value) -> int:
    try:
        card_id = int(value)
    except (TypeError, ValueError):
        return 0
    return card_id if card_id > 0 else 0


def _branch_for(state, card: Optional[VendorCard] = None) -> int:
    branch_id = selected_branch_id(state)
    if branch_id is None and card is not None:
        branch_id = card.branch_id
    return branch_id if branch_id is not None else 0


def _amount_payload(state, card_type: CardType, phone: str) -> RedemptionPayload:
    amount = _require_amount(state)
    data = source_data(state, card_type)
    if data is None:
        # card_id comes from the recipient-amount response
        raise ValidationException(
            message=ErrorHandler.message("flow", "balance_loading"),
            component="submission_builder",
            field="balance",
            value=card_type.value
        )
    return RedemptionPayload(
        card_type=card_type.label,
        phone_number=phone,
        amount=amount,
        branch_id=_branch_for(state),
        card_id=_card_id(first_card_id(data))
    )


def _dashx_payload(state, phone: str) -> RedemptionPayload:
    _require_branch(state)
    card = state.selected_card
    if card is None:
        raise NoCardSelectedError(CardType.DASHX.value)
    return RedemptionPayload(
        card_type=CardType.DASHX.label,
        phone_number=phone,
        amount=card.card_price,
        branch_id=_branch_for(state, card),
        card_id=card.card_id
    )


def _dashpass_payload(state, phone: str) -> RedemptionPayload:
    _require_branch(state)
    card = state.selected_card
    if card is None:
        cards = extract_cards(source_data(state, CardType.DASHPASS))
        card = normalize_card(cards[0]) if cards else None
    if card is None:
        raise NoCardAvailableError(CardType.DASHPASS.value)
    return RedemptionPayload(
        card_type=CardType.DASHPASS.label,
        phone_number=phone,
        amount=card.card_price,
        branch_id=_branch_for(state, card),
        card_id=card.card_id
    )


def validate_vendor_mobile_money(state) -> None:
    """Check the vendor mobile money path is complete

    Raises:
        ValidationException: A required field is missing or invalid
    """
    if len(digits_only(state.vendor_mobile_money)) == 0:
        raise ValidationException(
            message="Please enter the vendor mobile money number",
            component="submission_builder",
            field="vendor_mobile_money",
            value=""
        )
    if not state.vendor_validated_name:
        raise ValidationException(
            message=ErrorHandler.message("flow", "vendor_not_found"),
            component="submission_builder",
            field="vendor_validated_name",
            value=state.vendor_mobile_money
        )
    _require_amount(state)
    _require_phone(state)


def build_payload(state) -> RedemptionPayload:
    """Validate the session and build the redemption payload

    Raises:
        InvalidStepException: Not on the details step
        ValidationException: Missing or invalid input
        NotImplementedRedemptionError: Vendor mobile money has no submission call
    """
    if state.step != SessionStep.DETAILS or state.method is None:
        raise InvalidStepException(
            message=ErrorHandler.message("flow", "invalid_step"),
            step=state.step.value,
            action="submit",
            data={}
        )

    if state.method == RedemptionMethod.VENDOR_MOBILE_MONEY:
        validate_vendor_mobile_money(state)
        raise NotImplementedRedemptionError(
            message="Vendor mobile money redemption is not yet available",
            step=state.step.value,
            action="submit",
            data={"method": state.method.value}
        )

    if state.vendor is None:
        raise _validation_error("missing_vendor", "vendor")

    card_type = state.card_type
    if card_type is None:
        raise _validation_error("invalid_card_type", "card_type")

    phone = _require_phone(state)

    if card_type == CardType.DASHX:
        payload = _dashx_payload(state, phone)
    elif card_type == CardType.DASHPASS:
        payload = _dashpass_payload(state, phone)
    else:
        payload = _amount_payload(state, card_type, phone)

    logger.debug(f"Built redemption payload: {payload}")
    return payload


def can_submit(state) -> bool:
    """Whether the submit action would be accepted"""
    try:
        build_payload(state)
    except (ValidationException, InvalidStepException, NotImplementedRedemptionError):
        return False
    return True
