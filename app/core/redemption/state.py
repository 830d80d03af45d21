"""Redemption session state and transitions

The whole session is one immutable RedemptionState. Every user action and
every API result is an Action applied by transition(), which returns the next
state. Resets live in one place per action, so a transition cannot leave a
stale field behind.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from core.error.exceptions import (InvalidStepException, RatingValidationError,
                                   ValidationException)
from core.utils.error_handler import ErrorHandler

from .debounce import Debouncer, RequestGuard
from .phone import MIN_VENDOR_NUMBER_DIGITS, digits_only
from .types import (BalanceState, Branch, CardType, PendingInput,
                    RedemptionMethod, SessionStep, SourceEntry, Vendor,
                    VendorCard)
from .vendors import derive_branches, flatten_vendor_cards

logger = logging.getLogger(__name__)

MAX_RATING = 5


@dataclass(frozen=True)
class RedemptionState:
    """Single source of truth for one redemption session"""
    step: SessionStep = SessionStep.METHOD
    method: Optional[RedemptionMethod] = None

    # Phone the gift card was received on
    auth_phone: Optional[str] = None
    guest_phone: str = ""

    # Vendor mobile money path
    vendor_mobile_money: str = ""
    vendor_validated_name: Optional[str] = None
    validated_vendor_number: Optional[str] = None
    vendor_lookup_token: int = 0
    pending_vendor_number: Optional[PendingInput] = None
    vendor_error: Optional[str] = None

    # Vendor id path
    vendor_search: str = ""
    vendor_search_token: int = 0
    pending_vendor_search: Optional[PendingInput] = None
    vendor_results: Tuple[Vendor, ...] = ()
    vendor: Optional[Vendor] = None
    available_branches: Tuple[Branch, ...] = ()
    vendor_cards: Tuple[VendorCard, ...] = ()
    selected_branch_id: Optional[int] = None

    # Card and amount
    card_type: Optional[CardType] = None
    selected_card: Optional[VendorCard] = None
    amount: str = ""

    # Balance sources and resolved balance
    sources: Dict[str, SourceEntry] = field(default_factory=dict)
    balance: BalanceState = field(default_factory=BalanceState)

    # Submission and post-redemption
    submission_error: Optional[str] = None
    redeemed_card_id: Optional[int] = None
    redeemed_amount: Optional[float] = None
    rating: int = 0
    rating_error: Optional[str] = None
    rated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe representation for session storage"""
        return {
            "step": self.step.value,
            "method": self.method.value if self.method else None,
            "auth_phone": self.auth_phone,
            "guest_phone": self.guest_phone,
            "vendor_mobile_money": self.vendor_mobile_money,
            "vendor_validated_name": self.vendor_validated_name,
            "validated_vendor_number": self.validated_vendor_number,
            "vendor_lookup_token": self.vendor_lookup_token,
            "pending_vendor_number": self.pending_vendor_number.to_dict() if self.pending_vendor_number else None,
            "vendor_error": self.vendor_error,
            "vendor_search": self.vendor_search,
            "vendor_search_token": self.vendor_search_token,
            "pending_vendor_search": self.pending_vendor_search.to_dict() if self.pending_vendor_search else None,
            "vendor_results": [vendor.to_dict() for vendor in self.vendor_results],
            "vendor": self.vendor.to_dict() if self.vendor else None,
            "selected_branch_id": self.selected_branch_id,
            "card_type": self.card_type.value if self.card_type else None,
            "selected_card": self.selected_card.to_dict() if self.selected_card else None,
            "amount": self.amount,
            "sources": {name: entry.to_dict() for name, entry in self.sources.items()},
            "balance": self.balance.to_dict(),
            "submission_error": self.submission_error,
            "redeemed_card_id": self.redeemed_card_id,
            "redeemed_amount": self.redeemed_amount,
            "rating": self.rating,
            "rating_error": self.rating_error,
            "rated": self.rated,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RedemptionState":
        """Rebuild state from session storage"""
        vendor = Vendor.from_dict(data["vendor"]) if data.get("vendor") else None
        selected_card = data.get("selected_card")
        return cls(
            step=SessionStep(data.get("step", SessionStep.METHOD.value)),
            method=RedemptionMethod(data["method"]) if data.get("method") else None,
            auth_phone=data.get("auth_phone"),
            guest_phone=data.get("guest_phone", ""),
            vendor_mobile_money=data.get("vendor_mobile_money", ""),
            vendor_validated_name=data.get("vendor_validated_name"),
            validated_vendor_number=data.get("validated_vendor_number"),
            vendor_lookup_token=data.get("vendor_lookup_token", 0),
            pending_vendor_number=PendingInput.from_dict(data.get("pending_vendor_number")),
            vendor_error=data.get("vendor_error"),
            vendor_search=data.get("vendor_search", ""),
            vendor_search_token=data.get("vendor_search_token", 0),
            pending_vendor_search=PendingInput.from_dict(data.get("pending_vendor_search")),
            vendor_results=tuple(Vendor.from_dict(item) for item in data.get("vendor_results", [])),
            vendor=vendor,
            # Branches and cards are derived, never stored
            available_branches=derive_branches(vendor) if vendor else (),
            vendor_cards=flatten_vendor_cards(vendor) if vendor else (),
            selected_branch_id=data.get("selected_branch_id"),
            card_type=CardType.parse(data.get("card_type")),
            selected_card=VendorCard.from_dict(selected_card) if selected_card else None,
            amount=data.get("amount", ""),
            sources={
                name: SourceEntry.from_dict(entry)
                for name, entry in (data.get("sources") or {}).items()
            },
            balance=BalanceState.from_dict(data.get("balance")),
            submission_error=data.get("submission_error"),
            redeemed_card_id=data.get("redeemed_card_id"),
            redeemed_amount=data.get("redeemed_amount"),
            rating=data.get("rating", 0),
            rating_error=data.get("rating_error"),
            rated=data.get("rated", False),
        )


class ActionType(Enum):
    """Everything that can happen to a session"""
    RESET = "reset"
    SELECT_METHOD = "select_method"
    BACK_TO_METHOD = "back_to_method"
    SET_GUEST_PHONE = "set_guest_phone"

    SET_VENDOR_MOBILE_MONEY = "set_vendor_mobile_money"
    VENDOR_LOOKUP_STARTED = "vendor_lookup_started"
    VENDOR_LOOKUP_REJECTED = "vendor_lookup_rejected"
    VENDOR_LOOKUP_RESOLVED = "vendor_lookup_resolved"
    VENDOR_LOOKUP_FAILED = "vendor_lookup_failed"

    SET_VENDOR_SEARCH = "set_vendor_search"
    VENDOR_SEARCH_STARTED = "vendor_search_started"
    VENDOR_SEARCH_RESOLVED = "vendor_search_resolved"
    VENDOR_SEARCH_FAILED = "vendor_search_failed"
    SELECT_VENDOR = "select_vendor"
    SELECT_BRANCH = "select_branch"

    SELECT_CARD_TYPE = "select_card_type"
    SELECT_CARD = "select_card"
    SET_AMOUNT = "set_amount"

    SOURCE_LOADING = "source_loading"
    SOURCE_RESOLVED = "source_resolved"
    SOURCE_FAILED = "source_failed"
    BALANCE_RESOLVED = "balance_resolved"

    SUBMISSION_FAILED = "submission_failed"
    REDEMPTION_SUCCEEDED = "redemption_succeeded"

    START_RATING = "start_rating"
    SET_RATING = "set_rating"
    RATING_FAILED = "rating_failed"
    RATING_SUBMITTED = "rating_submitted"
    SKIP_RATING = "skip_rating"


@dataclass(frozen=True)
class Action:
    type: ActionType
    payload: Dict[str, Any] = field(default_factory=dict)


def _require_step(state: RedemptionState, action: Action, *steps: SessionStep) -> None:
    if state.step not in steps:
        raise InvalidStepException(
            message=ErrorHandler.message("flow", "invalid_step"),
            step=state.step.value,
            action=action.type.value,
            data={"allowed": [step.value for step in steps]}
        )


def _require_method(state: RedemptionState, action: Action, method: RedemptionMethod) -> None:
    _require_step(state, action, SessionStep.DETAILS)
    if state.method != method:
        raise InvalidStepException(
            message=f"Action requires the {method.value} redemption method",
            step=state.step.value,
            action=action.type.value,
            data={"method": state.method.value if state.method else None}
        )


def _fresh_session(state: RedemptionState) -> RedemptionState:
    """Empty session that keeps who is redeeming and cached balance sources"""
    return RedemptionState(
        auth_phone=state.auth_phone,
        guest_phone=state.guest_phone,
        sources=state.sources,
        vendor_lookup_token=state.vendor_lookup_token,
        vendor_search_token=state.vendor_search_token,
    )


def transition(
    state: RedemptionState,
    action: Action,
    debouncer: Optional[Debouncer] = None
) -> RedemptionState:
    """Apply one action and return the next state

    Raises:
        InvalidStepException: Action not allowed in the current step or method
        ValidationException: Action input rejected
    """
    debouncer = debouncer or Debouncer()
    payload = action.payload

    match action.type:

        # Method selector
        case ActionType.RESET:
            return RedemptionState(auth_phone=state.auth_phone)

        case ActionType.SELECT_METHOD:
            _require_step(state, action, SessionStep.METHOD, SessionStep.DETAILS)
            return replace(
                _fresh_session(state),
                step=SessionStep.DETAILS,
                method=payload["method"]
            )

        case ActionType.BACK_TO_METHOD:
            _require_step(state, action, SessionStep.DETAILS)
            return _fresh_session(state)

        case ActionType.SET_GUEST_PHONE:
            _require_step(state, action, SessionStep.DETAILS)
            return replace(state, guest_phone=payload["phone"], submission_error=None)

        # Vendor mobile money path
        case ActionType.SET_VENDOR_MOBILE_MONEY:
            _require_method(state, action, RedemptionMethod.VENDOR_MOBILE_MONEY)
            value = payload["value"]
            digits = digits_only(value)
            if len(digits) < MIN_VENDOR_NUMBER_DIGITS:
                return replace(
                    state,
                    vendor_mobile_money=value,
                    vendor_validated_name=None,
                    validated_vendor_number=None,
                    pending_vendor_number=None,
                    vendor_error=None
                )
            if digits == state.validated_vendor_number:
                # Already validated or in flight
                return replace(state, vendor_mobile_money=value, pending_vendor_number=None)
            return replace(
                state,
                vendor_mobile_money=value,
                vendor_validated_name=None,
                validated_vendor_number=None,
                vendor_error=None,
                pending_vendor_number=debouncer.push(digits, payload["now"])
            )

        case ActionType.VENDOR_LOOKUP_STARTED:
            return replace(
                state,
                pending_vendor_number=None,
                validated_vendor_number=payload["number"],
                vendor_lookup_token=payload["token"],
                vendor_error=None
            )

        case ActionType.VENDOR_LOOKUP_REJECTED:
            return replace(
                state,
                pending_vendor_number=None,
                validated_vendor_number=None,
                vendor_validated_name=None,
                vendor_error=payload["error"]
            )

        case ActionType.VENDOR_LOOKUP_RESOLVED | ActionType.VENDOR_LOOKUP_FAILED:
            if not RequestGuard.accepts(
                payload["token"],
                state.vendor_lookup_token,
                payload["number"],
                digits_only(state.vendor_mobile_money)
            ):
                logger.info(f"Dropping stale vendor lookup response for token {payload['token']}")
                return state
            if action.type == ActionType.VENDOR_LOOKUP_RESOLVED:
                return replace(state, vendor_validated_name=payload["name"], vendor_error=None)
            # Forget the guard so the same number can be retried
            return replace(
                state,
                vendor_validated_name=None,
                validated_vendor_number=None,
                vendor_error=payload["error"]
            )

        # Vendor id path
        case ActionType.SET_VENDOR_SEARCH:
            _require_method(state, action, RedemptionMethod.VENDOR_ID)
            search = payload["search"]
            return replace(
                state,
                vendor_search=search,
                pending_vendor_search=debouncer.push(search.strip(), payload["now"])
            )

        case ActionType.VENDOR_SEARCH_STARTED:
            return replace(
                state,
                pending_vendor_search=None,
                vendor_search_token=payload["token"]
            )

        case ActionType.VENDOR_SEARCH_RESOLVED | ActionType.VENDOR_SEARCH_FAILED:
            if not RequestGuard.accepts(
                payload["token"],
                state.vendor_search_token,
                payload["search"],
                state.vendor_search.strip()
            ):
                logger.info(f"Dropping stale vendor search response for token {payload['token']}")
                return state
            if action.type == ActionType.VENDOR_SEARCH_RESOLVED:
                return replace(state, vendor_results=tuple(payload["vendors"]), vendor_error=None)
            return replace(state, vendor_results=(), vendor_error=payload["error"])

        case ActionType.SELECT_VENDOR:
            _require_method(state, action, RedemptionMethod.VENDOR_ID)
            vendor: Vendor = payload["vendor"]
            return replace(
                state,
                vendor=vendor,
                available_branches=derive_branches(vendor),
                vendor_cards=flatten_vendor_cards(vendor),
                selected_branch_id=None,
                card_type=None,
                selected_card=None,
                amount="",
                vendor_error=None,
                submission_error=None
            )

        case ActionType.SELECT_BRANCH:
            _require_method(state, action, RedemptionMethod.VENDOR_ID)
            branch_id = payload["branch_id"]
            if branch_id not in {branch.branch_id for branch in state.available_branches}:
                raise ValidationException(
                    message="Selected branch does not belong to this vendor",
                    component="card_selector",
                    field="branch_id",
                    value=str(branch_id)
                )
            return replace(state, selected_branch_id=branch_id, selected_card=None, submission_error=None)

        # Card and amount
        case ActionType.SELECT_CARD_TYPE:
            _require_method(state, action, RedemptionMethod.VENDOR_ID)
            if state.vendor is None:
                raise ValidationException(
                    message=ErrorHandler.message("component", "missing_vendor"),
                    component="card_selector",
                    field="vendor",
                    value="None"
                )
            if state.available_branches and state.selected_branch_id is None:
                raise ValidationException(
                    message=ErrorHandler.message("component", "missing_branch"),
                    component="card_selector",
                    field="branch_id",
                    value="None"
                )
            return replace(
                state,
                card_type=payload["card_type"],
                selected_card=None,
                submission_error=None
            )

        case ActionType.SELECT_CARD:
            _require_method(state, action, RedemptionMethod.VENDOR_ID)
            card: Optional[VendorCard] = payload["card"]
            if card is not None and (
                state.card_type is None or card.card_type != state.card_type.value
            ):
                raise ValidationException(
                    message="Selected card does not match the chosen card type",
                    component="card_selector",
                    field="card_id",
                    value=str(card.card_id)
                )
            return replace(state, selected_card=card, submission_error=None)

        case ActionType.SET_AMOUNT:
            _require_step(state, action, SessionStep.DETAILS)
            return replace(state, amount=payload["amount"], submission_error=None)

        # Balance sources
        case ActionType.SOURCE_LOADING:
            entry = SourceEntry(key=payload["key"], loading=True)
            return replace(state, sources={**state.sources, payload["name"]: entry})

        case ActionType.SOURCE_RESOLVED | ActionType.SOURCE_FAILED:
            current = state.sources.get(payload["name"])
            if current is not None and current.key != payload["key"] and (current.loading or current.loaded):
                # A query with newer params is in flight or already answered
                logger.info(f"Dropping stale {payload['name']} response")
                return state
            if action.type == ActionType.SOURCE_RESOLVED:
                entry = SourceEntry(key=payload["key"], data=payload["data"])
            else:
                entry = SourceEntry(key=payload["key"], error=payload["error"])
            return replace(state, sources={**state.sources, payload["name"]: entry})

        case ActionType.BALANCE_RESOLVED:
            return replace(state, balance=payload["balance"])

        # Submission
        case ActionType.SUBMISSION_FAILED:
            return replace(state, submission_error=payload["error"])

        case ActionType.REDEMPTION_SUCCEEDED:
            _require_step(state, action, SessionStep.DETAILS)
            card_id = payload.get("card_id")
            return replace(
                state,
                step=SessionStep.SUCCESS,
                redeemed_card_id=card_id if card_id and card_id > 0 else None,
                redeemed_amount=payload.get("amount"),
                submission_error=None,
                rating=0,
                rating_error=None,
                rated=False
            )

        # Post-redemption
        case ActionType.START_RATING:
            _require_step(state, action, SessionStep.SUCCESS)
            if state.redeemed_card_id is None or state.rated:
                raise InvalidStepException(
                    message="There is no redeemed card to rate",
                    step=state.step.value,
                    action=action.type.value,
                    data={"rated": state.rated}
                )
            return replace(state, step=SessionStep.RATING, rating=0, rating_error=None)

        case ActionType.SET_RATING:
            _require_step(state, action, SessionStep.RATING)
            rating = payload["rating"]
            if not isinstance(rating, int) or rating < 0 or rating > MAX_RATING:
                raise RatingValidationError(rating)
            return replace(state, rating=rating, rating_error=None)

        case ActionType.RATING_FAILED:
            return replace(state, rating_error=payload["error"])

        case ActionType.RATING_SUBMITTED:
            _require_step(state, action, SessionStep.RATING)
            return replace(state, step=SessionStep.SUCCESS, rated=True, rating_error=None)

        case ActionType.SKIP_RATING:
            _require_step(state, action, SessionStep.RATING)
            return replace(state, step=SessionStep.SUCCESS, rating=0, rating_error=None)

    raise InvalidStepException(
        message=ErrorHandler.message("flow", "invalid_step"),
        step=state.step.value,
        action=str(action.type),
        data={}
    )
