"""Redemption workflow

RedemptionWorkflow drives one session: it turns user actions into state
transitions, runs the platform calls each transition needs (vendor validation,
vendor search, balance queries, submission, rating) and feeds their results
back as actions.

When a session store is attached, state is saved before every platform call
and reloaded before its result is applied, so a response is checked against
the latest input even when requests for the same session overlap.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from core.api import redemption as redemption_api
from core.api.adapters import (extract_account_name, extract_message,
                               extract_vendors, is_success)
from core.error.exceptions import (BalanceFetchException, ComponentException,
                                   FlowException, InvalidStepException,
                                   RatingValidationError, ResolutionException,
                                   SubmissionException, SystemException,
                                   UnrecognizedProviderError,
                                   ValidationException)
from core.utils.error_handler import ErrorHandler

from .balance import CARD_BALANCE_SOURCE, active_request, resolve_balance
from .debounce import Debouncer, RequestGuard
from .phone import detect_provider, to_international
from .selectors import (amount_status, available_cards, enters_amount,
                        redemption_summary)
from .state import Action, ActionType, RedemptionState, transition
from .submission import build_payload, can_submit
from .types import CardType, RedemptionMethod, SessionStep
from .vendors import normalize_vendor

logger = logging.getLogger(__name__)


@dataclass
class RedemptionResult:
    """Outcome of a submission or rating call"""
    success: bool
    message: str
    error: Optional[Dict[str, Any]] = None
    payload: Optional[Dict[str, Any]] = None

    @property
    def error_type(self) -> Optional[str]:
        return self.error["type"] if self.error else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "error": self.error,
            "payload": self.payload,
        }


class RedemptionWorkflow:
    """Redemption workflow engine for one session"""

    def __init__(
        self,
        state: Optional[RedemptionState] = None,
        api: Any = redemption_api,
        clock: Callable[[], float] = time.time,
        debouncer: Optional[Debouncer] = None,
        store: Any = None,
        session_id: Optional[str] = None,
        token: Optional[str] = None
    ):
        """Initialize workflow

        Args:
            state: Existing session state, a fresh session when omitted
            api: Module or object exposing the redemption API functions
            clock: Time source for debouncing
            debouncer: Debouncer, defaults to the configured wait
            store: Optional session store with load(session_id) and save(session_id, state)
            session_id: Session key in the store
            token: Optional bearer token forwarded to user-scoped endpoints
        """
        self.state = state or RedemptionState()
        self.api = api
        self.clock = clock
        self.debouncer = debouncer or Debouncer()
        self.store = store
        self.session_id = session_id
        self.token = token

    # State plumbing

    def dispatch(self, action_type: ActionType, **payload) -> RedemptionState:
        self.state = transition(self.state, Action(action_type, payload), self.debouncer)
        return self.state

    def _commit(self) -> None:
        if self.store is not None and self.session_id:
            self.store.save(self.session_id, self.state)

    def _reload(self) -> None:
        if self.store is not None and self.session_id:
            latest = self.store.load(self.session_id)
            if latest is not None:
                self.state = latest

    def _settle(self, now: Optional[float] = None) -> RedemptionState:
        """Fire due debounced input and recompute the balance"""
        self.tick(now)
        self.refresh_balance()
        return self.state

    # Method selector

    def select_method(self, method: RedemptionMethod) -> RedemptionState:
        logger.info(f"Redemption method selected: {method.value}")
        self.dispatch(ActionType.SELECT_METHOD, method=method)
        return self._settle()

    def back(self) -> RedemptionState:
        self.dispatch(ActionType.BACK_TO_METHOD)
        return self._settle()

    def reset(self) -> RedemptionState:
        self.dispatch(ActionType.RESET)
        return self.state

    def set_guest_phone(self, phone: str) -> RedemptionState:
        self.dispatch(ActionType.SET_GUEST_PHONE, phone=phone)
        return self._settle()

    # Vendor resolver

    def enter_vendor_mobile_money(self, value: str, now: Optional[float] = None) -> RedemptionState:
        """Record a keystroke in the vendor mobile money field"""
        now = self.clock() if now is None else now
        self.dispatch(ActionType.SET_VENDOR_MOBILE_MONEY, value=value, now=now)
        return self._settle(now)

    def enter_vendor_search(self, search: str, now: Optional[float] = None) -> RedemptionState:
        """Record a keystroke in the vendor search field"""
        now = self.clock() if now is None else now
        self.dispatch(ActionType.SET_VENDOR_SEARCH, search=search, now=now)
        return self._settle(now)

    def poll(self, now: Optional[float] = None) -> RedemptionState:
        """Advance time without user input"""
        return self._settle(now)

    def tick(self, now: Optional[float] = None) -> RedemptionState:
        """Run debounced validations whose idle window has passed"""
        now = self.clock() if now is None else now
        if self.debouncer.is_due(self.state.pending_vendor_number, now):
            self._validate_vendor_number(self.state.pending_vendor_number.value)
        if self.debouncer.is_due(self.state.pending_vendor_search, now):
            self._search_vendors(self.state.pending_vendor_search.value)
        return self.state

    def _validate_vendor_number(self, number: str) -> None:
        provider = detect_provider(number)
        if provider is None:
            error = UnrecognizedProviderError(number)
            logger.warning(f"Unrecognized provider prefix for vendor number ending {number[-4:]}")
            self.dispatch(ActionType.VENDOR_LOOKUP_REJECTED, error=error.message)
            return

        token = RequestGuard.issue(self.state.vendor_lookup_token)
        self.dispatch(ActionType.VENDOR_LOOKUP_STARTED, number=number, token=token)
        self._commit()

        name = None
        try:
            response = self.api.validate_vendor_mobile_money(to_international(number), provider)
            name = extract_account_name(response)
        except SystemException as e:
            ErrorHandler.handle_exception(e)

        self._reload()
        if name:
            logger.info(f"Vendor mobile money resolved to {name}")
            self.dispatch(ActionType.VENDOR_LOOKUP_RESOLVED, token=token, number=number, name=name)
            return

        error = ResolutionException(
            message=ErrorHandler.message("flow", "vendor_not_found"),
            step=self.state.step.value,
            action="validate_vendor_mobile_money",
            data={"provider": provider}
        )
        ErrorHandler.handle_exception(error)
        self.dispatch(ActionType.VENDOR_LOOKUP_FAILED, token=token, number=number, error=error.message)

    def _search_vendors(self, search: str) -> None:
        token = RequestGuard.issue(self.state.vendor_search_token)
        self.dispatch(ActionType.VENDOR_SEARCH_STARTED, search=search, token=token)
        self._commit()

        try:
            response = self.api.search_vendors(search)
        except SystemException as e:
            ErrorHandler.handle_exception(e)
            self._reload()
            self.dispatch(ActionType.VENDOR_SEARCH_FAILED, token=token, search=search, error=e.message)
            return

        vendors = [vendor for vendor in map(normalize_vendor, extract_vendors(response)) if vendor]
        self._reload()
        self.dispatch(ActionType.VENDOR_SEARCH_RESOLVED, token=token, search=search, vendors=vendors)

    def select_vendor(self, vendor_id: int) -> RedemptionState:
        """Select a vendor from the last search results"""
        vendor = next((v for v in self.state.vendor_results if v.vendor_id == vendor_id), None)
        if vendor is None:
            raise ValidationException(
                message=ErrorHandler.message("component", "missing_vendor"),
                component="vendor_resolver",
                field="vendor_id",
                value=str(vendor_id)
            )
        logger.info(f"Vendor selected: {vendor.vendor_id}")
        self.dispatch(ActionType.SELECT_VENDOR, vendor=vendor)
        return self._settle()

    # Card and branch selector

    def select_branch(self, branch_id: int) -> RedemptionState:
        self.dispatch(ActionType.SELECT_BRANCH, branch_id=branch_id)
        return self._settle()

    def select_card_type(self, card_type: CardType) -> RedemptionState:
        self.dispatch(ActionType.SELECT_CARD_TYPE, card_type=card_type)
        return self._settle()

    def select_card(self, card_id: Optional[int]) -> RedemptionState:
        """Pick one of the available DashX or DashPass cards, None to clear"""
        card = None
        if card_id is not None:
            card = next((c for c in available_cards(self.state) if c.card_id == card_id), None)
            if card is None:
                raise ValidationException(
                    message="Selected card is not available",
                    component="card_selector",
                    field="card_id",
                    value=str(card_id)
                )
        self.dispatch(ActionType.SELECT_CARD, card=card)
        return self._settle()

    def enter_amount(self, amount: str) -> RedemptionState:
        self.dispatch(ActionType.SET_AMOUNT, amount=amount)
        return self._settle()

    # Balance resolver

    def refresh_balance(self) -> RedemptionState:
        """Load the active balance source if needed and recompute the balance"""
        request = active_request(self.state)
        if request is not None:
            entry = self.state.sources.get(request.name)
            if entry is None or entry.key != request.key or entry.error is not None:
                self._load_source(request)
        return self.dispatch(ActionType.BALANCE_RESOLVED, balance=resolve_balance(self.state))

    def _load_source(self, request) -> None:
        self.dispatch(ActionType.SOURCE_LOADING, name=request.name, key=request.key)
        self._commit()
        params = request.params

        try:
            if request.name == CARD_BALANCE_SOURCE:
                data = self.api.get_card_balance(
                    params["phone_number"], params["card_type"], token=self.token
                )
            else:
                data = self.api.get_recipient_amount(
                    request.name,
                    params["phone_number"],
                    branch_id=params.get("branch_id"),
                    vendor_id=params.get("vendor_id"),
                    token=self.token
                )
        except SystemException as e:
            error = BalanceFetchException(
                message=ErrorHandler.message("system", "balance_error"),
                code=e.details.get("code", "BALANCE_FETCH_FAILED"),
                service="balance_resolver",
                action=request.name
            )
            ErrorHandler.handle_exception(error)
            self._reload()
            self.dispatch(ActionType.SOURCE_FAILED, name=request.name, key=request.key, error=error.message)
            return

        self._reload()
        self.dispatch(ActionType.SOURCE_RESOLVED, name=request.name, key=request.key, data=data)

    # Submission builder

    def _failure(self, error: Exception, action_type: ActionType) -> RedemptionResult:
        handled = ErrorHandler.handle_exception(error)
        message = handled["error"]["message"]
        self.dispatch(action_type, error=message)
        return RedemptionResult(success=False, message=message, error=handled["error"])

    def submit(self) -> RedemptionResult:
        """Build the payload and redeem

        Failures stay on the details step with the entered data intact.
        """
        self.refresh_balance()
        try:
            payload = build_payload(self.state)
        except (ComponentException, FlowException) as e:
            return self._failure(e, ActionType.SUBMISSION_FAILED)

        body = payload.to_dict()
        try:
            response = self.api.process_cards_redemption(body, token=self.token)
        except SystemException as e:
            return self._failure(e, ActionType.SUBMISSION_FAILED)

        if not is_success(response):
            error = SubmissionException(
                message=extract_message(response, ErrorHandler.message("system", "redemption_failed")),
                code="REDEMPTION_FAILED",
                service="redemption",
                action="submit"
            )
            return self._failure(error, ActionType.SUBMISSION_FAILED)

        logger.info(f"Redemption succeeded for {payload.card_type} card {payload.card_id}")
        self.dispatch(ActionType.REDEMPTION_SUCCEEDED, card_id=payload.card_id, amount=payload.amount)
        return RedemptionResult(
            success=True,
            message=extract_message(response, "Redemption processed successfully"),
            payload=body
        )

    # Post-redemption

    def start_rating(self) -> RedemptionState:
        return self.dispatch(ActionType.START_RATING)

    def set_rating(self, rating: int) -> RedemptionState:
        return self.dispatch(ActionType.SET_RATING, rating=rating)

    def skip_rating(self) -> RedemptionState:
        return self.dispatch(ActionType.SKIP_RATING)

    def submit_rating(self) -> RedemptionResult:
        """Send the star rating for the redeemed card"""
        if self.state.step != SessionStep.RATING:
            return self._failure(
                InvalidStepException(
                    message=ErrorHandler.message("flow", "invalid_step"),
                    step=self.state.step.value,
                    action="submit_rating",
                    data={}
                ),
                ActionType.RATING_FAILED
            )
        if self.state.rating == 0:
            return self._failure(RatingValidationError(0), ActionType.RATING_FAILED)

        try:
            response = self.api.rate_card(self.state.redeemed_card_id, self.state.rating, token=self.token)
        except SystemException as e:
            return self._failure(e, ActionType.RATING_FAILED)

        if not is_success(response):
            error = SubmissionException(
                message=extract_message(response, ErrorHandler.message("system", "rating_failed")),
                code="RATING_FAILED",
                service="redemption",
                action="submit_rating"
            )
            return self._failure(error, ActionType.RATING_FAILED)

        self.dispatch(ActionType.RATING_SUBMITTED)
        return RedemptionResult(success=True, message=extract_message(response, "Thank you for your rating"))

    # View model

    def snapshot(self) -> Dict[str, Any]:
        """Session state plus derived values for the client"""
        state = self.state
        data = state.to_dict()
        for internal in (
            "sources",
            "pending_vendor_number",
            "pending_vendor_search",
            "vendor_lookup_token",
            "vendor_search_token",
            "validated_vendor_number",
        ):
            data.pop(internal, None)
        if data.get("vendor"):
            data["vendor"].pop("raw", None)
        for vendor in data.get("vendor_results", []):
            vendor.pop("raw", None)

        data.update({
            "available_branches": [branch.to_dict() for branch in state.available_branches],
            "available_cards": [card.to_dict() for card in available_cards(state)],
            "card_types": [card_type.label for card_type in CardType] if state.method == RedemptionMethod.VENDOR_ID else [],
            "enters_amount": enters_amount(state),
            "amount_status": amount_status(state).value,
            "can_submit": can_submit(state),
            "validating_vendor": state.pending_vendor_number is not None,
            "summary": redemption_summary(state),
        })
        return data
