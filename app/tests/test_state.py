import unittest
from dataclasses import replace

from core.error.exceptions import (InvalidStepException, RatingValidationError,
                                   ValidationException)
from core.redemption.debounce import Debouncer
from core.redemption.state import (Action, ActionType, RedemptionState,
                                   transition)
from core.redemption.types import (CardType, RedemptionMethod, SessionStep,
                                   SourceEntry)
from core.redemption.vendors import normalize_vendor

from fakes import AUTH_PHONE, VENDOR_RAW


def apply(state, action_type, **payload):
    return transition(state, Action(action_type, payload), Debouncer(wait=0.5))


def vendor_session(**changes):
    state = apply(RedemptionState(auth_phone=AUTH_PHONE), ActionType.SELECT_METHOD,
                  method=RedemptionMethod.VENDOR_ID)
    state = apply(state, ActionType.SELECT_VENDOR, vendor=normalize_vendor(VENDOR_RAW))
    return replace(state, **changes) if changes else state


class TestMethodSelector(unittest.TestCase):
    def test_select_method_moves_to_details(self):
        state = apply(RedemptionState(), ActionType.SELECT_METHOD,
                      method=RedemptionMethod.VENDOR_MOBILE_MONEY)
        self.assertEqual(state.step, SessionStep.DETAILS)
        self.assertEqual(state.method, RedemptionMethod.VENDOR_MOBILE_MONEY)

    def test_back_clears_method_data(self):
        state = vendor_session(amount="10", guest_phone="0551234567")
        state = apply(state, ActionType.BACK_TO_METHOD)
        self.assertEqual(state.step, SessionStep.METHOD)
        self.assertIsNone(state.method)
        self.assertIsNone(state.vendor)
        self.assertEqual(state.amount, "")
        self.assertEqual(state.guest_phone, "0551234567")
        self.assertEqual(state.auth_phone, AUTH_PHONE)

    def test_reset_keeps_only_auth_phone(self):
        state = vendor_session(guest_phone="0551234567", sources={"dashgo": SourceEntry(key="k")})
        state = apply(state, ActionType.RESET)
        self.assertEqual(state, RedemptionState(auth_phone=AUTH_PHONE))

    def test_action_outside_its_step(self):
        with self.assertRaises(InvalidStepException):
            apply(RedemptionState(), ActionType.SET_AMOUNT, amount="5")


class TestVendorMobileMoney(unittest.TestCase):
    def setUp(self):
        self.state = apply(RedemptionState(auth_phone=AUTH_PHONE), ActionType.SELECT_METHOD,
                           method=RedemptionMethod.VENDOR_MOBILE_MONEY)

    def test_short_number_is_not_scheduled(self):
        state = apply(self.state, ActionType.SET_VENDOR_MOBILE_MONEY, value="05512", now=0.0)
        self.assertIsNone(state.pending_vendor_number)

    def test_full_number_is_scheduled_as_digits(self):
        state = apply(self.state, ActionType.SET_VENDOR_MOBILE_MONEY, value="055 123 4567", now=1.0)
        self.assertEqual(state.pending_vendor_number.value, "0551234567")
        self.assertEqual(state.pending_vendor_number.at, 1.0)

    def test_validated_number_is_not_scheduled_again(self):
        state = apply(self.state, ActionType.VENDOR_LOOKUP_STARTED, number="0551234567", token=1)
        state = apply(state, ActionType.SET_VENDOR_MOBILE_MONEY, value="0551234567", now=2.0)
        self.assertIsNone(state.pending_vendor_number)

    def test_stale_lookup_response_is_dropped(self):
        state = apply(self.state, ActionType.SET_VENDOR_MOBILE_MONEY, value="0551234567", now=0.0)
        state = apply(state, ActionType.VENDOR_LOOKUP_STARTED, number="0551234567", token=1)
        state = apply(state, ActionType.SET_VENDOR_MOBILE_MONEY, value="0241234567", now=1.0)
        state = apply(state, ActionType.VENDOR_LOOKUP_STARTED, number="0241234567", token=2)

        state = apply(state, ActionType.VENDOR_LOOKUP_RESOLVED, token=1, number="0551234567", name="Old")
        self.assertIsNone(state.vendor_validated_name)

        state = apply(state, ActionType.VENDOR_LOOKUP_RESOLVED, token=2, number="0241234567", name="Kofi")
        self.assertEqual(state.vendor_validated_name, "Kofi")

    def test_new_number_forgets_the_validated_one(self):
        state = apply(self.state, ActionType.SET_VENDOR_MOBILE_MONEY, value="0551234567", now=0.0)
        state = apply(state, ActionType.VENDOR_LOOKUP_STARTED, number="0551234567", token=1)
        state = apply(state, ActionType.VENDOR_LOOKUP_RESOLVED, token=1, number="0551234567", name="Ama")

        state = apply(state, ActionType.SET_VENDOR_MOBILE_MONEY, value="05512345678", now=1.0)
        self.assertIsNone(state.vendor_validated_name)
        self.assertIsNone(state.validated_vendor_number)

        state = apply(state, ActionType.SET_VENDOR_MOBILE_MONEY, value="0551234567", now=1.2)
        self.assertEqual(state.pending_vendor_number.value, "0551234567")

    def test_failed_lookup_allows_retry(self):
        state = apply(self.state, ActionType.SET_VENDOR_MOBILE_MONEY, value="0551234567", now=0.0)
        state = apply(state, ActionType.VENDOR_LOOKUP_STARTED, number="0551234567", token=1)
        state = apply(state, ActionType.VENDOR_LOOKUP_FAILED, token=1, number="0551234567", error="Nope")
        self.assertEqual(state.vendor_error, "Nope")
        self.assertIsNone(state.validated_vendor_number)

        state = apply(state, ActionType.SET_VENDOR_MOBILE_MONEY, value="0551234567", now=5.0)
        self.assertIsNotNone(state.pending_vendor_number)


class TestCardSelector(unittest.TestCase):
    def test_vendor_derives_branches_and_cards(self):
        state = vendor_session()
        self.assertEqual([b.branch_id for b in state.available_branches], [7, 8])
        self.assertEqual([c.card_id for c in state.vendor_cards], [41, 42, 51])

    def test_card_type_requires_branch(self):
        with self.assertRaises(ValidationException):
            apply(vendor_session(), ActionType.SELECT_CARD_TYPE, card_type=CardType.DASHX)

    def test_branch_must_belong_to_vendor(self):
        with self.assertRaises(ValidationException):
            apply(vendor_session(), ActionType.SELECT_BRANCH, branch_id=99)

    def test_card_type_switch_clears_selected_card(self):
        state = apply(vendor_session(), ActionType.SELECT_BRANCH, branch_id=7)
        state = apply(state, ActionType.SELECT_CARD_TYPE, card_type=CardType.DASHX)
        state = apply(state, ActionType.SELECT_CARD, card=state.vendor_cards[0])
        self.assertEqual(state.selected_card.card_id, 41)

        state = apply(state, ActionType.SELECT_CARD_TYPE, card_type=CardType.DASHPASS)
        self.assertIsNone(state.selected_card)
        self.assertEqual(state.card_type, CardType.DASHPASS)

    def test_card_must_match_card_type(self):
        state = apply(vendor_session(), ActionType.SELECT_BRANCH, branch_id=7)
        state = apply(state, ActionType.SELECT_CARD_TYPE, card_type=CardType.DASHPASS)
        with self.assertRaises(ValidationException):
            apply(state, ActionType.SELECT_CARD, card=state.vendor_cards[0])

    def test_branch_switch_clears_selected_card(self):
        state = apply(vendor_session(), ActionType.SELECT_BRANCH, branch_id=7)
        state = apply(state, ActionType.SELECT_CARD_TYPE, card_type=CardType.DASHX)
        state = apply(state, ActionType.SELECT_CARD, card=state.vendor_cards[0])
        state = apply(state, ActionType.SELECT_BRANCH, branch_id=8)
        self.assertIsNone(state.selected_card)


class TestBalanceSources(unittest.TestCase):
    def test_response_for_old_params_is_dropped_while_newer_query_loads(self):
        state = apply(vendor_session(), ActionType.SOURCE_LOADING, name="dashgo", key="new")
        state = apply(state, ActionType.SOURCE_RESOLVED, name="dashgo", key="old", data={"amount": 1})
        self.assertTrue(state.sources["dashgo"].loading)

        state = apply(state, ActionType.SOURCE_RESOLVED, name="dashgo", key="new", data={"amount": 2})
        self.assertEqual(state.sources["dashgo"].data, {"amount": 2})
        self.assertTrue(state.sources["dashgo"].loaded)

    def test_response_for_old_params_does_not_replace_a_loaded_entry(self):
        state = apply(vendor_session(), ActionType.SOURCE_LOADING, name="dashgo", key="new")
        state = apply(state, ActionType.SOURCE_RESOLVED, name="dashgo", key="new", data={"amount": 2})
        state = apply(state, ActionType.SOURCE_RESOLVED, name="dashgo", key="old", data={"amount": 1})
        self.assertEqual(state.sources["dashgo"].key, "new")
        self.assertEqual(state.sources["dashgo"].data, {"amount": 2})

        state = apply(state, ActionType.SOURCE_FAILED, name="dashgo", key="old", error="Timeout")
        self.assertTrue(state.sources["dashgo"].loaded)


class TestPostRedemption(unittest.TestCase):
    def setUp(self):
        state = vendor_session()
        self.success = apply(state, ActionType.REDEMPTION_SUCCEEDED, card_id=41, amount=50.0)

    def test_success_step(self):
        self.assertEqual(self.success.step, SessionStep.SUCCESS)
        self.assertEqual(self.success.redeemed_card_id, 41)

    def test_rating_bounds(self):
        state = apply(self.success, ActionType.START_RATING)
        self.assertEqual(apply(state, ActionType.SET_RATING, rating=5).rating, 5)
        for rating in (6, -1, "4"):
            with self.assertRaises(RatingValidationError):
                apply(state, ActionType.SET_RATING, rating=rating)

    def test_no_card_to_rate(self):
        state = apply(vendor_session(), ActionType.REDEMPTION_SUCCEEDED, card_id=0, amount=10.0)
        self.assertIsNone(state.redeemed_card_id)
        with self.assertRaises(InvalidStepException):
            apply(state, ActionType.START_RATING)

    def test_skip_and_submit_return_to_success(self):
        rating = apply(self.success, ActionType.START_RATING)
        self.assertEqual(apply(rating, ActionType.SKIP_RATING).step, SessionStep.SUCCESS)
        rated = apply(apply(rating, ActionType.SET_RATING, rating=3), ActionType.RATING_SUBMITTED)
        self.assertTrue(rated.rated)
        with self.assertRaises(InvalidStepException):
            apply(rated, ActionType.START_RATING)


if __name__ == "__main__":
    unittest.main()
