import os
import sys
import unittest
from unittest.mock import MagicMock, patch

import django
from redis import RedisError

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
os.environ.setdefault("CACHE_BACKEND", "locmem")
django.setup()

from rest_framework.test import APIClient  # noqa: E402

from fakes import AUTH_PHONE, VENDOR_RAW, InMemorySessionStore  # noqa: E402

BASE = "/redemption/sessions/"


class RedemptionViewTestCase(unittest.TestCase):
    def setUp(self):
        self.client = APIClient()
        self.store = InMemorySessionStore()
        store_patcher = patch("api.views.get_session_store", return_value=self.store)
        store_patcher.start()
        self.addCleanup(store_patcher.stop)

    def create(self, auth_phone=AUTH_PHONE):
        response = self.client.post(BASE, {"auth_phone": auth_phone}, format="json")
        self.assertEqual(response.status_code, 201)
        return response.json()["session_id"]

    def post(self, session_id, action, data=None, **extra):
        return self.client.post(f"{BASE}{session_id}/{action}/", data or {}, format="json", **extra)

    def age_pending_input(self, session_id, field):
        """Move debounced input past its idle window"""
        self.store.sessions[session_id][field]["at"] -= 10


class TestSessionLifecycle(RedemptionViewTestCase):
    def test_create_session(self):
        response = self.client.post(BASE, {}, format="json")
        body = response.json()
        self.assertEqual(response.status_code, 201)
        self.assertEqual(body["session"]["step"], "method")
        self.assertIsNone(body["session"]["auth_phone"])
        self.assertIn(body["session_id"], self.store.sessions)

    def test_unknown_session(self):
        response = self.client.get(f"{BASE}missing/")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"]["type"], "flow")

    def test_delete_session(self):
        session_id = self.create()
        self.assertEqual(self.client.delete(f"{BASE}{session_id}/").status_code, 204)
        self.assertEqual(self.client.get(f"{BASE}{session_id}/").status_code, 404)

    def test_invalid_input(self):
        session_id = self.create()
        response = self.post(session_id, "method", {"method": "cash"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["details"]["field"], "method")

    def test_action_in_wrong_step(self):
        session_id = self.create()
        response = self.post(session_id, "branch", {"branch_id": 7})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["session"]["step"], "method")

    def test_reset_keeps_authenticated_phone(self):
        session_id = self.create()
        self.post(session_id, "method", {"method": "vendor_id"})
        response = self.post(session_id, "reset")
        self.assertEqual(response.json()["session"]["step"], "method")
        self.assertEqual(response.json()["session"]["auth_phone"], AUTH_PHONE)

    def test_store_failure(self):
        from core.error.exceptions import SystemException
        self.store.load = MagicMock(side_effect=SystemException(
            message="Redis down", code="STATE_ERROR", service="session_store", action="load"
        ))
        response = self.client.get(f"{BASE}abc/")
        self.assertEqual(response.status_code, 502)


@patch("core.api.redemption.process_cards_redemption")
@patch("core.api.redemption.get_recipient_amount")
@patch("core.api.redemption.search_vendors")
class TestVendorIdRedemption(RedemptionViewTestCase):
    def test_dashgo_redemption(self, mock_search, mock_amount, mock_redeem):
        mock_search.return_value = {"data": {"data": [VENDOR_RAW]}}
        mock_amount.return_value = {"data": {"total_balance": 100, "cards": [{"card_id": 99}]}}
        mock_redeem.return_value = {"status": "success", "message": "Redeemed"}
        auth = {"HTTP_AUTHORIZATION": "Bearer user-token"}

        session_id = self.create()
        self.post(session_id, "method", {"method": "vendor_id"})
        self.post(session_id, "vendor-search", {"search": "Accra"})
        mock_search.assert_not_called()

        self.age_pending_input(session_id, "pending_vendor_search")
        poll = self.client.get(f"{BASE}{session_id}/")
        self.assertEqual(poll.json()["session"]["vendor_results"][0]["vendor_name"], "Accra Mart")

        self.post(session_id, "vendor", {"vendor_id": 3})
        branches = self.post(session_id, "branch", {"branch_id": 7}).json()["session"]["available_branches"]
        self.assertEqual([branch["branch_id"] for branch in branches], [7, 8])

        response = self.post(session_id, "card-type", {"card_type": "DashGo"}, **auth)
        mock_amount.assert_called_once_with(
            "dashgo", AUTH_PHONE, branch_id=7, vendor_id=3, token="user-token"
        )
        self.assertEqual(response.json()["session"]["balance"]["balance"], 100)

        response = self.post(session_id, "amount", {"amount": "25.5"})
        self.assertTrue(response.json()["session"]["can_submit"])

        response = self.post(session_id, "submit", **auth)
        body = response.json()
        self.assertEqual(response.status_code, 200)
        self.assertTrue(body["result"]["success"])
        mock_redeem.assert_called_once_with({
            "card_type": "DashGo",
            "phone_number": AUTH_PHONE,
            "amount": 25.5,
            "branch_id": 7,
            "card_id": 99,
        }, token="user-token")
        self.assertEqual(body["session"]["step"], "success")
        self.assertEqual(body["session"]["summary"]["remaining_balance"], 74.5)

    def test_insufficient_balance(self, mock_search, mock_amount, mock_redeem):
        mock_search.return_value = {"data": [VENDOR_RAW]}
        mock_amount.return_value = {"total_balance": 10}

        session_id = self.create()
        self.post(session_id, "method", {"method": "vendor_id"})
        self.post(session_id, "vendor-search", {"search": "Accra"})
        self.age_pending_input(session_id, "pending_vendor_search")
        self.client.get(f"{BASE}{session_id}/")
        self.post(session_id, "vendor", {"vendor_id": 3})
        self.post(session_id, "branch", {"branch_id": 7})
        self.post(session_id, "card-type", {"card_type": "dashgo"})
        self.post(session_id, "amount", {"amount": "50"})

        response = self.post(session_id, "submit")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["result"]["message"], "Insufficient balance")
        self.assertEqual(response.json()["session"]["step"], "details")
        mock_redeem.assert_not_called()


@patch("core.api.redemption.get_recipient_amount")
@patch("core.api.redemption.validate_vendor_mobile_money")
class TestVendorMobileMoney(RedemptionViewTestCase):
    def test_validation_and_submission(self, mock_validate, mock_amount):
        mock_validate.return_value = {"data": {"vendor_name": "Kofi Stores"}}
        mock_amount.return_value = {"data": {"total_balance": 60}}

        session_id = self.create()
        self.post(session_id, "method", {"method": "vendor_mobile_money"})
        response = self.post(session_id, "vendor-mobile-money", {"value": "0241234567"})
        self.assertTrue(response.json()["session"]["validating_vendor"])

        self.age_pending_input(session_id, "pending_vendor_number")
        poll = self.client.get(f"{BASE}{session_id}/").json()
        mock_validate.assert_called_once_with("233241234567", "mtn")
        self.assertEqual(poll["session"]["vendor_validated_name"], "Kofi Stores")
        self.assertFalse(poll["session"]["validating_vendor"])

        self.post(session_id, "amount", {"amount": "20"})
        response = self.post(session_id, "submit")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(
            response.json()["session"]["submission_error"],
            "Vendor mobile money redemption is not yet available"
        )


class TestHealthCheck(unittest.TestCase):
    @patch("api.views.redis.from_url")
    def test_healthy(self, mock_from_url):
        response = APIClient().get("/health/")
        self.assertEqual(response.status_code, 200)
        mock_from_url.return_value.ping.assert_called_once()

    @patch("api.views.redis.from_url")
    def test_unhealthy(self, mock_from_url):
        mock_from_url.return_value.ping.side_effect = RedisError("refused")
        response = APIClient().get("/health/")
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["status"], "unhealthy")


if __name__ == "__main__":
    unittest.main()
