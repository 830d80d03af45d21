"""Test doubles shared by the workflow and view tests"""
from unittest.mock import MagicMock

from core.redemption.state import RedemptionState

AUTH_PHONE = "233201234567"

VENDOR_RAW = {
    "vendor_id": 3,
    "business_name": "Accra Mart",
    "country": "Ghana",
    "gvid": "GV-3",
    "branches_with_cards": [
        {
            "branch_id": 7,
            "branch_name": "Osu",
            "branch_location": "Oxford Street",
            "cards": [
                {"card_id": 41, "card_name": "Gold", "card_type": "DashX", "card_price": 50},
                {"card_id": 42, "card_name": "Day Pass", "card_type": "DashPass", "card_price": 30},
            ],
        },
        {
            "branch_id": 8,
            "branch_name": "Airport",
            "cards": [
                {"card_id": 51, "card_name": "Silver", "card_type": "DashX", "card_price": 20},
            ],
        },
    ],
}


def make_api(**overrides):
    """Redemption API mock with JSON-safe default responses"""
    api = MagicMock()
    api.validate_vendor_mobile_money.return_value = {"data": {"account_name": "Ama Mensah"}}
    api.search_vendors.return_value = {"data": {"data": [VENDOR_RAW]}}
    api.get_recipient_amount.return_value = {"data": {"total_balance": 200, "cards": []}}
    api.get_card_balance.return_value = {"data": {"balance": 50}}
    api.process_cards_redemption.return_value = {"status": "success", "message": "Redemption successful"}
    api.rate_card.return_value = {"statusCode": 200, "message": "Thanks for rating"}
    for name, value in overrides.items():
        getattr(api, name).return_value = value
    return api


class InMemorySessionStore:
    """Session store keeping serialized state, like the Redis store does"""

    def __init__(self):
        self.sessions = {}
        self.saves = 0

    def create(self, auth_phone=None):
        session_id = f"session-{len(self.sessions) + 1}"
        state = RedemptionState(auth_phone=auth_phone or None)
        self.save(session_id, state)
        return session_id, state

    def load(self, session_id):
        data = self.sessions.get(session_id)
        return RedemptionState.from_dict(data) if data is not None else None

    def save(self, session_id, state):
        self.saves += 1
        self.sessions[session_id] = state.to_dict()

    def delete(self, session_id):
        self.sessions.pop(session_id, None)
