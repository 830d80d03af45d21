"""Debounced input and stale response protection

Both helpers are stateless over values kept in RedemptionState, so they work
across HTTP requests once the session is persisted.
"""
from typing import Optional

from core.config.timing import DEBOUNCE_WAIT

from .types import PendingInput


class Debouncer:
    """Fires the last pushed value once input has been idle for wait seconds"""

    def __init__(self, wait: float = DEBOUNCE_WAIT):
        self.wait = wait

    def push(self, value: str, now: float) -> PendingInput:
        """Schedule value, replacing whatever was pending"""
        return PendingInput(value=value, at=now)

    def is_due(self, pending: Optional[PendingInput], now: float) -> bool:
        return pending is not None and now - pending.at >= self.wait


class RequestGuard:
    """Only the response of the latest request is applied

    Each request gets a token one above the current one. A response is
    accepted when its token is still current and the input it was made for
    still matches the input on the session.
    """

    @staticmethod
    def issue(current_token: int) -> int:
        return current_token + 1

    @staticmethod
    def accepts(token: int, current_token: int, sent_value: str, current_value: str) -> bool:
        return token == current_token and sent_value == current_value
