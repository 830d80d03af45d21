"""Gift card redemption workflow"""
from .state import Action, ActionType, RedemptionState, transition
from .types import (BalanceState, CardType, RedemptionMethod,
                    RedemptionPayload, SessionStep)
from .workflow import RedemptionResult, RedemptionWorkflow

__all__ = [
    "Action",
    "ActionType",
    "BalanceState",
    "CardType",
    "RedemptionMethod",
    "RedemptionPayload",
    "RedemptionResult",
    "RedemptionState",
    "RedemptionWorkflow",
    "SessionStep",
    "transition",
]
