"""Centralized error handling for the redemption service

Every handled error becomes {"error": {...}} with a type matching the
exception boundary it came from:
- component: user input rejected (amount, card, branch, phone, rating)
- flow: action not allowed or not resolvable in the current session
- system: platform API, Redis or configuration failure

The workflow stores the message on the session, the API views return the
whole dict and pick the HTTP status from its type.
"""

import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from core.error.exceptions import (ComponentException, FlowException,
                                   SystemException)

logger = logging.getLogger(__name__)


class ErrorHandler:
    """Converts redemption errors into logged, structured responses"""

    # User-facing messages keyed by error type
    MESSAGES = {
        "component": {
            "invalid_amount": "Please enter a valid amount greater than 0",
            "insufficient_balance": "Insufficient balance",
            "invalid_card_type": "Please select a card type",
            "missing_branch": "Please select a branch",
            "missing_phone": "Please enter the phone number you received the gift card on",
            "missing_vendor": "Please select a vendor",
        },
        "flow": {
            "invalid_step": "Invalid step in redemption",
            "vendor_not_found": "Could not validate vendor. Please check the number and try again.",
            "balance_loading": "Balance is still loading. Please wait.",
        },
        "system": {
            "balance_error": "Failed to check balance. Please try again.",
            "redemption_failed": "Failed to process redemption. Please try again.",
            "rating_failed": "Failed to submit rating. Please try again.",
            "service_error": "Service unavailable",
            "unknown_error": "Unknown error occurred",
        },
    }

    @classmethod
    def message(cls, error_type: str, key: str) -> str:
        """User-facing text for a standard error, the unknown error text for bad keys"""
        return cls.MESSAGES.get(error_type, {}).get(key, cls.MESSAGES["system"]["unknown_error"])

    @classmethod
    def _respond(
        cls,
        error_type: str,
        message: str,
        details: Dict[str, Any],
        context: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        logger.error(f"Error handled: {error_type} - {message}", extra={"details": details})
        return {
            "error": {
                "type": error_type,
                "message": message,
                "details": details,
                "context": context or {},
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        }

    @classmethod
    def handle_component_error(cls, component: str, field: str, value: Any, message: str) -> Dict[str, Any]:
        """Input rejected by a workflow component or an API serializer"""
        return cls._respond("component", message, {
            "component": component,
            "field": field,
            "value": str(value)
        })

    @classmethod
    def handle_flow_error(cls, step: str, action: str, data: Dict, message: str) -> Dict[str, Any]:
        """Action refused in the current session step"""
        return cls._respond("flow", message, {
            "step": step,
            "action": action,
            "data": data
        })

    @classmethod
    def handle_system_error(
        cls,
        code: str,
        service: str,
        action: str,
        message: str,
        error: Optional[Exception] = None
    ) -> Dict[str, Any]:
        """Platform, storage or configuration failure

        Args:
            code: Machine readable code, e.g. API_ERROR or STATE_ERROR
            service: Service that failed
            action: Operation that was attempted
            message: User-facing message
            error: Exception to record with its traceback

        Returns:
            Dict with the standard error structure
        """
        details = {"code": code, "service": service, "action": action}
        context = {}
        if error is not None:
            details["error_type"] = error.__class__.__name__
            details["error_message"] = str(error)
            status_code = getattr(error, "status_code", None)
            if status_code is not None:
                details["status_code"] = status_code
            context = {
                "exception": repr(error),
                "traceback": traceback.format_exc()
            }
        return cls._respond("system", message, details, context)

    @classmethod
    def handle_exception(cls, error: Exception) -> Dict[str, Any]:
        """Route an exception to the handler for its boundary"""
        if isinstance(error, ComponentException):
            return cls.handle_component_error(
                component=error.details["component"],
                field=error.details["field"],
                value=error.details["value"],
                message=error.message
            )
        if isinstance(error, FlowException):
            return cls.handle_flow_error(
                step=error.details["step"],
                action=error.details["action"],
                data=error.details["data"],
                message=error.message
            )
        if isinstance(error, SystemException):
            return cls.handle_system_error(
                code=error.details["code"],
                service=error.details["service"],
                action=error.details["action"],
                message=error.message,
                error=error
            )
        return cls.handle_system_error(
            code="UNKNOWN_ERROR",
            service="redemption",
            action="unknown",
            message=cls.message("system", "unknown_error"),
            error=error
        )
