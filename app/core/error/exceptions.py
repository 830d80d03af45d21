"""Core exceptions with clear error boundaries

This module defines the exceptions used throughout the redemption service.
Each exception maps to a specific error type with clear boundaries:

- component: client-side validation of user input (recoverable, blocks submission)
- flow: workflow business rules (wrong step, unresolved vendor, unimplemented path)
- system: platform API and configuration failures
"""

from typing import Dict, Optional


class BaseException(Exception):
    """Redemption error carrying a user-facing message and structured details"""
    def __init__(self, message: str, details: Optional[Dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ComponentException(BaseException):
    """User input rejected by a redemption component"""
    def __init__(
        self,
        message: str,
        component: str,
        field: str,
        value: str,
        validation: Optional[Dict] = None
    ):
        details = {
            "component": component,
            "field": field,
            "value": value,
            "validation": validation
        }
        super().__init__(message, details)


class FlowException(BaseException):
    """Action refused by the session workflow"""
    def __init__(
        self,
        message: str,
        step: str,
        action: str,
        data: Optional[Dict] = None
    ):
        details = {
            "step": step,
            "action": action,
            "data": data or {}
        }
        super().__init__(message, details)


class SystemException(BaseException):
    """Platform API, storage or configuration failure"""
    def __init__(
        self,
        message: str,
        code: str,
        service: str,
        action: str
    ):
        details = {
            "code": code,
            "service": service,
            "action": action
        }
        super().__init__(message, details)


# Specific component exceptions
class ValidationException(ComponentException):
    """Missing or invalid redemption input"""
    pass


class UnrecognizedProviderError(ValidationException):
    """Mobile money number prefix does not belong to a known provider"""
    def __init__(self, phone_number: str):
        super().__init__(
            message="Unrecognized mobile money provider for this number",
            component="vendor_resolver",
            field="vendor_mobile_money",
            value=phone_number
        )


class NoCardSelectedError(ValidationException):
    """A concrete card is required but none was chosen"""
    def __init__(self, card_type: str):
        super().__init__(
            message="Please select a card to redeem",
            component="submission_builder",
            field="selected_card",
            value=card_type
        )


class NoCardAvailableError(ValidationException):
    """No card could be resolved for the chosen card type"""
    def __init__(self, card_type: str):
        super().__init__(
            message="No card available for redemption",
            component="submission_builder",
            field="selected_card",
            value=card_type
        )


class RatingValidationError(ValidationException):
    """Rating outside the 1 to 5 star range"""
    def __init__(self, rating: int):
        super().__init__(
            message="Please select a rating between 1 and 5 stars",
            component="post_redemption",
            field="rating",
            value=str(rating)
        )


# Specific flow exceptions
class InvalidStepException(FlowException):
    """Action not allowed in the current step"""
    pass


class ResolutionException(FlowException):
    """Vendor or account could not be resolved"""
    pass


class NotImplementedRedemptionError(FlowException):
    """Redemption path with no backend call behind it"""
    pass


# Specific system exceptions
class ConfigurationException(SystemException):
    """Platform settings missing or an endpoint name unknown"""
    pass


class ServiceException(SystemException):
    """Platform API transport failure or non-2xx response"""
    def __init__(
        self,
        message: str,
        code: str,
        service: str,
        action: str,
        status_code: Optional[int] = None
    ):
        super().__init__(message, code, service, action)
        self.status_code = status_code
        self.details["status_code"] = status_code


class BalanceFetchException(SystemException):
    """Balance source call failed"""
    pass


class SubmissionException(SystemException):
    """Redemption or rating call failed or returned a non-success status"""
    pass
