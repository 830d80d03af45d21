"""Core configuration

This module provides timing constants shared by the API client and the
redemption workflow.
"""

from .timing import (API_RETRY_DELAY, API_TIMEOUT, DEBOUNCE_WAIT,
                     MAX_API_RETRIES, SESSION_TTL)

__all__ = [
    'API_RETRY_DELAY',
    'API_TIMEOUT',
    'DEBOUNCE_WAIT',
    'MAX_API_RETRIES',
    'SESSION_TTL'
]
