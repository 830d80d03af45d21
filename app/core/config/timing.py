"""Timing constants for session and API management"""
from decouple import config

# Redemption session lifetime in seconds
SESSION_TTL = config("REDEMPTION_SESSION_TTL", default=900, cast=int)

# API timeouts and retries
API_TIMEOUT = 30
API_RETRY_DELAY = 1
MAX_API_RETRIES = 3

# Idle time before a typed phone number or vendor search is sent (seconds)
DEBOUNCE_WAIT = 0.5

__all__ = [
    'SESSION_TTL',
    'API_TIMEOUT',
    'API_RETRY_DELAY',
    'MAX_API_RETRIES',
    'DEBOUNCE_WAIT'
]
