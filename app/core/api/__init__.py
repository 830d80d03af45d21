"""Gift card platform API package exposing pure functions for API interactions"""
from .base import make_api_request
from .config import PlatformConfig, PlatformEndpoints

__all__ = [
    'make_api_request',
    'PlatformConfig',
    'PlatformEndpoints',
]
