"""Gift card platform API configuration using environment variables"""
from dataclasses import dataclass
from typing import Dict
from urllib.parse import urljoin

from decouple import config

from core.error.exceptions import ConfigurationException


@dataclass
class PlatformConfig:
    """Configuration for gift card platform API access"""
    base_url: str
    client_api_key: str
    default_headers: Dict[str, str]

    @classmethod
    def from_env(cls) -> "PlatformConfig":
        """Create configuration from environment variables"""
        base_url = config("GIFTCARD_API_URL", default="http://localhost:8000/api/v1/")
        if not base_url:
            raise ConfigurationException(
                message="GIFTCARD_API_URL environment variable is not set",
                code="MISSING_BASE_URL",
                service="platform_config",
                action="from_env"
            )
        if not base_url.endswith('/'):
            base_url += '/'

        client_api_key = config("GIFTCARD_API_KEY", default="")

        default_headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if client_api_key:
            default_headers["x-client-api-key"] = client_api_key

        return cls(
            base_url=base_url,
            client_api_key=client_api_key,
            default_headers=default_headers
        )

    def get_url(self, path: str) -> str:
        """Get full URL for endpoint path"""
        if not path:
            raise ConfigurationException(
                message="Endpoint path is required",
                code="MISSING_PATH",
                service="platform_config",
                action="get_url"
            )

        return urljoin(self.base_url, path.lstrip('/'))

    def get_headers(self) -> Dict[str, str]:
        """Get default headers"""
        return self.default_headers.copy()


class PlatformEndpoints:
    """Platform API endpoint definitions"""

    ENDPOINTS = {
        'validate_vendor_mobile_money': {'method': 'POST', 'path': 'payments/mobile-money/account-details'},
        'public_vendors': {'method': 'GET', 'path': 'vendors/all/details'},
        'recipient_amount_dashgo': {'method': 'GET', 'path': 'redemptions/recipient-amounts/dash-go'},
        'recipient_amount_dashpro': {'method': 'GET', 'path': 'redemptions/recipient-amounts/dash-pro'},
        'recipient_amount_dashx': {'method': 'GET', 'path': 'redemptions/recipient-amounts/dash-x'},
        'recipient_amount_dashpass': {'method': 'GET', 'path': 'redemptions/recipient-amounts/dash-pass'},
        'card_balance': {'method': 'GET', 'path': 'redemptions/card-balance'},
        'cards_redemption': {'method': 'POST', 'path': 'redemptions/users/cards'},
        'rate_card': {'method': 'POST', 'path': 'cards/rate'},
    }

    @classmethod
    def _get(cls, name: str) -> Dict[str, str]:
        if name not in cls.ENDPOINTS:
            raise ConfigurationException(
                message=f"Invalid endpoint: {name}",
                code="INVALID_ENDPOINT",
                service="platform_config",
                action="get_endpoint"
            )
        return cls.ENDPOINTS[name]

    @classmethod
    def get_path(cls, name: str) -> str:
        """Get endpoint path"""
        return cls._get(name)['path']

    @classmethod
    def get_method(cls, name: str) -> str:
        """Get endpoint HTTP method"""
        return cls._get(name)['method']
