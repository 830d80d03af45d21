"""Base API functionality using pure functions"""
import logging
import time
from typing import Any, Dict, Optional

import requests
from requests.exceptions import RequestException

from core.config.timing import API_RETRY_DELAY, API_TIMEOUT, MAX_API_RETRIES
from core.error.exceptions import ServiceException

from .config import PlatformConfig, PlatformEndpoints

logger = logging.getLogger(__name__)


def _decode_body(response: requests.Response) -> Dict[str, Any]:
    """Decode a JSON body, tolerating empty and non-JSON responses"""
    if not response.content:
        return {}
    try:
        body = response.json()
    except ValueError:
        logger.debug(f"Non-JSON response body: {response.text[:200]}")
        return {"message": response.text}
    if isinstance(body, list):
        return {"data": body}
    return body if isinstance(body, dict) else {"data": body}


def make_api_request(
    endpoint: str,
    payload: Optional[Dict[str, Any]] = None,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None
) -> Dict[str, Any]:
    """Make a platform API request with logging, retries and error handling

    Args:
        endpoint: Endpoint name from PlatformEndpoints
        payload: JSON body for POST requests
        params: Query parameters for GET requests
        headers: Extra headers (e.g. Authorization) merged over the defaults

    Returns:
        Dict[str, Any]: Decoded response body. A bare JSON list is wrapped as {"data": [...]}

    Raises:
        ServiceException: On transport failure after retries or a non-2xx status
    """
    config = PlatformConfig.from_env()
    method = PlatformEndpoints.get_method(endpoint)
    url = config.get_url(PlatformEndpoints.get_path(endpoint))
    request_headers = config.get_headers()
    if headers:
        request_headers.update(headers)

    # Drop unset query params so optional filters are not sent as "None"
    if params:
        params = {key: value for key, value in params.items() if value not in (None, "")}

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"Making API request: {method} {url}")
        logger.debug(f"Params: {params}")
        logger.debug(f"Payload: {payload}")

    retries = 0
    while True:
        try:
            response = requests.request(
                method,
                url,
                headers=request_headers,
                json=payload if method != "GET" else None,
                params=params,
                timeout=API_TIMEOUT
            )
            break
        except RequestException as e:
            retries += 1
            logger.error(f"Request to {endpoint} failed ({retries}/{MAX_API_RETRIES}): {str(e)}")
            if retries >= MAX_API_RETRIES:
                raise ServiceException(
                    message=f"Request failed after {MAX_API_RETRIES} retries: {str(e)}",
                    code="REQUEST_FAILED",
                    service="platform_api",
                    action=f"{method}_{endpoint}"
                ) from e
            time.sleep(API_RETRY_DELAY)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"API Response Status: {response.status_code}")

    body = _decode_body(response)
    if not response.ok:
        message = body.get("message") or f"API request failed: {response.status_code}"
        logger.info(f"Non-2xx response from {endpoint}: {response.status_code}, data: {body}")
        raise ServiceException(
            message=message,
            code="API_ERROR",
            service="platform_api",
            action=f"{method}_{endpoint}",
            status_code=response.status_code
        )

    return body
