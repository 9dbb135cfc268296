"""
Shared HTTP plumbing for the provider clients.

One request per call with a fixed timeout; failures are logged and
re-raised as the caller's domain error. There is no retry.
"""

import logging
import os
from typing import Any, Dict, Optional, Type

import requests
from requests.exceptions import RequestException

from creche.gateways.exceptions import IntegrationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15


def default_timeout() -> float:
    return float(os.getenv("INTEGRATION_TIMEOUT", DEFAULT_TIMEOUT))


def send(
    method: str,
    url: str,
    *,
    headers: Dict[str, str],
    error_cls: Type[IntegrationError],
    action: str,
    timeout: Optional[float] = None,
    **kwargs,
) -> Any:
    """
    Perform one HTTP call and return the decoded JSON body.

    Args:
        method: get, post, put or delete
        url: Absolute URL
        headers: Request headers, including authentication
        error_cls: Exception raised on failure
        action: Short description used in logs and error messages

    Raises:
        error_cls: On connection errors, timeouts, non-2xx responses and
            bodies that are not JSON
    """
    call = getattr(requests, method.lower())
    try:
        resp = call(url, headers=headers, timeout=timeout or default_timeout(), **kwargs)
        resp.raise_for_status()
        if not resp.content:
            return {}
        return resp.json()
    except RequestException as exc:
        body = getattr(getattr(exc, "response", None), "text", "") or ""
        logger.exception("%s failed: %s", action, body[:500])
        raise error_cls(f"Failed to {action}", {"url": url, "response": body[:500]}) from exc
    except ValueError as exc:
        body = (getattr(resp, "text", "") or "")[:500]
        logger.error("%s returned a body that is not JSON: %s", action, body)
        raise error_cls(f"Failed to {action}: invalid response", {"url": url, "response": body}) from exc
