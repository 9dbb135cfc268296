"""
Logging setup and the exception hierarchy of the creche backend.

Importing this module configures the root logger once: stdout always, plus
a file when CRECHE_LOG_FILE is set (ignored on serverless deployments).
"""

import logging
import os
import sys
import traceback
from datetime import datetime
from functools import wraps
from typing import Any, Dict, Optional

_handlers = [logging.StreamHandler(sys.stdout)]
if os.getenv("CRECHE_LOG_FILE") and not os.getenv("VERCEL"):
    _handlers.append(logging.FileHandler(os.getenv("CRECHE_LOG_FILE")))

logging.basicConfig(
    level=getattr(logging, os.getenv("CRECHE_LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=_handlers,
)

logger = logging.getLogger(__name__)


class CrecheError(Exception):
    """
    Base exception for the backend.

    ``message`` is safe to show to the user; ``details`` carries whatever
    context helps debugging (provider response, failing function).
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details
        self.timestamp = datetime.now()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "detail": self.details,
            "type": type(self).__name__,
        }


class ValidationError(CrecheError):
    """Input rejected before any write or remote call."""


class CouponError(ValidationError):
    """Coupon cannot be applied; message is the user-facing reason."""


def error_handler(func):
    """
    Re-raise unexpected exceptions from ``func`` as CrecheError.

    The wrapped error keeps where it happened and the call arguments in
    ``details``. CrecheError subclasses pass through untouched.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except CrecheError:
            raise
        except Exception as e:
            frame = traceback.extract_tb(e.__traceback__)[-1]
            location = f"{frame.filename}:{frame.lineno}"
            details = {
                "error_type": type(e).__name__,
                "location": location,
                "function": func.__name__,
                "arguments": {"args": repr(args), "kwargs": repr(kwargs)},
            }
            logger.error("%s failed at %s: %s", func.__name__, location, e)
            logger.debug("Error details: %s", details)
            raise CrecheError(f"{func.__name__} failed: {e}", details) from e

    return wrapper
