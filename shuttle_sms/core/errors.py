"""
Exceptions raised by the parsing pipeline and the SMS gateway client.
"""

from typing import Any, Dict, Optional


class ShuttleSmsError(Exception):
    """Base error for this package"""


class ParseError(ShuttleSmsError):
    """Raised when an input line cannot be turned into a trip record"""

    def __init__(self, reason: str, field: Optional[str] = None):
        super().__init__(reason)
        self.reason = reason
        self.field = field


class GatewayError(ShuttleSmsError):
    """Base error for failed calls to the SMS gateway"""


class GatewayRejectedError(GatewayError):
    """The gateway answered with a non-2xx status.

    The payload is whatever JSON object could be read from the body
    (empty dict when the body is not a JSON object).
    """

    def __init__(self, status_code: int, payload: Optional[Dict[str, Any]] = None):
        self.status_code = status_code
        self.payload = payload or {}
        super().__init__(f"Gateway responded with HTTP {status_code}")


class GatewayUnavailableError(GatewayError):
    """No response was received from the gateway (connection error, timeout)"""


class GatewayResponseError(GatewayError):
    """A 2xx response whose body is not the expected JSON object"""
