"""
Brand SMS gateway client.
"""

import httpx
import logging
from typing import Optional, Dict, Any

from shuttle_sms.core.config import settings
from shuttle_sms.core.errors import (
    GatewayRejectedError,
    GatewayResponseError,
    GatewayUnavailableError,
)

logger = logging.getLogger(__name__)


class BrandSmsClient:
    """Client for the brandsms SendSMS endpoint"""

    def __init__(
        self,
        url: Optional[str] = None,
        token: Optional[str] = None,
        brand: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = (url or settings.SMS_GATEWAY_URL).rstrip("/")
        self.brand = brand if brand is not None else settings.SMS_BRAND
        self.timeout = timeout if timeout is not None else settings.SMS_GATEWAY_TIMEOUT
        self.headers = {
            "Content-Type": "application/json",
            "token": token if token is not None else settings.SMS_GATEWAY_TOKEN,
        }
        self.client = client or httpx.AsyncClient(timeout=self.timeout)
        logger.info(f"Brand SMS client initialized: url={self.url}, brand={self.brand}")

    async def send_sms(self, to: str, message: str, request_id: str = "") -> Dict[str, Any]:
        """
        Send one customer-care SMS.

        Args:
            to: Phone number in international format (84...)
            message: ASCII message body
            request_id: Idempotency token, empty when not used

        Returns:
            The gateway JSON body, which carries "errorCode" ("000" on success)

        Raises:
            GatewayUnavailableError: no response received
            GatewayRejectedError: non-2xx response
            GatewayResponseError: 2xx response that is not a JSON object
        """
        data = {
            "to": to,
            "from": self.brand,
            "message": message,
            "scheduled": "",
            "requestId": request_id,
            "useUnicode": 0,
            "type": 1,
        }

        try:
            response = await self.client.post(self.url, headers=self.headers, json=data)
        except httpx.RequestError as e:
            logger.warning(f"[BRANDSMS] Request error sending to {to}: {type(e).__name__}: {e}")
            raise GatewayUnavailableError(str(e) or type(e).__name__) from e

        if response.is_error:
            logger.warning(f"[BRANDSMS] HTTP {response.status_code} sending to {to}: {response.text}")
            raise GatewayRejectedError(response.status_code, self._json_object(response))

        body = self._json_object(response)
        if body is None:
            logger.warning(f"[BRANDSMS] Unexpected response body sending to {to}: {response.text}")
            raise GatewayResponseError(f"Unexpected gateway response: {response.text[:200]}")

        logger.info(f"[BRANDSMS] Sent to {to}: errorCode={body.get('errorCode')}")
        return body

    @staticmethod
    def _json_object(response: httpx.Response) -> Optional[Dict[str, Any]]:
        try:
            body = response.json()
        except ValueError:
            return None
        return body if isinstance(body, dict) else None

    async def close(self):
        """Close HTTP client"""
        await self.client.aclose()
