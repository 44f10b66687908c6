"""Tests for the brand SMS gateway client, against an httpx mock transport."""

import asyncio

import httpx
import pytest

from shuttle_sms.core.errors import (
    GatewayRejectedError,
    GatewayResponseError,
    GatewayUnavailableError,
)


def _send(gateway, to="84912345678", message="Hello", request_id=""):
    return asyncio.run(gateway.send_sms(to, message, request_id=request_id))


class TestSendSms:
    def test_posts_the_gateway_payload(self, gateway, gateway_stub):
        body = _send(gateway, request_id="1700000000000_1")

        assert body == {"errorCode": "000"}
        assert len(gateway_stub.requests) == 1
        request = gateway_stub.requests[0]
        assert request.method == "POST"
        assert str(request.url) == gateway.url
        assert request.headers["token"] == "test-token"
        assert request.headers["content-type"] == "application/json"
        assert gateway_stub.payloads[0] == {
            "to": "84912345678",
            "from": "SHUTTLE",
            "message": "Hello",
            "scheduled": "",
            "requestId": "1700000000000_1",
            "useUnicode": 0,
            "type": 1,
        }

    def test_returns_non_success_codes_as_is(self, gateway, gateway_stub):
        gateway_stub.queue(httpx.Response(200, json={"errorCode": "011", "errorMessage": "template"}))
        assert _send(gateway)["errorCode"] == "011"

    def test_error_status_with_payload(self, gateway, gateway_stub):
        payload = {"errorCode": "019", "errorMessage": "bad phone", "sendMessage": {"to": "84123"}}
        gateway_stub.queue(httpx.Response(400, json=payload))

        with pytest.raises(GatewayRejectedError) as exc:
            _send(gateway)
        assert exc.value.status_code == 400
        assert exc.value.payload == payload

    def test_error_status_without_json(self, gateway, gateway_stub):
        gateway_stub.queue(httpx.Response(502, text="<html>Bad Gateway</html>"))

        with pytest.raises(GatewayRejectedError) as exc:
            _send(gateway)
        assert exc.value.status_code == 502
        assert exc.value.payload == {}

    def test_connection_error(self, gateway, gateway_stub):
        gateway_stub.queue(httpx.ConnectError)
        with pytest.raises(GatewayUnavailableError):
            _send(gateway)

    def test_timeout(self, gateway, gateway_stub):
        gateway_stub.queue(httpx.ReadTimeout)
        with pytest.raises(GatewayUnavailableError):
            _send(gateway)

    def test_success_status_with_unexpected_body(self, gateway, gateway_stub):
        gateway_stub.queue(httpx.Response(200, text="OK"))
        with pytest.raises(GatewayResponseError):
            _send(gateway)
