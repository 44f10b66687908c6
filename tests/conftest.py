import json

import httpx
import pytest

from shuttle_sms.database.log_store import JsonFileLogStore
from shuttle_sms.services.dispatcher import SmsDispatcher
from shuttle_sms.services.line_parser import FreeTextLineParser
from shuttle_sms.services.rate_limiter import FixedIntervalScheduler
from shuttle_sms.services.sms_gateway_client import BrandSmsClient

FIXED_TIMESTAMP = "2024-12-20T08:00:00.000Z"
GATEWAY_URL = "https://gateway.test/api/SMSBrandname/SendSMS"


class RecordingSleep:
    """Stands in for asyncio.sleep and remembers every requested delay"""

    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


class GatewayStub:
    """httpx.MockTransport handler replaying queued responses.

    Queue httpx.Response objects, or httpx.RequestError subclasses to
    simulate transport failures. With an empty queue every call succeeds.
    """

    def __init__(self):
        self.requests = []
        self.responses = []

    def queue(self, *responses):
        self.responses.extend(responses)

    def __call__(self, request):
        self.requests.append(request)
        response = self.responses.pop(0) if self.responses else httpx.Response(200, json={"errorCode": "000"})
        if isinstance(response, type) and issubclass(response, Exception):
            raise response("simulated failure", request=request)
        return response

    @property
    def payloads(self):
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest.fixture
def scheduler(sleeper):
    return FixedIntervalScheduler(interval=3.0, jitter=0.0, sleep=sleeper)


@pytest.fixture
def gateway_stub():
    return GatewayStub()


@pytest.fixture
def gateway(gateway_stub):
    return BrandSmsClient(
        url=GATEWAY_URL,
        token="test-token",
        brand="SHUTTLE",
        timeout=5,
        client=httpx.AsyncClient(transport=httpx.MockTransport(gateway_stub)),
    )


@pytest.fixture
def log_path(tmp_path):
    return tmp_path / "sms-log.json"


@pytest.fixture
def log_store(log_path):
    store = JsonFileLogStore(str(log_path))
    store.ensure_exists()
    return store


@pytest.fixture
def dispatcher(gateway, log_store, scheduler):
    return SmsDispatcher(
        parser=FreeTextLineParser(),
        gateway=gateway,
        log_store=log_store,
        scheduler=scheduler,
        template="unit",
        hotline="19001997",
        request_id_mode="none",
        clock=lambda: FIXED_TIMESTAMP,
    )
