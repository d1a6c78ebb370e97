import json

import httpx
import pytest

from app.core.exceptions import ResellerAPIError, ResellerTransportError
from app.services.reseller_api import ResellerAPIClient
from tests.conftest import RESELLER_BASE_URL, SleepRecorder


def make_client(handler, sleep=None, **kwargs):
    return ResellerAPIClient(
        base_url=RESELLER_BASE_URL,
        api_key="secret-key",
        retry_delay=2.0,
        transport=httpx.MockTransport(handler),
        sleep=sleep or SleepRecorder(),
        **kwargs,
    )


class ScriptedHandler:
    """Returns the scripted responses in order, repeating the last one."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        response = self.responses[min(len(self.requests), len(self.responses)) - 1]
        if isinstance(response, Exception):
            raise response
        return response


async def test_technical_error_twice_then_success_is_retried():
    handler = ScriptedHandler(
        httpx.Response(200, json={"status": "FAILED", "responseCode": "-10017"}),
        httpx.Response(200, json={"status": "FAILED", "responseCode": -10017}),
        httpx.Response(200, json={"status": "SUCCESS", "balance": 42}),
    )
    sleep = SleepRecorder()
    client = make_client(handler, sleep)

    result = await client.get_wallet_balance()
    await client.close()

    assert result["balance"] == 42
    assert len(handler.requests) == 3
    assert sleep.delays == [2.0, 2.0]


async def test_business_rejection_fails_after_one_attempt():
    handler = ScriptedHandler(httpx.Response(200, json={"status": "FAILED", "responseCode": "-10030"}))
    sleep = SleepRecorder()
    client = make_client(handler, sleep)

    with pytest.raises(ResellerAPIError) as exc_info:
        await client.purchase_airtime("256772123456", 1000, "LYCA_1_abc")
    await client.close()

    assert exc_info.value.response_code == "-10030"
    assert "insufficient" in exc_info.value.message.lower()
    assert len(handler.requests) == 1
    assert sleep.delays == []


async def test_transport_failure_exhausts_retries():
    handler = ScriptedHandler(httpx.ConnectError("connection refused"))
    sleep = SleepRecorder()
    client = make_client(handler, sleep)

    with pytest.raises(ResellerTransportError) as exc_info:
        await client.get_float_enabled_plans()
    await client.close()

    assert len(handler.requests) == 3
    assert sleep.delays == [2.0, 2.0]
    assert "/get_float_enabled_plans/FloatBundle" in exc_info.value.message
    assert "3 attempts" in exc_info.value.message
    assert exc_info.value.response_code is None


async def test_technical_error_on_every_attempt_keeps_the_code():
    handler = ScriptedHandler(httpx.Response(200, json={"status": "FAILED", "responseCode": "-10017"}))
    client = make_client(handler)

    with pytest.raises(ResellerTransportError) as exc_info:
        await client.get_wallet_balance()
    await client.close()

    assert exc_info.value.response_code == "-10017"
    assert len(handler.requests) == 3


async def test_http_error_status_is_retried():
    handler = ScriptedHandler(
        httpx.Response(500, text="Internal Server Error"),
        httpx.Response(200, json={"status": "SUCCESS", "subscriberName": "Jane"}),
    )
    client = make_client(handler)

    result = await client.get_subscription_info("256772123456")
    await client.close()

    assert result["subscriberName"] == "Jane"
    assert len(handler.requests) == 2


async def test_requests_carry_api_key_and_json_payload():
    handler = ScriptedHandler(httpx.Response(200, json={"status": "SUCCESS"}))
    client = make_client(handler)

    await client.purchase_bundle("256772123456", "tok-1", "LYCA_1_abc")
    await client.close()

    request = handler.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/recharge/efloat_reseller_request_direct_v1/"
    assert request.headers["API_KEY"] == "secret-key"
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.content) == {
        "subscriptionId": "256772123456",
        "immediateRecharge": False,
        "transactionId": "LYCA_1_abc",
        "serviceBundleToken": "tok-1",
    }


async def test_transaction_status_endpoint():
    handler = ScriptedHandler(httpx.Response(200, json={"status": "SUCCESS"}))
    client = make_client(handler)

    await client.check_transaction_status("LYCA_1_abc", "256772123456")
    await client.close()

    assert handler.requests[0].url.path == "/recharge/check_ebalance_transaction_status/LYCA_1_abc/256772123456"


async def test_catalogue_is_normalized(reseller_client):
    plans = await reseller_client.get_float_enabled_plans()

    assert [plan["name"] for plan in plans] == ["Daily 1GB", "Weekly 5GB", "Monthly 20GB"]
    assert plans[0] == {
        "name": "Daily 1GB",
        "price": 1000,
        "description": "1GB valid for 24 hours",
        "token": "tok-daily-1gb",
    }
