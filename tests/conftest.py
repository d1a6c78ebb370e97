import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT", "development")

import httpx
import pytest

from app.core.config import Settings
from app.db.database import Database
from app.flow.dispatcher import ConversationEngine
from app.services.ledger_service import TransactionLedger
from app.services.reseller_api import ResellerAPIClient
from app.services.session_service import SessionStore
from app.services.user_service import UserService

RESELLER_BASE_URL = "http://reseller.test/recharge"

PLANS = [
    {
        "serviceBundleName": "Daily 1GB",
        "serviceBundlePrice": 1000,
        "serviceBundleDescription": "1GB valid for 24 hours",
        "serviceBundleToken": "tok-daily-1gb",
    },
    {
        "serviceBundleName": "Weekly 5GB",
        "serviceBundlePrice": 5000,
        "serviceBundleDescription": "5GB valid for 7 days",
        "serviceBundleToken": "tok-weekly-5gb",
    },
    {
        "serviceBundleName": "Monthly 20GB",
        "serviceBundlePrice": 50000,
        "serviceBundleDescription": "20GB valid for 30 days",
        "serviceBundleToken": "tok-monthly-20gb",
    },
]


class ResellerStub:
    """
    In-process stand-in for the reseller HTTP API, served through
    httpx.MockTransport.
    """

    def __init__(self):
        self.plans = list(PLANS)
        self.subscribers = {"256772123456": ("Jane", "Doe")}
        self.balance = 1500000
        self.purchase_response = {"status": "SUCCESS", "responseCode": 1, "referenceId": "REF-0001"}
        self.purchase_transport_error = False
        self.status_response = {"status": "SUCCESS", "transactionStatus": "SUCCESS"}
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path.endswith("/check_reseller_float_wallet_balance/"):
            return httpx.Response(200, json={"status": "SUCCESS", "balance": self.balance})

        if "/get_subscription_info/" in path:
            subscription_id = path.rsplit("/", 1)[-1]
            if subscription_id in self.subscribers:
                first, last = self.subscribers[subscription_id]
                return httpx.Response(200, json={
                    "status": "SUCCESS",
                    "subscriberName": first,
                    "subscriberSurname": last,
                })
            return httpx.Response(200, json={"status": "FAILED", "responseCode": "-10002"})

        if path.endswith("/get_float_enabled_plans/FloatBundle"):
            return httpx.Response(200, json={"status": "SUCCESS", "plans": self.plans})

        if path.endswith("/efloat_reseller_request_direct_v1/") or path.endswith("/reseller_request_ebalance_direct_v1/"):
            if self.purchase_transport_error:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json=self.purchase_response)

        if "/check_ebalance_transaction_status/" in path:
            return httpx.Response(200, json=self.status_response)

        return httpx.Response(404)

    def purchase_requests(self):
        return [r for r in self.requests if r.method == "POST"]


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite+aiosqlite://",
        RESELLER_API_KEY="test-key",
        MIN_AIRTIME_AMOUNT=500,
        MAX_RECHARGE_PER_HOUR=2,
        SESSION_TIMEOUT_MINUTES=30,
    )


@pytest.fixture
async def database():
    db = Database("sqlite+aiosqlite://")
    await db.create_tables()
    yield db
    await db.dispose()


@pytest.fixture
def reseller_stub():
    return ResellerStub()


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
async def reseller_client(reseller_stub, sleep_recorder):
    client = ResellerAPIClient(
        base_url=RESELLER_BASE_URL,
        api_key="test-key",
        retry_delay=2.0,
        transport=httpx.MockTransport(reseller_stub.handler),
        sleep=sleep_recorder,
    )
    yield client
    await client.close()


@pytest.fixture
def session_store(database):
    return SessionStore(database, timeout_minutes=30)


@pytest.fixture
def ledger(database):
    return TransactionLedger(database)


@pytest.fixture
def user_service(database):
    return UserService(database)


@pytest.fixture
def engine(reseller_client, session_store, ledger, user_service, test_settings):
    return ConversationEngine(
        reseller=reseller_client,
        sessions=session_store,
        ledger=ledger,
        users=user_service,
        config=test_settings,
    )
