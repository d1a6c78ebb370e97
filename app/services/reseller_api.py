"""
app/services/reseller_api.py

Purpose: Reseller (Aryagami / Lycamobile Uganda) API client

- Authenticated JSON calls with the static API_KEY header
- Fixed-delay retry on transport failures and the technical-error code
- Business rejections surface immediately as ResellerAPIError
- Typed operations for balance, lookup, catalogue, purchases and status
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from app.core.config import Settings, settings
from app.core.exceptions import ResellerAPIError, ResellerTransportError
from app.core.logging import get_logger, LogContext
from app.services.error_codes import get_error_message, is_technical_error, normalize_code
from utils.constants import RESELLER_SUCCESS_STATUS
from utils.transaction_utils import extract_plan_list, normalize_plans

logger = get_logger(__name__)

SleepFunc = Callable[[float], Awaitable[Any]]


class ResellerAPIClient:
    """
    Async client for the reseller REST API.

    One client owns one httpx.AsyncClient; call close() on shutdown.
    Tests pass an httpx.MockTransport and a no-op sleep.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str],
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_delay: float = 2.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[SleepFunc] = None,
    ):
        self.base_url = base_url
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self._sleep = sleep or asyncio.sleep
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "API_KEY": api_key or "",
                "Content-Type": "application/json",
            },
        )

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None, **kwargs) -> "ResellerAPIClient":
        config = config or settings
        return cls(
            base_url=config.reseller_api_url,
            api_key=config.RESELLER_API_KEY,
            timeout=config.RESELLER_API_TIMEOUT,
            max_retries=config.RESELLER_MAX_RETRIES,
            retry_delay=config.RESELLER_RETRY_DELAY_SECONDS,
            **kwargs,
        )

    async def close(self):
        await self._client.aclose()

    async def call(self, method: str, endpoint: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Sends one logical request, retrying per the reseller retry policy.

        Args:
            method: "GET" or "POST"
            endpoint: Path relative to the base URL
            payload: JSON body for POST requests

        Returns:
            Parsed response body whose status is SUCCESS

        Raises:
            ResellerAPIError: Provider rejected the request (not retried)
            ResellerTransportError: No successful answer within max_retries attempts
        """
        last_error = None
        last_code = None

        with LogContext(endpoint=endpoint):
            for attempt in range(1, self.max_retries + 1):
                try:
                    response = await self._client.request(method, endpoint, json=payload)
                except httpx.HTTPError as e:
                    logger.warning(f"⚠️ Reseller transport error on {method} {endpoint} (attempt {attempt}/{self.max_retries}): {e}")
                    last_error, last_code = str(e) or type(e).__name__, None
                    await self._wait_before_retry(attempt)
                    continue

                logger.info(
                    f"📡 Reseller {method} {endpoint} -> HTTP {response.status_code} (attempt {attempt}/{self.max_retries})",
                    extra={"url": str(response.request.url), "method": method, "attempt": attempt, "http_status": response.status_code}
                )

                data = self._parse_body(response)
                if data is None:
                    logger.warning(f"⚠️ Reseller HTTP failure on {endpoint}: {response.status_code}")
                    last_error, last_code = f"HTTP {response.status_code}", None
                    await self._wait_before_retry(attempt)
                    continue

                if data.get("status") == RESELLER_SUCCESS_STATUS:
                    return data

                code = normalize_code(data.get("responseCode"))
                if is_technical_error(code):
                    logger.warning(f"⚠️ Reseller technical error [{code}] on {endpoint}, retrying")
                    last_error, last_code = get_error_message(code), code
                    await self._wait_before_retry(attempt)
                    continue

                message = get_error_message(code)
                logger.error(f"❌ Reseller rejected {endpoint} [{code}]: {message}")
                raise ResellerAPIError(code, message, details={"endpoint": endpoint, "response": data})

        logger.error(f"❌ Reseller request to {endpoint} failed after {self.max_retries} attempts: {last_error}")
        raise ResellerTransportError(
            f"Reseller request to {endpoint} failed after {self.max_retries} attempts",
            response_code=last_code,
            details={"endpoint": endpoint, "attempts": self.max_retries, "last_error": last_error},
        )

    @staticmethod
    def _parse_body(response: httpx.Response) -> Optional[Dict[str, Any]]:
        # Anything but a JSON object on HTTP 200 is handled like an HTTP failure
        if response.status_code != 200 or not response.content:
            return None
        try:
            data = response.json()
        except ValueError:
            return None
        return data if isinstance(data, dict) else None

    async def _wait_before_retry(self, attempt: int):
        if attempt < self.max_retries:
            await self._sleep(self.retry_delay)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def get_wallet_balance(self) -> Dict[str, Any]:
        return await self.call("GET", "/check_reseller_float_wallet_balance/")

    async def get_subscription_info(self, subscription_id: str) -> Dict[str, Any]:
        return await self.call("GET", f"/get_subscription_info/{subscription_id}")

    async def get_float_enabled_plans(self) -> List[Dict[str, Any]]:
        """
        Bundle catalogue as plain dicts: name, price, description, token.
        """
        data = await self.call("GET", "/get_float_enabled_plans/FloatBundle")
        raw = extract_plan_list(data)
        plans = normalize_plans(raw)
        if len(plans) < len(raw):
            logger.warning(f"⚠️ Skipped {len(raw) - len(plans)} catalogue entries without a token or readable price")
        return plans

    async def purchase_bundle(self, subscription_id: str, bundle_token: str, transaction_id: str) -> Dict[str, Any]:
        payload = {
            "subscriptionId": subscription_id,
            "immediateRecharge": False,
            "transactionId": transaction_id,
            "serviceBundleToken": bundle_token,
        }
        return await self.call("POST", "/efloat_reseller_request_direct_v1/", payload)

    async def purchase_airtime(self, subscription_id: str, amount: int, transaction_id: str) -> Dict[str, Any]:
        payload = {
            "ebalanceAmount": amount,
            "subscriptionId": subscription_id,
            "immediateRecharge": False,
            "transactionId": transaction_id,
        }
        return await self.call("POST", "/reseller_request_ebalance_direct_v1/", payload)

    async def check_transaction_status(self, transaction_id: str, subscription_id: str) -> Dict[str, Any]:
        return await self.call("GET", f"/check_ebalance_transaction_status/{transaction_id}/{subscription_id}")
