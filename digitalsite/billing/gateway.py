"""Async MamoPay API client for the subscription calls billing needs."""

import logging

import httpx

from digitalsite.config import Settings
from digitalsite.errors import ExternalServiceError

logger = logging.getLogger(__name__)


class MamoPayClient:
    """Thin wrapper over the MamoPay management API."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = settings.mamopay_api_url.rstrip("/")
        self.api_key = settings.mamopay_api_key
        self.timeout = settings.mamopay_timeout_seconds
        self.configured = settings.mamopay_configured
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self.base_url}/manage_api/v1",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _request(self, method: str, path: str) -> httpx.Response:
        if not self.configured:
            raise ExternalServiceError("MamoPay API is not configured")

        async with self._client() as client:
            try:
                response = await client.request(method, path)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise ExternalServiceError(
                    f"MamoPay returned {e.response.status_code} for {method} {path}",
                    details={"status_code": e.response.status_code, "body": e.response.text},
                ) from e
            except httpx.HTTPError as e:
                raise ExternalServiceError(f"MamoPay request failed: {e}") from e
        return response

    async def get_subscriber_id(self, subscription_id: str) -> str | None:
        """Return the id of the subscriber enrolled on ``subscription_id``.

        Charge events do not carry the subscriber id, but unsubscribing needs
        it, so it is looked up once the subscription exists. Returns ``None``
        when MamoPay lists no subscribers yet.

        Raises:
            ExternalServiceError: If MamoPay is not configured, the call fails
                or the body is not a subscriber list.
        """
        response = await self._request("GET", f"/subscriptions/{subscription_id}/subscribers")
        try:
            subscribers = response.json()
        except ValueError as e:
            raise ExternalServiceError(f"MamoPay returned a non-JSON subscriber list for {subscription_id}") from e
        if isinstance(subscribers, dict):
            subscribers = subscribers.get("data", [])
        if not isinstance(subscribers, list):
            raise ExternalServiceError(f"Unexpected MamoPay subscriber list for {subscription_id}")
        if not subscribers:
            logger.warning("MamoPay lists no subscribers on subscription %s", subscription_id)
            return None
        return subscribers[0].get("id")

    async def cancel_subscription(self, subscription_id: str, subscriber_id: str) -> None:
        """Unsubscribe ``subscriber_id`` from the recurring ``subscription_id``.

        Raises:
            ExternalServiceError: If MamoPay is not configured or the call fails.
        """
        logger.info("Cancelling MamoPay subscriber %s on subscription %s", subscriber_id, subscription_id)
        await self._request("DELETE", f"/subscriptions/{subscription_id}/subscribers/{subscriber_id}")
        logger.info("MamoPay subscriber %s cancelled", subscriber_id)
