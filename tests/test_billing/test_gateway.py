"""Tests for the MamoPay client using httpx.MockTransport."""

import httpx
import pytest

from digitalsite.billing.gateway import MamoPayClient
from digitalsite.config import Settings
from digitalsite.errors import ExternalServiceError


def _settings(**overrides) -> Settings:
    fields = {
        "jwt_secret_key": "gateway-test-secret",
        "mamopay_api_url": "https://sandbox.dev.business.mamopay.com/",
        "mamopay_api_key": "sk-test-123",
    }
    fields.update(overrides)
    return Settings(_env_file=None, **fields)


class TestCancelSubscription:
    """Test the subscriber cancellation call."""

    async def test_sends_authenticated_delete(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"success": True})

        client = MamoPayClient(_settings(), transport=httpx.MockTransport(handler))
        await client.cancel_subscription("MPB-SUB-1", "MPB-SUBR-9")

        assert len(seen) == 1
        request = seen[0]
        assert request.method == "DELETE"
        assert str(request.url) == (
            "https://sandbox.dev.business.mamopay.com/manage_api/v1/subscriptions/MPB-SUB-1/subscribers/MPB-SUBR-9"
        )
        assert request.headers["Authorization"] == "Bearer sk-test-123"

    async def test_error_status_raises_external_service_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(404, json={"error": "not found"}))
        client = MamoPayClient(_settings(), transport=transport)

        with pytest.raises(ExternalServiceError) as exc_info:
            await client.cancel_subscription("MPB-SUB-1", "MPB-SUBR-9")
        assert exc_info.value.details["status_code"] == 404
        assert exc_info.value.status_code == 502

    async def test_network_error_raises_external_service_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = MamoPayClient(_settings(), transport=httpx.MockTransport(handler))
        with pytest.raises(ExternalServiceError):
            await client.cancel_subscription("MPB-SUB-1", "MPB-SUBR-9")

    async def test_unconfigured_client_refuses_to_call(self):
        calls = []
        transport = httpx.MockTransport(lambda request: calls.append(request) or httpx.Response(200))
        client = MamoPayClient(_settings(mamopay_api_key=""), transport=transport)

        with pytest.raises(ExternalServiceError):
            await client.cancel_subscription("MPB-SUB-1", "MPB-SUBR-9")
        assert calls == []


class TestGetSubscriberId:
    """Test the subscriber lookup used after a subscription is created."""

    async def test_returns_first_subscriber_id(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json=[
                    {
                        "id": "MPB-SUBSCRIBER-ADDON-TEST",
                        "status": "Active",
                        "customer": {"id": "CUS-TEST", "email": "test@example.com"},
                    }
                ],
            )

        client = MamoPayClient(_settings(), transport=httpx.MockTransport(handler))
        assert await client.get_subscriber_id("MPB-SUB-1") == "MPB-SUBSCRIBER-ADDON-TEST"

        request = seen[0]
        assert request.method == "GET"
        assert str(request.url) == (
            "https://sandbox.dev.business.mamopay.com/manage_api/v1/subscriptions/MPB-SUB-1/subscribers"
        )
        assert request.headers["Authorization"] == "Bearer sk-test-123"

    async def test_empty_list_returns_none(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=[]))
        client = MamoPayClient(_settings(), transport=transport)
        assert await client.get_subscriber_id("MPB-SUB-1") is None

    async def test_error_status_raises_external_service_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(500, text="boom"))
        client = MamoPayClient(_settings(), transport=transport)

        with pytest.raises(ExternalServiceError) as exc_info:
            await client.get_subscriber_id("MPB-SUB-1")
        assert exc_info.value.details["status_code"] == 500

    async def test_non_json_body_raises_external_service_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>maintenance</html>"))
        client = MamoPayClient(_settings(), transport=transport)

        with pytest.raises(ExternalServiceError):
            await client.get_subscriber_id("MPB-SUB-1")

    async def test_unconfigured_client_refuses_to_call(self):
        calls = []
        transport = httpx.MockTransport(lambda request: calls.append(request) or httpx.Response(200, json=[]))
        client = MamoPayClient(_settings(mamopay_api_key=""), transport=transport)

        with pytest.raises(ExternalServiceError):
            await client.get_subscriber_id("MPB-SUB-1")
        assert calls == []
