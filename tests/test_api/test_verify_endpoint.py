"""Integration tests for account verification."""

import uuid

from httpx import AsyncClient
from sqlalchemy import select

from digitalsite.models.user import User


class TestVerifyEndpoint:
    """POST /api/v1/auth/verify"""

    async def _provision(self, client: AsyncClient, db_session, make_payload) -> tuple[User, str]:
        response = await client.post("/api/v1/webhooks/mamopay", json=make_payload())
        user_id = response.json()["userId"]
        user = await db_session.scalar(select(User).where(User.id == uuid.UUID(user_id)))
        return user, user_id

    async def test_verifies_account(self, client: AsyncClient, db_session, make_payload):
        user, user_id = await self._provision(client, db_session, make_payload)

        response = await client.post("/api/v1/auth/verify", json={"token": user.verification_token})

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == user_id
        assert data["verified"] is True

    async def test_reused_token_rejected(self, client: AsyncClient, db_session, make_payload):
        user, _ = await self._provision(client, db_session, make_payload)
        token = user.verification_token
        await client.post("/api/v1/auth/verify", json={"token": token})

        response = await client.post("/api/v1/auth/verify", json={"token": token})
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_token"

    async def test_short_password_rejected(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/verify", json={"token": "abc", "password": "short"})
        assert response.status_code == 422
