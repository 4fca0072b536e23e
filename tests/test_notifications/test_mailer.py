"""Tests for the SendGrid mailer with the SendGrid client patched out."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from digitalsite.config import Settings
from digitalsite.errors import ExternalServiceError
from digitalsite.notifications.mailer import Mailer
from digitalsite.notifications.templates import EmailContent

CONTENT = EmailContent(subject="Hello", text="Hi there", html="<p>Hi there</p>")


def _settings(**overrides) -> Settings:
    fields = {
        "jwt_secret_key": "mailer-test-secret",
        "sendgrid_api_key": "SG.test",
        "sendgrid_from_email": "billing@digitalsite.dev",
    }
    fields.update(overrides)
    return Settings(_env_file=None, **fields)


class TestMailer:
    """Test SendGrid delivery and mock mode."""

    async def test_mock_mode_without_api_key(self):
        mailer = Mailer(_settings(sendgrid_api_key=""))
        with patch("digitalsite.notifications.mailer.SendGridAPIClient") as client_cls:
            await mailer.send("jane@example.com", CONTENT)
        assert mailer.enabled is False
        client_cls.assert_not_called()

    async def test_sends_through_sendgrid(self):
        client = MagicMock()
        client.send.return_value = SimpleNamespace(status_code=202)
        with patch("digitalsite.notifications.mailer.SendGridAPIClient", return_value=client) as client_cls:
            await Mailer(_settings()).send("jane@example.com", CONTENT)

        client_cls.assert_called_once_with("SG.test")
        message = client.send.call_args.args[0]
        assert message.get()["subject"] == "Hello"

    async def test_rejected_status_raises(self):
        client = MagicMock()
        client.send.return_value = SimpleNamespace(status_code=400)
        with patch("digitalsite.notifications.mailer.SendGridAPIClient", return_value=client):
            with pytest.raises(ExternalServiceError):
                await Mailer(_settings()).send("jane@example.com", CONTENT)

    async def test_client_exception_wrapped(self):
        client = MagicMock()
        client.send.side_effect = RuntimeError("boom")
        with patch("digitalsite.notifications.mailer.SendGridAPIClient", return_value=client):
            with pytest.raises(ExternalServiceError):
                await Mailer(_settings()).send("jane@example.com", CONTENT)
