"""Tests for the send_email tool and the Resend-compatible sender."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

import httpx

from propvalet.email import EmailContextGuard, OutboundEmail, ResendEmailSender, persona_for_actor
from propvalet.models import ToolContext
from propvalet.result import Failure, Success
from propvalet.tools.handlers.email import send_email


def _make_sender(result=None, enabled=True):
    sender = MagicMock()
    sender.is_enabled.return_value = enabled
    sender.send = AsyncMock(return_value=result or {"success": True, "message_id": "msg-1"})
    return sender


def _make_directory(role="owner", tenant=True, trade=True, email="owner@example.com"):
    directory = MagicMock()
    directory.get_profile = AsyncMock(return_value={"id": "actor-1", "email": email, "role": role})
    directory.is_tenant_of_owner = AsyncMock(return_value=tenant)
    directory.is_owner_of_tenant = AsyncMock(return_value=False)
    directory.is_trade_of_owner = AsyncMock(return_value=trade)
    directory.is_trade_assigned_to_tenant = AsyncMock(return_value=False)
    directory.owner_for_assigned_trade = AsyncMock(return_value="owner-1")
    return directory


def _make_context(sender=None, directory=None, notifier=None):
    return ToolContext(
        email_guard=EmailContextGuard(directory or _make_directory(), audit=MagicMock()),
        email_sender=sender or _make_sender(),
        notifier=notifier,
    )


def _args(**overrides):
    args = {
        "context_type": "rent_reminder",
        "to": "tenant@example.com",
        "subject": "Rent due Friday",
        "html_content": "<p>Your rent is due on Friday.</p>",
    }
    args.update(overrides)
    return args


class TestSendEmailRejections:

    @pytest.mark.asyncio
    async def test_arbitrary_context_never_reaches_provider(self):
        sender = _make_sender()

        result = await send_email(_args(context_type="send_arbitrary_email"), "owner-1", _make_context(sender))

        assert isinstance(result, Failure)
        assert "not an allowed email context" in result.message
        sender.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_context_type_required(self):
        result = await send_email(_args(context_type=None), "owner-1", _make_context())
        assert result == Failure("Missing required parameter: context_type")

    @pytest.mark.asyncio
    async def test_missing_fields(self):
        result = await send_email(_args(subject=""), "owner-1", _make_context())
        assert result == Failure("Missing required fields: to, subject, html_content")

    @pytest.mark.asyncio
    async def test_sender_not_configured(self):
        result = await send_email(_args(), "owner-1", _make_context(sender=_make_sender(enabled=False)))
        assert result == Failure("Email sending is not configured")

    @pytest.mark.asyncio
    async def test_unrelated_recipient_refused(self):
        sender = _make_sender()
        ctx = _make_context(sender, directory=_make_directory(tenant=False))

        result = await send_email(_args(to="stranger@example.com"), "owner-1", ctx)

        assert isinstance(result, Failure)
        sender.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_tenant_bcc_to_outsider_never_reaches_provider(self):
        sender = _make_sender()
        directory = _make_directory(role="tenant", email="tenant@example.com")
        directory.is_trade_assigned_to_tenant = AsyncMock(
            side_effect=lambda email, tenant_id: email == "fixit@example.com"
        )

        result = await send_email(
            _args(context_type="owner_to_trade", to="fixit@example.com", bcc=["stranger@evil.com"]),
            "tenant-1",
            _make_context(sender, directory=directory),
        )

        assert isinstance(result, Failure)
        sender.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_unrelated_cc_never_reaches_provider(self):
        sender = _make_sender()
        directory = _make_directory()
        directory.is_tenant_of_owner = AsyncMock(
            side_effect=lambda email, owner_id: email == "tenant@example.com"
        )

        result = await send_email(
            _args(cc="someone@else.com"), "owner-1", _make_context(sender, directory=directory)
        )

        assert isinstance(result, Failure)
        sender.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_provider_failure(self):
        sender = _make_sender(result={"success": False, "error": "Email send timed out"})
        result = await send_email(_args(), "owner-1", _make_context(sender))
        assert result == Failure("Email send timed out")


class TestSendEmailSuccess:

    @pytest.mark.asyncio
    async def test_system_email(self):
        sender = _make_sender()
        notifier = MagicMock()

        result = await send_email(_args(cc="owner@example.com"), "owner-1", _make_context(sender, notifier=notifier))

        assert isinstance(result, Success)
        assert result.data["from"] == "Casa <noreply@casaapp.com.au>"
        assert result.data["cc"] == ["owner@example.com"]
        assert result.data["message_id"] == "msg-1"
        message = sender.send.call_args.args[0]
        assert message.html == "<p>Your rent is due on Friday.</p>"
        notifier.dispatch.assert_called_once()

    @pytest.mark.asyncio
    async def test_trade_email_signed_by_persona(self):
        sender = _make_sender()
        persona = persona_for_actor("owner-1")

        result = await send_email(
            _args(context_type="trade_quote_request", to="fixit@example.com"),
            "owner-1",
            _make_context(sender),
        )

        assert result.data["from"] == f"{persona.display_name} <{persona.address}>"
        message = sender.send.call_args.args[0]
        assert message.html.endswith(persona.signature_html)


class TestOutboundEmail:

    def test_payload(self):
        message = OutboundEmail(
            from_address="Casa <noreply@casaapp.com.au>",
            to="tenant@example.com",
            subject="Hello",
            html="<p>Hi <b>there</b></p>",
            bcc=["audit@example.com"],
        )
        payload = message.to_payload()
        assert payload["to"] == ["tenant@example.com"]
        assert payload["text"] == "Hi there"
        assert payload["bcc"] == ["audit@example.com"]
        assert "cc" not in payload
        assert "reply_to" not in payload


class TestResendEmailSender:

    def _message(self):
        return OutboundEmail("Casa <noreply@casaapp.com.au>", "tenant@example.com", "Hi", "<p>Hi</p>")

    def test_disabled_without_key(self):
        assert ResendEmailSender(api_key="").is_enabled() is False
        assert ResendEmailSender(api_key="re_123").is_enabled() is True

    @pytest.mark.asyncio
    async def test_send_success(self):
        response = MagicMock(status_code=200)
        response.json.return_value = {"id": "msg-42"}
        client = MagicMock()
        client.post = AsyncMock(return_value=response)

        with patch("propvalet.email.provider.httpx.AsyncClient") as client_cls:
            client_cls.return_value.__aenter__.return_value = client
            result = await ResendEmailSender(api_key="re_123").send(self._message())

        assert result == {"success": True, "message_id": "msg-42"}
        headers = client.post.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer re_123"

    @pytest.mark.asyncio
    async def test_send_http_error(self):
        response = MagicMock(status_code=422, text="invalid from")
        client = MagicMock()
        client.post = AsyncMock(return_value=response)

        with patch("propvalet.email.provider.httpx.AsyncClient") as client_cls:
            client_cls.return_value.__aenter__.return_value = client
            result = await ResendEmailSender(api_key="re_123").send(self._message())

        assert result["success"] is False
        assert "422" in result["error"]

    @pytest.mark.asyncio
    async def test_send_timeout(self):
        client = MagicMock()
        client.post = AsyncMock(side_effect=httpx.ReadTimeout("slow"))

        with patch("propvalet.email.provider.httpx.AsyncClient") as client_cls:
            client_cls.return_value.__aenter__.return_value = client
            result = await ResendEmailSender(api_key="re_123").send(self._message())

        assert result == {"success": False, "error": "Email send timed out"}
