"""Tests for fire-and-forget notification delivery."""

import logging

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from propvalet.notifications import HttpPushSender, NotificationDispatcher


class TestNotificationDispatcher:

    def test_no_sender_is_noop(self):
        assert NotificationDispatcher().dispatch("owner-1", "email_sent", "Email sent", "body") is None

    @pytest.mark.asyncio
    async def test_dispatch_schedules_and_drains(self):
        sender = AsyncMock(return_value=True)
        notifier = NotificationDispatcher(sender)

        task = notifier.dispatch("owner-1", "email_sent", "Email sent", "Rent due", {"to": "t@example.com"})
        assert task is not None

        await notifier.drain()

        sender.assert_awaited_once_with(
            "owner-1", "Email sent", "Rent due", {"to": "t@example.com", "type": "email_sent"}
        )
        assert notifier.pending == 0

    @pytest.mark.asyncio
    async def test_failure_is_logged_not_raised(self, caplog):
        sender = AsyncMock(side_effect=RuntimeError("gateway down"))
        notifier = NotificationDispatcher(sender)

        with caplog.at_level(logging.WARNING, logger="propvalet.notifications"):
            notifier.dispatch("owner-1", "arrears_action_logged", "Logged", "body")
            await notifier.drain()

        assert "gateway down" in caplog.text

    @pytest.mark.asyncio
    async def test_undelivered_is_logged(self, caplog):
        notifier = NotificationDispatcher(AsyncMock(return_value=False))

        with caplog.at_level(logging.WARNING, logger="propvalet.notifications"):
            notifier.dispatch("owner-1", "email_sent", "Email sent", "body")
            await notifier.drain()

        assert "not delivered" in caplog.text

    @pytest.mark.asyncio
    async def test_caller_data_not_mutated(self):
        notifier = NotificationDispatcher(AsyncMock(return_value=True))
        data = {"to": "t@example.com"}
        notifier.dispatch("owner-1", "email_sent", "Email sent", "body", data)
        await notifier.drain()
        assert data == {"to": "t@example.com"}


class TestHttpPushSender:

    @pytest.mark.asyncio
    async def test_posts_payload(self):
        client = MagicMock()
        client.post = AsyncMock(return_value=MagicMock(status_code=200))

        with patch("propvalet.notifications.httpx.AsyncClient") as client_cls:
            client_cls.return_value.__aenter__.return_value = client
            delivered = await HttpPushSender("https://push.example.com/send", "key-1")(
                "owner-1", "Title", "Body", {"type": "email_sent"}
            )

        assert delivered is True
        kwargs = client.post.call_args.kwargs
        assert kwargs["json"]["user_id"] == "owner-1"
        assert kwargs["headers"]["Authorization"] == "Bearer key-1"

    @pytest.mark.asyncio
    async def test_error_status(self):
        client = MagicMock()
        client.post = AsyncMock(return_value=MagicMock(status_code=503))

        with patch("propvalet.notifications.httpx.AsyncClient") as client_cls:
            client_cls.return_value.__aenter__.return_value = client
            delivered = await HttpPushSender("https://push.example.com/send")("owner-1", "T", "B", {})

        assert delivered is False
        assert "Authorization" not in client.post.call_args.kwargs["headers"]
