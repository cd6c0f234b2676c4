"""
PropValet Notifications - best-effort push delivery.

``dispatch`` schedules delivery as a detached task and returns at once.
Delivery may silently fail: errors are logged and swallowed, never turned
into a tool failure. ``drain`` awaits whatever is still in flight and is
used at shutdown and in tests.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Set

import httpx

logger = logging.getLogger(__name__)

# async (actor_id, title, body, data) -> bool
PushSender = Callable[[str, str, str, Dict[str, Any]], Awaitable[bool]]

REQUEST_TIMEOUT = 10.0


class HttpPushSender:
    """POSTs a notification to a push gateway endpoint."""

    def __init__(self, endpoint: str, api_key: str = ""):
        self.endpoint = endpoint
        self.api_key = api_key

    async def __call__(self, actor_id: str, title: str, body: str, data: Dict[str, Any]) -> bool:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        async with httpx.AsyncClient() as client:
            response = await client.post(
                self.endpoint,
                headers=headers,
                json={"user_id": actor_id, "title": title, "body": body, "data": data},
                timeout=REQUEST_TIMEOUT,
            )
        if response.status_code >= 400:
            logger.warning(f"Push gateway returned {response.status_code} for {actor_id}")
            return False
        return True


class NotificationDispatcher:
    """Fire-and-forget notification fan-out.

    Args:
        push_sender: Async callable that sends the push.
            Signature: async (actor_id, title, body, data) -> bool
    """

    def __init__(self, push_sender: Optional[PushSender] = None):
        self._push_sender = push_sender
        self._pending: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def dispatch(
        self,
        actor_id: str,
        notification_type: str,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> Optional[asyncio.Task]:
        """Schedule a notification. Must be called from inside a running loop."""
        if not self._push_sender:
            logger.debug(f"No push_sender configured, skipping {notification_type} for {actor_id}")
            return None

        payload = dict(data or {})
        payload["type"] = notification_type

        async def _bg_send():
            try:
                delivered = await self._push_sender(actor_id, title, body, payload)
                if not delivered:
                    logger.warning(f"Notification {notification_type} not delivered to {actor_id}")
            except Exception as e:
                logger.warning(f"Background notification {notification_type} failed: {e}")

        task = asyncio.create_task(_bg_send())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait for in-flight deliveries to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
