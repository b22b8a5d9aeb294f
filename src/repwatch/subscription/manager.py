"""Subscription manager — faultInst subscription, event socket, lease renewal."""

from __future__ import annotations

import asyncio
import json
import logging
import ssl
import time
from collections.abc import Awaitable, Callable
from typing import Any

import websockets
from pydantic import ValidationError
from websockets.exceptions import WebSocketException

from repwatch.apic.client import ApicClient
from repwatch.apic.models import FAULT_CLASS, ApicResponse
from repwatch.config import RepWatchConfig
from repwatch.errors import ApicError, SocketError, SubscriptionError
from repwatch.faults.registry import FaultRegistry
from repwatch.session.models import SUBSCRIPTION_LEASE, Session, Subscription

logger = logging.getLogger(__name__)

FAULT_QUERY_PATH = "/api/class/faultInst.json"
REFRESH_PATH = "/api/subscriptionRefresh.json"

# Rogue endpoint detection faults
FAULT_CODES = ("F3013", "F3014")


def fault_filter(codes: tuple[str, ...] = FAULT_CODES) -> str:
    """Build the query-target-filter matching any of ``codes``."""
    terms = ",".join(f'eq(faultInst.code,"{code}")' for code in codes)
    return f"or({terms})"


class SubscriptionManager:
    """Keeps a live faultInst subscription feeding the fault registry."""

    def __init__(
        self,
        client: ApicClient,
        registry: FaultRegistry,
        config: RepWatchConfig,
        connect: Callable[..., Awaitable[Any]] = websockets.connect,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        poll_interval: float = 1.0,
    ) -> None:
        self._client = client
        self._registry = registry
        self._config = config
        self._connect = connect
        self._clock = clock
        self._sleep = sleep
        self._poll_interval = poll_interval

    async def subscribe(self) -> Subscription:
        """Subscribe to rogue endpoint faults and ingest the current ones."""
        logger.info("Subscribing to rogue endpoint faults")
        params = {
            "query-target-filter": fault_filter(),
            "subscription": "yes",
        }
        try:
            reply = await self._client.get(FAULT_QUERY_PATH, params=params)
        except ApicError as e:
            raise SubscriptionError(f"Fault subscription failed: {e}") from e

        subscription_id = reply.subscription_id
        if isinstance(subscription_id, list):
            subscription_id = subscription_id[0] if subscription_id else None
        if not subscription_id:
            raise SubscriptionError("No subscription ID in reply")

        subscription = Subscription(id=subscription_id, last_refresh=self._clock())

        records = reply.attributes(FAULT_CLASS)
        ingested = sum(1 for record in records if self._registry.ingest(record))
        logger.info(
            "Subscription %s active, %d existing fault(s)", subscription.id, ingested
        )
        return subscription

    async def open_socket(self, session: Session) -> Any:
        """Open the event socket for the session's token."""
        logger.info("Connecting websocket")
        url = f"{self._config.socket_base_url}/socket{session.token}"
        try:
            return await self._connect(url, ssl=self._ssl_context())
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            raise SocketError(f"Websocket connection failed: {e}") from e

    async def listen(self, socket: Any) -> None:
        """Ingest fault events until the socket fails. Only returns by raising."""
        logger.info("Listening for incoming messages")
        while True:
            try:
                message = await socket.recv()
            except (OSError, WebSocketException) as e:
                raise SocketError(f"Websocket receive failed: {e}") from e
            self.handle_message(message)

    def handle_message(self, message: str | bytes) -> bool:
        """Ingest one socket frame. Returns True if a fault was recorded."""
        try:
            data = json.loads(message)
        except ValueError:
            logger.warning("Non-JSON msg rcvd: %r", message)
            return False
        try:
            frame = ApicResponse.model_validate(data)
        except ValidationError:
            logger.warning("Unexpected msg rcvd: %r", message)
            return False

        record = frame.first_attributes(FAULT_CLASS)
        if record is None:
            logger.warning("Error reading fault record: no faultInst in message")
            return False
        return self._registry.ingest(record)

    async def refresh(self, subscription: Subscription) -> None:
        """Renew the subscription lease."""
        logger.debug("Refreshing subscription %s", subscription.id)
        try:
            await self._client.get(REFRESH_PATH, params={"id": subscription.id})
        except ApicError as e:
            raise SubscriptionError(f"Subscription refresh failed: {e}") from e
        subscription.last_refresh = self._clock()

    def refresh_due(self, subscription: Subscription) -> bool:
        return subscription.elapsed(self._clock()) > SUBSCRIPTION_LEASE

    async def refresh_loop(self, subscription: Subscription) -> None:
        """Renew the lease every SUBSCRIPTION_LEASE seconds. Only returns by raising."""
        logger.info("Starting subscription refresh loop")
        while True:
            if self.refresh_due(subscription):
                await self.refresh(subscription)
            await self._sleep(self._poll_interval)

    def _ssl_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context()
        if not self._config.verify_ssl:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context
