"""Session manager — login and keeping the session token alive."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from repwatch.apic.client import ApicClient
from repwatch.apic.models import LoginRequest
from repwatch.errors import ApicError, AuthError
from repwatch.session.models import DEFAULT_REFRESH_TIMEOUT, Session

logger = logging.getLogger(__name__)

LOGIN_PATH = "/api/aaaLogin.json"
REFRESH_PATH = "/api/aaaRefresh"

# Refresh this long before the server-declared lease runs out
REFRESH_MARGIN = 30


class SessionManager:
    """Logs in to the controller and refreshes the session before it expires."""

    def __init__(
        self,
        client: ApicClient,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        poll_interval: float = 1.0,
    ) -> None:
        self._client = client
        self._clock = clock
        self._sleep = sleep
        self._poll_interval = poll_interval

    async def login(self, username: str, password: str) -> Session:
        """Authenticate and return a fresh Session."""
        logger.info("Logging in to %s", self._client.host)
        payload = LoginRequest.for_credentials(username, password).to_payload()
        try:
            reply = await self._client.post(LOGIN_PATH, payload)
        except ApicError as e:
            raise AuthError(f"Login to {self._client.host} failed: {e}") from e

        attrs = reply.first_attributes("aaaLogin") or {}
        token = self._client.token or str(attrs.get("token", ""))
        session = Session(
            token=token,
            refresh_timeout=_parse_refresh_timeout(attrs.get("refreshTimeoutSeconds")),
            last_refresh=self._clock(),
        )
        logger.debug("Session lease is %ds", session.refresh_timeout)
        return session

    async def refresh(self, session: Session) -> None:
        """Renew the session token."""
        logger.debug("Refreshing login token")
        try:
            await self._client.touch(REFRESH_PATH)
        except ApicError as e:
            raise AuthError(f"Token refresh failed: {e}") from e
        session.last_refresh = self._clock()

    def refresh_due(self, session: Session) -> bool:
        limit = session.refresh_timeout - REFRESH_MARGIN
        return session.elapsed(self._clock()) > limit

    async def refresh_loop(self, session: Session) -> None:
        """Refresh the token whenever it nears expiry. Only returns by raising."""
        while True:
            if self.refresh_due(session):
                await self.refresh(session)
            await self._sleep(self._poll_interval)


def _parse_refresh_timeout(raw: object) -> int:
    try:
        return int(str(raw))
    except (TypeError, ValueError):
        logger.error(
            "Cannot convert refreshTimeoutSeconds %r, using %ds",
            raw,
            DEFAULT_REFRESH_TIMEOUT,
        )
        return DEFAULT_REFRESH_TIMEOUT
