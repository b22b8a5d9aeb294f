"""Thin async HTTP client for the APIC REST API."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from repwatch.apic.models import ApicResponse
from repwatch.config import RepWatchConfig
from repwatch.errors import ApicError

logger = logging.getLogger(__name__)

COOKIE_NAME = "APIC-cookie"


class ApicClient:
    """Wraps an ``httpx.AsyncClient`` bound to one controller.

    Session state lives in the client's cookie jar: a successful login stores
    the ``APIC-cookie`` token, which is then sent with every request.
    """

    def __init__(
        self,
        config: RepWatchConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._http = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.http_timeout,
            verify=config.verify_ssl,
            transport=transport,
        )

    @property
    def host(self) -> str:
        return self._config.host

    @property
    def token(self) -> str:
        """The current session token, or '' before login."""
        for cookie in self._http.cookies.jar:
            if cookie.name == COOKIE_NAME and cookie.value:
                return cookie.value
        return ""

    def reset(self) -> None:
        """Forget the session token."""
        self._http.cookies.clear()

    async def get(self, path: str, params: dict[str, str] | None = None) -> ApicResponse:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, payload: dict[str, Any]) -> ApicResponse:
        return await self._request("POST", path, json=payload)

    async def touch(self, path: str) -> None:
        """GET an endpoint whose body is irrelevant; only transport and status matter."""
        response = await self._send("GET", path)
        if response.is_error:
            raise ApicError(
                f"HTTP status code: {response.status_code}", response.status_code
            )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        logger.debug("%s %s", method, path)
        try:
            return await self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise ApicError(f"{method} {path} failed: {e}") from e

    async def _request(self, method: str, path: str, **kwargs: Any) -> ApicResponse:
        response = await self._send(method, path, **kwargs)
        reply = _decode(response)

        # Controller errors arrive with a non-2xx status; prefer their text
        error = reply.error_text() if reply is not None else ""
        if error:
            raise ApicError(error, response.status_code)
        if response.is_error:
            raise ApicError(
                f"HTTP status code: {response.status_code}", response.status_code
            )
        if reply is None:
            raise ApicError(
                f"Unexpected reply from {path}: not an APIC JSON document",
                response.status_code,
            )
        return reply


def _decode(response: httpx.Response) -> ApicResponse | None:
    try:
        data = response.json()
    except ValueError:
        return None
    try:
        return ApicResponse.model_validate(data)
    except ValidationError:
        return None
