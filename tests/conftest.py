"""Shared test fixtures."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Iterator
from datetime import datetime, timedelta, timezone
from pathlib import Path

import httpx
import pytest

from repwatch.apic.client import ApicClient
from repwatch.config import RepWatchConfig
from repwatch.faults.registry import FaultRegistry

HOST = "apic.example.com"
T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
FAULT_DN = "topology/pod-1/node-101/sys/ctx-[vxlan-2916352]/bd-[vxlan-15630274]/fault-F3014"


class FakeClock:
    """Monotonic clock whose sleep() advances time instead of waiting."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeWallClock:
    """Settable wall clock for fault ages."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeSocket:
    """Event socket that replays frames, then fails like a dropped connection."""

    def __init__(self, frames: list[str | bytes] | None = None) -> None:
        self.frames = list(frames or [])
        self.closed = False

    async def recv(self) -> str | bytes:
        if not self.frames:
            raise OSError("connection reset by peer")
        return self.frames.pop(0)

    async def close(self) -> None:
        self.closed = True


def fault_attrs(
    dn: str = FAULT_DN,
    lc: str = "raised",
    last_transition: str = "2024-05-01T12:00:00.000+00:00",
    descr: str = "Rogue endpoint detected",
) -> dict[str, str]:
    return {
        "dn": dn,
        "descr": descr,
        "lc": lc,
        "lastTransition": last_transition,
        "code": "F3014",
    }


def fault_frame(**kwargs: str) -> str:
    """A socket frame the way the controller pushes it."""
    return json.dumps(
        {
            "subscriptionId": ["72057598349672450"],
            "imdata": [{"faultInst": {"attributes": fault_attrs(**kwargs)}}],
        }
    )


def error_body(text: str, code: str = "401") -> dict:
    return {
        "totalCount": "1",
        "imdata": [{"error": {"attributes": {"code": code, "text": text}}}],
    }


def login_response(refresh_timeout: str | None = "600", token: str = "tok123") -> httpx.Response:
    attrs: dict[str, str] = {"token": token}
    if refresh_timeout is not None:
        attrs["refreshTimeoutSeconds"] = refresh_timeout
    return httpx.Response(
        200,
        json={"totalCount": "1", "imdata": [{"aaaLogin": {"attributes": attrs}}]},
        headers={"Set-Cookie": f"APIC-cookie={token}; path=/"},
    )


Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def config() -> RepWatchConfig:
    return RepWatchConfig(host=HOST, username="admin", password="secret")


@pytest.fixture
def make_client(config: RepWatchConfig) -> Iterator[Callable[[Handler], ApicClient]]:
    """Builds clients against a mock controller; closes them after the test."""
    clients: list[ApicClient] = []

    def factory(handler: Handler) -> ApicClient:
        client = ApicClient(config, transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield factory

    for client in clients:
        asyncio.run(client.aclose())


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def wall_clock() -> FakeWallClock:
    return FakeWallClock()


@pytest.fixture
def registry(wall_clock: FakeWallClock) -> FaultRegistry:
    return FaultRegistry(now=wall_clock)


@pytest.fixture
def fixtures_dir() -> Path:
    return Path(__file__).parent / "fixtures"
