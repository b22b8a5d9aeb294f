"""Remediator — clears nodes whose rogue endpoint fault outlived the grace period."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from repwatch.actions.base import RemediationAction
from repwatch.errors import RemediationError
from repwatch.faults.registry import FaultRegistry

logger = logging.getLogger(__name__)


class Remediator:
    """Periodically scans the registry and remediates expired faults.

    Failures are logged and never stop the loop. The fault has already
    been removed from the registry, so it is only retried if it recurs.
    """

    def __init__(
        self,
        registry: FaultRegistry,
        action: RemediationAction,
        clear_delay: float,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        interval: float = 1.0,
    ) -> None:
        self._registry = registry
        self._action = action
        self._clear_delay = clear_delay
        self._sleep = sleep
        self._interval = interval

    async def run_once(self) -> int:
        """One scan pass. Returns the number of nodes cleared successfully."""
        cleared = 0
        for dn, node_dn in self._registry.scan_expired(self._clear_delay):
            logger.debug("Clearing node for fault: %s", dn)
            try:
                await self._action.clear_node(node_dn)
            except RemediationError as e:
                logger.error("Clearing node %s: %s", node_dn, e)
                continue
            cleared += 1
        return cleared

    async def run(self) -> None:
        """Scan forever at a fixed cadence."""
        logger.info("Starting remediation loop (clear delay %ss)", self._clear_delay)
        while True:
            await self.run_once()
            await self._sleep(self._interval)
