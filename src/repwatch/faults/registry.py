"""Thread-safe registry of active faults shared by the listener and the remediator."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import ValidationError

from repwatch.apic.models import FaultAttributes
from repwatch.errors import ParseError
from repwatch.faults.models import Fault, derive_node_dn, parse_rfc3339

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FaultRegistry:
    """Active faults keyed by dn, last write wins.

    Every read, write and removal takes ``_lock``. The lock is never held
    while a caller is suspended, so ``scan_expired`` re-acquires it for
    each entry it hands out.
    """

    def __init__(self, now: Callable[[], datetime] = _utcnow) -> None:
        self._now = now
        self._faults: dict[str, Fault] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._faults)

    def __contains__(self, dn: object) -> bool:
        with self._lock:
            return dn in self._faults

    def get(self, dn: str) -> Fault | None:
        with self._lock:
            return self._faults.get(dn)

    def snapshot(self) -> list[Fault]:
        """Return a consistent copy of all registered faults."""
        with self._lock:
            return list(self._faults.values())

    def clear(self) -> None:
        with self._lock:
            self._faults.clear()

    def record(self, attributes: Mapping[str, Any]) -> Fault:
        """Parse raw faultInst attributes and insert or overwrite the entry.

        Raises ParseError if the record is malformed; the registry is then
        left untouched.
        """
        try:
            attrs = FaultAttributes.model_validate(dict(attributes))
        except (ValidationError, TypeError, ValueError) as e:
            raise ParseError(f"Malformed fault record: {e}") from e

        fault = Fault(
            dn=attrs.dn,
            descr=attrs.descr,
            last_transition=parse_rfc3339(attrs.last_transition),
            lc=attrs.lc,
        )
        with self._lock:
            self._faults[fault.dn] = fault
        logger.debug("Fault %s [%s] %s", fault.dn, fault.lc, fault.descr)
        return fault

    def ingest(self, attributes: Mapping[str, Any]) -> bool:
        """Like record(), but malformed records are logged and dropped."""
        try:
            self.record(attributes)
        except ParseError as e:
            logger.warning("Error reading fault record: %s", e)
            return False
        return True

    def scan_expired(self, delay: float) -> Iterator[tuple[str, str]]:
        """Yield ``(dn, node_dn)`` for raised faults older than ``delay`` seconds.

        Each entry is removed from the registry before it is yielded, so a
        fault is handed out at most once per occurrence. A fault whose node
        cannot be derived is removed and logged instead.
        """
        limit = timedelta(seconds=delay)
        with self._lock:
            candidates = list(self._faults)

        for dn in candidates:
            with self._lock:
                fault = self._faults.get(dn)
                if fault is None or not fault.is_raised:
                    continue
                if self._now() - fault.last_transition <= limit:
                    continue
                del self._faults[dn]

            try:
                node_dn = derive_node_dn(dn)
            except ParseError as e:
                logger.error("Skipping fault %s: %s", dn, e)
                continue
            yield dn, node_dn
