"""Fault data model and the parsing helpers it depends on."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime

from repwatch.errors import ParseError

RAISED = "raised"
NODE_DN_PREFIX = "topology/pod-"

_RFC3339 = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[Tt]"
    r"(?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<frac>\d+))?"
    r"(?P<tz>[Zz]|[+-]\d{2}:\d{2})$"
)


@dataclass(frozen=True)
class Fault:
    """One observed rogue-endpoint fault instance, keyed by ``dn``."""

    dn: str
    descr: str
    last_transition: datetime
    lc: str

    @property
    def is_raised(self) -> bool:
        return self.lc == RAISED


def parse_rfc3339(value: str) -> datetime:
    """Parse a strict RFC 3339 timestamp into an aware datetime.

    A UTC offset is mandatory. Fractional seconds beyond microseconds are
    truncated.
    """
    match = _RFC3339.match(value)
    if match is None:
        raise ParseError(f"Invalid RFC 3339 timestamp: {value!r}")

    frac = match.group("frac") or ""
    tz = match.group("tz")
    if tz in ("Z", "z"):
        tz = "+00:00"
    text = f"{match.group('date')}T{match.group('time')}"
    if frac:
        text += "." + frac[:6].ljust(6, "0")
    try:
        return datetime.fromisoformat(text + tz)
    except ValueError as e:
        raise ParseError(f"Invalid RFC 3339 timestamp: {value!r}") from e


def derive_node_dn(dn: str) -> str:
    """Return the node prefix of a fault dn.

    ``topology/pod-1/node-101/sys/...`` -> ``topology/pod-1/node-101``
    """
    if not dn.startswith(NODE_DN_PREFIX):
        raise ParseError(f"Unexpected DN format: {dn}")
    parts = dn.split("/")
    if len(parts) < 3 or not parts[2]:
        raise ParseError(f"DN has no node component: {dn}")
    return "/".join(parts[:3])
