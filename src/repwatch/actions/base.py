"""Remediation action protocol — what to do with a node whose fault got stuck."""

from __future__ import annotations

from typing import Protocol


class RemediationAction(Protocol):
    """Protocol for node remediation actions."""

    async def clear_node(self, node_dn: str) -> None:
        """Remediate the node. Raises RemediationError on failure."""
        ...
