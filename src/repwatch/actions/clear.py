"""Clear action — restart endpoint learning on a fabric node."""

from __future__ import annotations

import logging
import re

from repwatch.apic.client import ApicClient
from repwatch.apic.models import ClearEndpointRequest
from repwatch.errors import ApicError, RemediationError

logger = logging.getLogger(__name__)

_NODE_DN = re.compile(r"^topology/pod-[^/]+/node-[^/]+$")


class ClearEndpointAction:
    """Starts a topSystemClearEpLTask on the node.

    This changes live state on the switch. The controller gives no
    idempotence guarantee, so callers must not submit the same occurrence
    twice.
    """

    def __init__(self, client: ApicClient) -> None:
        self._client = client

    async def clear_node(self, node_dn: str) -> None:
        if not node_dn:
            raise RemediationError("Empty DN")
        if not _NODE_DN.match(node_dn):
            raise RemediationError(f"Unexpected DN format: {node_dn}")

        logger.info("Clearing node %s", node_dn)
        payload = ClearEndpointRequest.for_node(node_dn).to_payload()
        try:
            await self._client.post(f"/api/node/mo/{node_dn}/sys/action.json", payload)
        except ApicError as e:
            raise RemediationError(f"Clearing node {node_dn} failed: {e}") from e
