"""Collaborator services consumed by the forwarding core.

Each class documents one capability. Implementations subclass these and
override every coroutine method. Failures are reported by raising
`zofwd.exception.ServiceError`.
"""

# pylint: disable=unused-argument


class HostService:
    """Endpoint tracking."""

    async def lookup(self, mac):
        """Return the Host with the given MAC, or None if unknown."""
        raise NotImplementedError


class TopologyService:
    """Topology query."""

    async def current_snapshot(self):
        """Return an opaque snapshot of the current topology."""
        raise NotImplementedError

    async def paths(self, snapshot, src_device, dst_device):
        """Return set of Paths from src_device to dst_device in snapshot."""
        raise NotImplementedError


class PacketService:
    """Packet-in subscription and interception requests."""

    async def subscribe(self, consumer, priority):
        """Register consumer(packet_in) at the given priority."""
        raise NotImplementedError

    async def unsubscribe(self, consumer):
        """Remove a registered consumer."""
        raise NotImplementedError

    async def request_interception(self, eth_type, priority, app_id):
        """Ask devices to punt frames of eth_type to the controller."""
        raise NotImplementedError

    async def cancel_interception(self, eth_type, priority, app_id):
        """Withdraw an interception request."""
        raise NotImplementedError


class FlowRuleService:
    """Flow programming."""

    async def apply_rules(self, rules):
        """Install a set of FlowRules."""
        raise NotImplementedError

    async def remove_rules_by_owner(self, app_id):
        """Remove every FlowRule owned by app_id from every device."""
        raise NotImplementedError
