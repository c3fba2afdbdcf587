"""Implements EndpointResolver class."""

from zofwd.packet import normalize_mac


class EndpointResolver:
    """Map a hardware address to a known Host.

    Every call queries the host service; nothing is cached here because
    hosts move and the host service owns that state.
    """

    def __init__(self, host_service):
        self.host_service = host_service

    async def resolve(self, mac):
        """Return the Host for mac, or None if it is not known."""
        return await self.host_service.lookup(normalize_mac(mac))
