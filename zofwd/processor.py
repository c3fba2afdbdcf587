"""Implements the packet classifier and decision loop."""

from zofwd import event as ev
from zofwd.exception import InstallError, ServiceError
from zofwd.packet import EtherType


class PacketProcessor:
    """Decide what to do with each packet-in.

    The processor holds no per-flow state. `process` may run concurrently
    for many packet-ins; all shared state lives in the collaborators and
    in the installer's rule cache.
    """

    def __init__(self, resolver, selector, installer, config, events):
        self.resolver = resolver
        self.selector = selector
        self.installer = installer
        self.config = config
        self.events = events

    async def process(self, packet_in):
        """Classify packet_in and run the decision sequence for IPv4.

        Returns:
            FlowRule installed for this packet, or None if no action
            was taken.

        """
        frame = packet_in.frame
        ether_type = frame.ether_type

        if ether_type is EtherType.IPV4:
            return await self._process_ipv4(packet_in)

        if ether_type is EtherType.ARP:
            self.events.emit(
                ev.ARP_OBSERVED, device=packet_in.device_id,
                in_port=packet_in.in_port, eth_src=frame.eth_src,
                eth_dst=frame.eth_dst)
        else:
            self.events.emit(
                ev.FRAME_IGNORED, device=packet_in.device_id,
                eth_type='%#06x' % frame.eth_type)
        return None

    async def _process_ipv4(self, packet_in):
        """Run the decision sequence for an IPv4 frame."""
        frame = packet_in.frame
        device_id = packet_in.device_id

        try:
            dst = await self.resolver.resolve(frame.eth_dst)
            src = await self.resolver.resolve(frame.eth_src)
        except ServiceError as ex:
            self.events.emit(ev.SERVICE_ERROR, stage='resolve', error=str(ex))
            return None

        if dst is None or src is None:
            missing = [mac for mac, host in ((frame.eth_dst, dst),
                                             (frame.eth_src, src))
                       if host is None]
            self.events.emit(
                ev.ENDPOINT_UNRESOLVED, device=device_id,
                mac=','.join(missing))
            return None

        if device_id == src.device_id:
            self.events.emit(
                ev.INGRESS_EDGE, device=device_id, eth_src=frame.eth_src)

        if device_id != dst.device_id:
            self.events.emit(
                ev.TRANSIT, device=device_id, eth_dst=frame.eth_dst,
                dst_device=dst.device_id)
            return None

        self.events.emit(ev.EGRESS_EDGE, device=device_id, eth_dst=frame.eth_dst)

        try:
            path = await self.selector.select(src.device_id, dst.device_id)
        except ServiceError as ex:
            self.events.emit(ev.SERVICE_ERROR, stage='path', error=str(ex))
            return None

        if path is None:
            self.events.emit(
                ev.NO_ROUTE, src_device=src.device_id,
                dst_device=dst.device_id)
            return None

        self.events.emit(ev.PATH_SELECTED, path=str(path), hops=path.hop_count)

        out_port = self._output_port(packet_in, dst, path)
        if out_port is None:
            self.events.emit(
                ev.POLICY_SKIPPED, device=device_id,
                policy=self.config.install_policy)
            return None

        try:
            return await self.installer.install(device_id, packet_in.in_port,
                                                out_port, frame.eth_src,
                                                frame.eth_dst)
        except InstallError as ex:
            self.events.emit(
                ev.RULE_INSTALL_FAILED, device=device_id, error=ex.message)
            return None

    def _output_port(self, packet_in, dst, path):
        """Return output port under the configured policy, or None."""
        config = self.config
        policy = config.install_policy
        if policy == 'path':
            return path.dst.port
        if policy == 'host':
            return dst.location.port
        assert policy == 'fixed'
        if packet_in.device_id != config.fixed_device_id:
            return None
        return config.fixed_out_port
