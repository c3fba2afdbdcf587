"""In-memory collaborator services.

These back the demo and the tests. Each service yields to the event loop
on every call (optionally after `delay` seconds) so concurrent callers
interleave the way they would against a remote service.
"""

import asyncio
import itertools

import networkx as nx

from zofwd.exception import ServiceError
from zofwd.log import logger
from zofwd.model import ConnectPoint, Host, Link, Path
from zofwd.packet import normalize_mac
from zofwd.service import (FlowRuleService, HostService, PacketService,
                           TopologyService)


class MemoryHostService(HostService):
    """Host table keyed by MAC address."""

    delay = 0

    def __init__(self):
        self.hosts = {}

    def add_host(self, mac, device_id, port):
        """Learn (or move) a host."""
        host = Host(normalize_mac(mac), ConnectPoint(device_id, port))
        self.hosts[host.mac] = host
        return host

    def remove_host(self, mac):
        """Forget a host."""
        self.hosts.pop(normalize_mac(mac), None)

    async def lookup(self, mac):
        await asyncio.sleep(self.delay)
        return self.hosts.get(normalize_mac(mac))


class MemoryTopologyService(TopologyService):
    """Link graph answering shortest-path queries.

    `paths` returns every shortest path between two distinct devices. The
    snapshot is an immutable copy of the link set, so later topology
    changes do not affect queries against an earlier snapshot.
    """

    delay = 0

    def __init__(self):
        self.links = set()

    def add_link(self, src_device, src_port, dst_device, dst_port,
                 bidirectional=True):
        """Add a directed link, and its reverse if bidirectional."""
        src = ConnectPoint(src_device, src_port)
        dst = ConnectPoint(dst_device, dst_port)
        self.links.add(Link(src, dst))
        if bidirectional:
            self.links.add(Link(dst, src))

    def remove_link(self, src_device, src_port, dst_device, dst_port,
                    bidirectional=True):
        """Remove a directed link, and its reverse if bidirectional."""
        src = ConnectPoint(src_device, src_port)
        dst = ConnectPoint(dst_device, dst_port)
        self.links.discard(Link(src, dst))
        if bidirectional:
            self.links.discard(Link(dst, src))

    async def current_snapshot(self):
        await asyncio.sleep(self.delay)
        return frozenset(self.links)

    async def paths(self, snapshot, src_device, dst_device):
        await asyncio.sleep(self.delay)
        return shortest_paths(snapshot, src_device, dst_device)


def shortest_paths(links, src_device, dst_device):
    """Return set of all shortest Paths between two devices.

    Parallel links between the same pair of devices yield one Path each.
    """
    if src_device == dst_device:
        return set()

    graph = nx.MultiDiGraph()
    for link in links:
        graph.add_edge(link.src.device_id, link.dst.device_id, key=link)

    try:
        device_paths = list(nx.all_shortest_paths(graph, src_device, dst_device))
    except (nx.NodeNotFound, nx.NetworkXNoPath):
        return set()

    result = set()
    for devices in device_paths:
        hops = [list(graph[u][v]) for u, v in zip(devices, devices[1:])]
        for hop_links in itertools.product(*hops):
            result.add(Path(hop_links))
    return result


class MemoryPacketService(PacketService):
    """Packet-in bus with an interception registry.

    Duplicate subscriptions and interception requests are recorded as
    duplicates, so callers can observe double registration.
    """

    def __init__(self):
        self.consumers = []
        self.interceptions = []

    async def subscribe(self, consumer, priority):
        await asyncio.sleep(0)
        self.consumers.append((priority, consumer))
        # Higher priority consumers see packets first.
        self.consumers.sort(key=lambda item: item[0], reverse=True)

    async def unsubscribe(self, consumer):
        await asyncio.sleep(0)
        self.consumers = [(prio, cons) for prio, cons in self.consumers
                          if cons != consumer]

    async def request_interception(self, eth_type, priority, app_id):
        await asyncio.sleep(0)
        self.interceptions.append((eth_type, priority, app_id))

    async def cancel_interception(self, eth_type, priority, app_id):
        await asyncio.sleep(0)
        try:
            self.interceptions.remove((eth_type, priority, app_id))
        except ValueError:
            logger.debug('No interception request %#06x/%s for %s', eth_type,
                         priority, app_id)

    def intercepts(self, eth_type):
        """Return True if any app requested interception of eth_type."""
        return any(item[0] == eth_type for item in self.interceptions)

    def emit(self, packet_in):
        """Deliver packet_in to each consumer; return their results."""
        return [consumer(packet_in) for _, consumer in list(self.consumers)]


class MemoryFlowRuleService(FlowRuleService):
    """Per-device flow tables.

    Attributes:
        tables (dict): device_id -> {(table_id, priority, match): FlowRule}
        history (list): every rule passed to apply_rules, in order

    """

    delay = 0

    def __init__(self):
        self.tables = {}
        self.history = []

    async def apply_rules(self, rules):
        self.history.extend(rules)
        await asyncio.sleep(self.delay)
        for rule in rules:
            table = self.tables.setdefault(rule.device_id, {})
            table[(rule.table_id, rule.priority, rule.match)] = rule

    async def remove_rules_by_owner(self, app_id):
        await asyncio.sleep(self.delay)
        for device_id, table in self.tables.items():
            owned = [key for key, rule in table.items() if rule.app_id == app_id]
            for key in owned:
                del table[key]
            if owned:
                logger.debug('Removed %d rules owned by %s from %s', len(owned),
                             app_id, device_id)

    def rules(self, device_id=None, app_id=None):
        """Return list of installed rules, optionally filtered."""
        result = []
        for dev_id, table in self.tables.items():
            if device_id is not None and dev_id != device_id:
                continue
            result.extend(rule for rule in table.values()
                          if app_id is None or rule.app_id == app_id)
        return result


class FailingFlowRuleService(MemoryFlowRuleService):
    """Flow service that rejects rules for selected devices."""

    def __init__(self, fail_devices=()):
        super().__init__()
        self.fail_devices = set(fail_devices)
        self.fail_removal = False

    async def apply_rules(self, rules):
        for rule in rules:
            if rule.device_id in self.fail_devices:
                self.history.append(rule)
                await asyncio.sleep(0)
                raise ServiceError('flow', 'device %s rejected rule' %
                                   rule.device_id)
        await super().apply_rules(rules)

    async def remove_rules_by_owner(self, app_id):
        if self.fail_removal:
            await asyncio.sleep(0)
            raise ServiceError('flow', 'removal failed for %s' % app_id)
        await super().remove_rules_by_owner(app_id)
