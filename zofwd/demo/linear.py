"""Linear Topology Demo

- Builds a chain of N switches with one host on port 1 of each switch.
- Switch i reaches switch i+1 on port 2 and switch i-1 on port 3.
- Replays an IPv4 packet-in for every host pair at every switch on the
  path, plus one ARP and one LLDP frame, then prints the installed rules.

With --status-endpoint, keeps running until SIGINT/SIGTERM so the status
server can be queried.
"""

import argparse
import asyncio
import signal

from prometheus_client import CollectorRegistry

from zofwd.app import ForwardingApp
from zofwd.configuration import Configuration
from zofwd.event import FanoutSink, LogSink, MetricsSink
from zofwd.logging import init_logging
from zofwd.packet import EtherType, Frame, PacketIn
from zofwd.service.memory import (MemoryFlowRuleService, MemoryHostService,
                                  MemoryPacketService, MemoryTopologyService,
                                  shortest_paths)

HOST_PORT = 1
NEXT_PORT = 2
PREV_PORT = 3


def arg_parser():
    """Return argument parser for the demo."""
    parser = argparse.ArgumentParser(
        prog='zofwd', description='Reactive forwarding demo')
    parser.add_argument(
        '--switches', type=int, default=3, help='number of switches')
    parser.add_argument(
        '--install-policy',
        choices=('path', 'host'),
        default='path',
        help='output port policy')
    parser.add_argument(
        '--loglevel', metavar='LEVEL', default='info', help='log level')
    parser.add_argument(
        '--logfile', metavar='FILE', help='log file (default: stderr)')
    parser.add_argument(
        '--status-endpoint',
        metavar='ENDPOINT',
        default='',
        help='HTTP endpoint for status server')
    return parser


def device_name(index):
    """Return device id of the switch at position index."""
    return 'sw%d' % index


def host_mac(index):
    """Return MAC of the host attached to switch index."""
    return '00:00:00:00:00:%02x' % index


def build_network(count):
    """Return (hosts, topology) services for a chain of switches."""
    hosts = MemoryHostService()
    topology = MemoryTopologyService()
    for i in range(1, count + 1):
        hosts.add_host(host_mac(i), device_name(i), HOST_PORT)
        if i < count:
            topology.add_link(device_name(i), NEXT_PORT, device_name(i + 1),
                              PREV_PORT)
    return hosts, topology


def replay_packets(topology, count):
    """Yield PacketIns a reactive network would punt to the controller."""
    for src in range(1, count + 1):
        for dst in range(1, count + 1):
            if src == dst:
                continue
            frame = Frame(host_mac(src), host_mac(dst), EtherType.IPV4.value)
            yield PacketIn(frame, device_name(src), HOST_PORT)
            paths = shortest_paths(topology.links, device_name(src),
                                   device_name(dst))
            for link in next(iter(paths)).links:
                yield PacketIn(frame, link.dst.device_id, link.dst.port)

    yield PacketIn(
        Frame(host_mac(1), 'ff:ff:ff:ff:ff:ff', EtherType.ARP.value),
        device_name(1), HOST_PORT)
    yield PacketIn(
        Frame(host_mac(1), '01:80:c2:00:00:0e', EtherType.LLDP.value),
        device_name(1), HOST_PORT)


async def run_demo(args):
    """Run the demo; return exit status."""
    hosts, topology = build_network(args.switches)
    packets = MemoryPacketService()
    flows = MemoryFlowRuleService()
    registry = CollectorRegistry()
    config = Configuration(
        install_policy=args.install_policy,
        status_endpoint=args.status_endpoint)
    app = ForwardingApp(
        hosts,
        topology,
        packets,
        flows,
        config=config,
        events=FanoutSink(LogSink(), MetricsSink(registry)),
        registry=registry)

    await app.start()
    tasks = []
    for packet_in in replay_packets(topology, args.switches):
        tasks.extend(task for task in packets.emit(packet_in) if task)
    await asyncio.gather(*tasks)

    for rule in sorted(flows.rules(), key=str):
        print(rule)

    if args.status_endpoint:
        await _wait_for_signal()

    await app.stop()
    return 0


async def _wait_for_signal():
    loop = asyncio.get_running_loop()
    stopped = asyncio.Event()
    for signum in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(signum, stopped.set)
    await stopped.wait()
    for signum in (signal.SIGTERM, signal.SIGINT):
        loop.remove_signal_handler(signum)


def main(argv=None):
    """Command line entry point."""
    parser = arg_parser()
    args = parser.parse_args(argv)
    if args.switches < 1:
        parser.error('--switches must be at least 1')
    init_logging(args.loglevel, args.logfile)
    return asyncio.run(run_demo(args))


if __name__ == '__main__':
    main()
