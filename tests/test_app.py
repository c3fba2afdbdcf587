"""Test zofwd.app module (intercept lifecycle)."""

import asyncio
import logging

import pytest

from mock_network import MAC_AA, MAC_BB, ipv4_packet_in
from zofwd import event as ev
from zofwd.exception import ServiceError
from zofwd.match import Match
from zofwd.model import FlowRule
from zofwd.packet import ETH_TYPE_IPV4
from zofwd.service.memory import FailingFlowRuleService, MemoryPacketService

# All test coroutines will be treated as marked.
pytestmark = pytest.mark.asyncio


async def _deliver(net, packet_in):
    """Emit packet_in on the bus and wait for the decision tasks."""
    tasks = [task for task in net.packets.emit(packet_in) if task]
    return await asyncio.gather(*tasks)


async def test_start_stop(net):
    app = net.make_app(app_id='org.test', consumer_priority=7,
                       intercept_priority=3)
    assert not app.running

    assert await app.start()
    assert app.running
    assert net.packets.consumers == [(7, app.on_packet_in)]
    assert net.packets.interceptions == [(ETH_TYPE_IPV4, 3, 'org.test')]
    assert app.status() == {
        'app_id': 'org.test',
        'running': True,
        'subscribed': True,
        'intercepting': True,
        'in_flight': 0,
        'cached_rules': 0
    }

    assert await app.stop()
    assert not app.running
    assert net.packets.consumers == []
    assert net.packets.interceptions == []
    assert net.events.kinds() == [ev.APP_STARTED, ev.APP_STOPPED]


async def test_double_start(net):
    app = net.make_app()
    assert await app.start()
    assert not await app.start()

    assert len(net.packets.consumers) == 1
    assert len(net.packets.interceptions) == 1
    misuse = net.events.find(ev.LIFECYCLE_MISUSE)
    assert [event.attrs['op'] for event in misuse] == ['start']
    await app.stop()


async def test_stop_not_started(net):
    app = net.make_app()
    assert not await app.stop()
    assert net.events.kinds() == [ev.LIFECYCLE_MISUSE]

    await app.start()
    assert await app.stop()
    assert not await app.stop()
    assert net.events.kinds().count(ev.LIFECYCLE_MISUSE) == 2


async def test_packet_in_installs_rule(net):
    app = net.make_app()
    await app.start()

    results = await _deliver(net, ipv4_packet_in(MAC_AA, MAC_BB, 'D2', 3))
    assert [rule.out_port for rule in results] == [7]
    assert net.flows.rules('D2')[0].match == Match(3, MAC_AA, MAC_BB)
    assert app.status()['cached_rules'] == 1
    await app.stop()


async def test_packet_in_event_dict(net):
    app = net.make_app()
    await app.start()

    event = {
        'type': 'PACKET_IN',
        'datapath_id': 'D2',
        'msg': {
            'in_port': 3,
            'pkt': {
                'eth_src': MAC_AA,
                'eth_dst': MAC_BB,
                'eth_type': 0x0800
            }
        }
    }
    results = await _deliver(net, event)
    assert results[0].device_id == 'D2'
    await app.stop()


async def test_packet_in_malformed(net, caplog):
    app = net.make_app()
    await app.start()

    event = {'type': 'PACKET_IN', 'datapath_id': 'D2', 'msg': {'in_port': 3}}
    assert app.on_packet_in(event) is None
    assert caplog.record_tuples[-1][1] == logging.WARNING
    await app.stop()


async def test_packet_in_malformed_fields(net, caplog):
    app = net.make_app()
    await app.start()
    seen = []
    await net.packets.subscribe(seen.append, 0)

    bad_events = [
        {'type': 'FLOW_REMOVED', 'datapath_id': 'D2', 'msg': {}},
        {'type': 'PACKET_IN', 'datapath_id': 'D2', 'msg': {
            'in_port': 3,
            'pkt': {'eth_src': None, 'eth_dst': MAC_BB, 'eth_type': 0x0800}
        }},
        {'type': 'PACKET_IN', 'datapath_id': 'D2', 'msg': {
            'in_port': 3,
            'pkt': {'eth_src': MAC_AA, 'eth_dst': MAC_BB, 'eth_type': None}
        }},
        {'type': 'PACKET_IN', 'datapath_id': 'D2', 'msg': {
            'in_port': 3, 'pkt': 5
        }},
    ]
    for event in bad_events:
        assert net.packets.emit(event) == [None, None]

    # Later consumers still see every event.
    assert seen == bad_events
    warnings = [r for r in caplog.record_tuples if r[1] == logging.WARNING]
    assert len(warnings) == len(bad_events)
    assert not net.flows.rules()
    await app.stop()


async def test_stop_removes_owned_rules(net):
    app = net.make_app(app_id='org.test')
    await app.start()
    await _deliver(net, ipv4_packet_in(MAC_AA, MAC_BB, 'D2', 3))

    foreign = FlowRule('D1', Match(1, MAC_BB, MAC_AA), 2, 10, True, 0,
                       'org.other', 0)
    await net.flows.apply_rules({foreign})

    assert await app.stop()
    assert net.flows.rules() == [foreign]
    assert not app.installer.cache

    # Packet-ins after stop are dropped.
    assert net.packets.emit(ipv4_packet_in(MAC_AA, MAC_BB, 'D2', 3)) == []
    assert app.on_packet_in(ipv4_packet_in(MAC_AA, MAC_BB, 'D2', 3)) is None


async def test_start_stop_cycle_leaves_nothing(net):
    app = net.make_app()
    await app.start()
    await _deliver(net, ipv4_packet_in(MAC_AA, MAC_BB, 'D2', 3))
    await app.stop()

    await app.start()
    await _deliver(net, ipv4_packet_in(MAC_AA, MAC_BB, 'D2', 3))
    assert len(net.flows.history) == 2
    await app.stop()

    assert net.flows.rules() == []
    assert net.packets.interceptions == []
    assert net.packets.consumers == []


async def test_stop_continues_after_failure(net):
    class _Packets(MemoryPacketService):
        async def unsubscribe(self, consumer):
            raise ServiceError('packet', 'bus unavailable')

    net.packets = _Packets()
    app = net.make_app()
    await app.start()
    await _deliver(net, ipv4_packet_in(MAC_AA, MAC_BB, 'D2', 3))

    assert not await app.stop()
    failed = net.events.find(ev.CLEANUP_FAILED)
    assert [event.attrs['step'] for event in failed] == ['unsubscribe']
    assert net.packets.interceptions == []
    assert net.flows.rules() == []
    assert net.events.find(ev.APP_STOPPED)[0].attrs['clean'] is False

    # Consumer is still registered, so restarting must not add another.
    assert app.subscribed
    await app.start()
    assert len(net.packets.consumers) == 1
    assert len(net.packets.interceptions) == 1


async def test_stop_rule_removal_failure(net):
    net.flows = FailingFlowRuleService()
    net.flows.fail_removal = True
    app = net.make_app()
    await app.start()

    assert not await app.stop()
    failed = net.events.find(ev.CLEANUP_FAILED)
    assert [event.attrs['step'] for event in failed] == ['remove_rules']
    assert net.packets.consumers == []
    assert net.packets.interceptions == []


async def test_start_failure_rolls_back(net):
    class _Packets(MemoryPacketService):
        async def request_interception(self, eth_type, priority, app_id):
            raise ServiceError('packet', 'denied')

    net.packets = _Packets()
    app = net.make_app()
    with pytest.raises(ServiceError):
        await app.start()

    assert not app.running
    assert not app.subscribed
    assert net.packets.consumers == []
    assert ev.APP_STARTED not in net.events.kinds()


async def test_stop_cancels_in_flight(net):
    net.hosts.delay = 5
    app = net.make_app()
    await app.start()

    tasks = net.packets.emit(ipv4_packet_in(MAC_AA, MAC_BB, 'D2', 3))
    await asyncio.sleep(0)
    assert app.status()['in_flight'] == 1

    assert await app.stop()
    assert tasks[0].cancelled()
    assert not net.flows.history


async def test_task_exception_is_reported(net, caplog):
    app = net.make_app()
    await app.start()

    async def _fail(packet_in):
        raise RuntimeError('unexpected')

    app.processor.process = _fail
    task = app.on_packet_in(ipv4_packet_in(MAC_AA, MAC_BB, 'D2', 3))
    with pytest.raises(RuntimeError):
        await task
    await asyncio.sleep(0)

    assert caplog.record_tuples[-1][1] == logging.CRITICAL
    assert 'unexpected' in caplog.record_tuples[-1][2]
    await app.stop()


async def test_host_moved_invalidates_cache(net):
    app = net.make_app()
    await app.start()
    await _deliver(net, ipv4_packet_in(MAC_AA, MAC_BB, 'D2', 3))
    assert app.installer.cache

    app.on_host_moved(MAC_BB)
    assert not app.installer.cache

    await _deliver(net, ipv4_packet_in(MAC_AA, MAC_BB, 'D2', 3))
    app.on_device_removed('D2')
    assert not app.installer.cache
    assert len(net.flows.history) == 2
    await app.stop()
