"""Implements ForwardingApp, the intercept lifecycle."""

from typing import Any, Dict, Optional  # pylint: disable=unused-import

import asyncio

from prometheus_client import REGISTRY

from zofwd import event as ev
from zofwd.configuration import Configuration
from zofwd.event import EventSink, LogSink
from zofwd.http import make_status_server
from zofwd.installer import FlowInstaller
from zofwd.log import logger
from zofwd.packet import ETH_TYPE_IPV4, PacketIn
from zofwd.pathselect import PathSelector
from zofwd.processor import PacketProcessor
from zofwd.resolver import EndpointResolver
from zofwd.tasklist import TaskList


class ForwardingApp:
    """Reactive forwarding application.

    Wires the decision loop to four collaborator services and manages its
    registration as a packet-in consumer.

    Example:

        app = ForwardingApp(hosts, topology, packets, flows)
        await app.start()
        ...
        await app.stop()

    Args:
        host_service (HostService): endpoint tracking
        topology_service (TopologyService): topology query
        packet_service (PacketService): packet-in subscription
        flow_service (FlowRuleService): flow programming
        config (Configuration): settings
        events (EventSink): destination for structured events
        registry (CollectorRegistry): prometheus registry served by the
            status server

    """

    def __init__(self,
                 host_service,
                 topology_service,
                 packet_service,
                 flow_service,
                 *,
                 config: Optional[Configuration] = None,
                 events: Optional[EventSink] = None,
                 registry=REGISTRY):
        self.config = config or Configuration()  # type: Configuration
        self.events = events or LogSink()  # type: EventSink
        self.registry = registry
        self.packet_service = packet_service
        self.flow_service = flow_service
        self.installer = FlowInstaller(flow_service, self.config, self.events)
        self.processor = PacketProcessor(
            EndpointResolver(host_service), PathSelector(topology_service),
            self.installer, self.config, self.events)
        self.subscribed = False
        self.intercepting = False
        self.zofwd_tasks = None  # type: Optional[TaskList]
        self.zofwd_status_server = None
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        """Return True between a successful start() and stop()."""
        return self.zofwd_tasks is not None

    async def start(self) -> bool:
        """Register the packet-in consumer and request IPv4 interception.

        Returns False (and does nothing) if already running. If any step
        fails, the steps already taken are released and the exception
        propagates.
        """
        async with self._lock:
            if self.running:
                self.events.emit(ev.LIFECYCLE_MISUSE, op='start',
                                 reason='already running')
                return False

            config = self.config
            self.zofwd_tasks = TaskList(asyncio.get_running_loop(),
                                        self.on_exception)
            try:
                if not self.subscribed:
                    await self.packet_service.subscribe(
                        self.on_packet_in, config.consumer_priority)
                    self.subscribed = True
                if not self.intercepting:
                    await self.packet_service.request_interception(
                        ETH_TYPE_IPV4, config.intercept_priority,
                        config.app_id)
                    self.intercepting = True
                if config.status_endpoint:
                    self.zofwd_status_server = make_status_server(
                        self, self.registry)
                    await self.zofwd_status_server.start(config.status_endpoint)
            except BaseException:
                logger.error('Start failed; releasing %s', config.app_id)
                await self.zofwd_release()
                raise

            self.events.emit(ev.APP_STARTED, app_id=config.app_id)
            return True

    async def stop(self) -> bool:
        """Release everything start() acquired and remove owned rules.

        Each release step is attempted even if an earlier one fails.
        Returns True if every step succeeded, False otherwise (including
        when the app was not running).
        """
        async with self._lock:
            if not self.running:
                self.events.emit(ev.LIFECYCLE_MISUSE, op='stop',
                                 reason='not running')
                return False

            okay = await self.zofwd_release()
            self.events.emit(ev.APP_STOPPED, app_id=self.config.app_id,
                             clean=okay)
            return okay

    def on_packet_in(self, packet_in):
        """Packet-in consumer registered with the packet service.

        Accepts a PacketIn or a PACKET_IN event dict. Schedules the decision
        loop as a task and returns it, or returns None if the packet is
        dropped.
        """
        tasks = self.zofwd_tasks
        if tasks is None or tasks.cancelled:
            logger.debug('Drop packet-in; app not running: %r', packet_in)
            return None

        if isinstance(packet_in, dict):
            try:
                packet_in = PacketIn.from_event(packet_in)
            except (KeyError, TypeError, ValueError) as ex:
                logger.warning('Malformed packet-in %r: %r', packet_in, ex)
                return None

        return tasks.create_task(self.processor.process(packet_in))

    def on_host_moved(self, mac):
        """Forget cached rules naming a host that moved or vanished."""
        self.installer.invalidate_host(mac)

    def on_device_removed(self, device_id):
        """Forget cached rules for a device that disconnected."""
        self.installer.invalidate(device_id)

    def on_exception(self, exc):
        """Report exception from a packet-in task."""
        logger.critical('Exception in packet-in task: %r', exc, exc_info=exc)

    def status(self) -> Dict[str, Any]:
        """Return lifecycle state."""
        return {
            'app_id': self.config.app_id,
            'running': self.running,
            'subscribed': self.subscribed,
            'intercepting': self.intercepting,
            'in_flight': len(self.zofwd_tasks) if self.zofwd_tasks else 0,
            'cached_rules': len(self.installer.cache)
        }

    async def zofwd_release(self):
        """Run every release step; return True if all succeeded."""
        tasks = self.zofwd_tasks
        self.zofwd_tasks = None
        steps = [
            ('unsubscribe', self._unsubscribe),
            ('cancel_interception', self._cancel_interception),
            ('cancel_tasks', lambda: self._cancel_tasks(tasks)),
            ('remove_rules', self._remove_rules),
            ('status_server', self._stop_status_server),
        ]
        okay = True
        for name, step in steps:
            try:
                await step()
            except Exception as ex:  # pylint: disable=broad-except
                okay = False
                self.events.emit(ev.CLEANUP_FAILED, step=name, error=repr(ex))
        self.installer.clear()
        return okay

    async def _unsubscribe(self):
        if self.subscribed:
            await self.packet_service.unsubscribe(self.on_packet_in)
            self.subscribed = False

    async def _cancel_interception(self):
        if self.intercepting:
            config = self.config
            await self.packet_service.cancel_interception(
                ETH_TYPE_IPV4, config.intercept_priority, config.app_id)
            self.intercepting = False

    async def _cancel_tasks(self, tasks):
        if tasks is not None:
            tasks.cancel()
            await tasks.wait_cancelled(self.config.stop_timeout)

    async def _remove_rules(self):
        await self.flow_service.remove_rules_by_owner(self.config.app_id)

    async def _stop_status_server(self):
        server = self.zofwd_status_server
        if server is not None:
            self.zofwd_status_server = None
            await server.stop()
