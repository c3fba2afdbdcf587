"""Structured event emission.

Every decision point in the forwarding core emits an `Event` with a kind
and keyword attributes. Sinks route events to logs, metrics or a list.
"""

import logging
from collections import namedtuple

from prometheus_client import REGISTRY, Counter

from zofwd.log import logger

# Event kinds.
FRAME_IGNORED = 'FRAME_IGNORED'
ARP_OBSERVED = 'ARP_OBSERVED'
ENDPOINT_UNRESOLVED = 'ENDPOINT_UNRESOLVED'
INGRESS_EDGE = 'INGRESS_EDGE'
EGRESS_EDGE = 'EGRESS_EDGE'
TRANSIT = 'TRANSIT'
NO_ROUTE = 'NO_ROUTE'
PATH_SELECTED = 'PATH_SELECTED'
POLICY_SKIPPED = 'POLICY_SKIPPED'
RULE_INSTALLED = 'RULE_INSTALLED'
RULE_DUPLICATE = 'RULE_DUPLICATE'
RULE_INSTALL_FAILED = 'RULE_INSTALL_FAILED'
SERVICE_ERROR = 'SERVICE_ERROR'
APP_STARTED = 'APP_STARTED'
APP_STOPPED = 'APP_STOPPED'
LIFECYCLE_MISUSE = 'LIFECYCLE_MISUSE'
CLEANUP_FAILED = 'CLEANUP_FAILED'

_LEVELS = {
    FRAME_IGNORED: logging.DEBUG,
    TRANSIT: logging.DEBUG,
    PATH_SELECTED: logging.DEBUG,
    POLICY_SKIPPED: logging.DEBUG,
    RULE_DUPLICATE: logging.DEBUG,
    RULE_INSTALL_FAILED: logging.WARNING,
    SERVICE_ERROR: logging.WARNING,
    LIFECYCLE_MISUSE: logging.WARNING,
    CLEANUP_FAILED: logging.ERROR,
}


class Event(namedtuple('Event', 'kind attrs')):
    """Emitted event: a kind string plus a dict of attributes."""

    __slots__ = ()

    def __str__(self):
        attrs = ' '.join('%s=%s' % item for item in sorted(self.attrs.items()))
        return '%s %s' % (self.kind, attrs) if attrs else self.kind


class EventSink:
    """Base class for event sinks."""

    def emit(self, kind, **attrs):
        """Build an Event and deliver it."""
        event = Event(kind, attrs)
        self.deliver(event)
        return event

    def deliver(self, event):
        """Deliver event. Subclasses override."""
        raise NotImplementedError


class LogSink(EventSink):
    """Route events to a logger, at a level chosen per event kind."""

    def __init__(self, log=None):
        self.logger = log or logger

    def deliver(self, event):
        level = _LEVELS.get(event.kind, logging.INFO)
        self.logger.log(level, '%s', event)


class MetricsSink(EventSink):
    """Count events by kind in a prometheus counter."""

    def __init__(self, registry=REGISTRY, namespace='zofwd'):
        self.registry = registry
        self.counter = Counter(
            'events',
            'Forwarding core events by kind', ['kind'],
            namespace=namespace,
            registry=registry)

    def deliver(self, event):
        self.counter.labels(kind=event.kind).inc()


class EventRecorder(EventSink):
    """Keep every delivered event in a list."""

    def __init__(self):
        self.events = []

    def deliver(self, event):
        self.events.append(event)

    def kinds(self):
        """Return list of recorded event kinds, in order."""
        return [event.kind for event in self.events]

    def find(self, kind):
        """Return list of recorded events of the given kind."""
        return [event for event in self.events if event.kind == kind]

    def clear(self):
        """Forget recorded events."""
        self.events = []


class FanoutSink(EventSink):
    """Deliver each event to several sinks."""

    def __init__(self, *sinks):
        self.sinks = sinks

    def deliver(self, event):
        for sink in self.sinks:
            sink.deliver(event)
