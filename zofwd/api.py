"""Public API."""

from .app import ForwardingApp
from .configuration import Configuration
from .event import Event, EventRecorder, EventSink, FanoutSink, LogSink, MetricsSink
from .exception import InstallError, ServiceError
from .match import Match
from .model import ConnectPoint, FlowRule, Host, Link, Path
from .packet import EtherType, Frame, PacketIn
from .pathselect import path_sort_key, select_path

__all__ = ('ForwardingApp', 'Configuration', 'Event', 'EventRecorder',
           'EventSink', 'FanoutSink', 'LogSink', 'MetricsSink', 'InstallError',
           'ServiceError', 'Match', 'ConnectPoint', 'FlowRule', 'Host', 'Link',
           'Path', 'EtherType', 'Frame', 'PacketIn', 'path_sort_key',
           'select_path')
