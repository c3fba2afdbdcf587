"""Configuration object for ForwardingApp."""

from typing import Optional, Union  # pylint: disable=unused-import

INSTALL_POLICIES = ('path', 'host', 'fixed')


class Configuration:
    """Stores reactive forwarding settings.

    Attributes:
        app_id (str): Identity that owns installed flow rules and
            interception requests. Default is 'org.zofwd.fwd'.
        consumer_priority (int): Priority of the packet-in consumer among
            other consumers. Default is 2.
        intercept_priority (int): Priority of the IPv4 interception request.
            Default is 5.
        flow_priority (int): Priority of installed flow rules. Default is 20.
        flow_table (int): Table index for installed flow rules. Default is 0.
        flow_permanent (bool): Install permanent rules. Default is True.
        flow_timeout (int): Idle timeout in seconds for non-permanent
            rules. Default is 10.
        install_policy (str): One of 'path', 'host' or 'fixed'. Default is
            'path'.
        fixed_device_id (str): Device that triggers installation under the
            'fixed' policy. Default is None.
        fixed_out_port (int): Output port used under the 'fixed' policy.
            Default is None.
        rule_cache_ttl (float): Seconds an installed rule suppresses repeat
            installs of the same match. Default is 30.0.
        stop_timeout (float): Seconds to wait for cancelled packet-in tasks
            during stop. Default is 3.0.
        status_endpoint (str): "host:port" for the HTTP status server. Empty
            string disables it. Default is ''.

    """

    app_id = 'org.zofwd.fwd'  # type: str
    consumer_priority = 2  # type: int
    intercept_priority = 5  # type: int
    flow_priority = 20  # type: int
    flow_table = 0  # type: int
    flow_permanent = True  # type: bool
    flow_timeout = 10  # type: int
    install_policy = 'path'  # type: str
    fixed_device_id = None  # type: Optional[str]
    fixed_out_port = None  # type: Optional[Union[int, str]]
    rule_cache_ttl = 30.0  # type: float
    stop_timeout = 3.0  # type: float
    status_endpoint = ''  # type: str

    def __init__(self, **kwds):
        """Initialize settings by overriding defaults."""
        for key in kwds:
            if not hasattr(self, key):
                raise ValueError('Unknown setting: %s' % key)
        self.__dict__.update(kwds)

        if self.install_policy not in INSTALL_POLICIES:
            raise ValueError('Unknown install_policy: %r' % self.install_policy)
        if self.install_policy == 'fixed' and (self.fixed_device_id is None or
                                               self.fixed_out_port is None):
            raise ValueError(
                'fixed install_policy requires fixed_device_id and fixed_out_port')
