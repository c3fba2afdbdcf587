"""Network model: attachment points, hosts, links, paths and flow rules."""

from collections import namedtuple



class ConnectPoint(namedtuple('ConnectPoint', 'device_id port')):
    """A (device, port) pair."""

    __slots__ = ()

    def __str__(self):
        return '%s/%s' % (self.device_id, self.port)


class Host(namedtuple('Host', 'mac location')):
    """A tracked endpoint and its attachment point.

    Attributes:
        mac (str): hardware address
        location (ConnectPoint): attachment point

    """

    __slots__ = ()

    @property
    def device_id(self):
        """Return the device the host is attached to."""
        return self.location.device_id


class Link(namedtuple('Link', 'src dst')):
    """Directed link between two connect points."""

    __slots__ = ()

    def __str__(self):
        return '%s->%s' % (self.src, self.dst)


class Path(namedtuple('Path', 'links')):
    """Ordered sequence of links from a source device to a destination.

    A path with no links represents "no route" and is never usable.
    """

    __slots__ = ()

    def __new__(cls, links):
        links = tuple(links)
        for prev, link in zip(links, links[1:]):
            if prev.dst.device_id != link.src.device_id:
                raise ValueError('Discontiguous path at %s, %s' % (prev, link))
        return super().__new__(cls, links)

    @property
    def src(self):
        """Return source connect point, or None if path is empty."""
        return self.links[0].src if self.links else None

    @property
    def dst(self):
        """Return destination connect point, or None if path is empty."""
        return self.links[-1].dst if self.links else None

    @property
    def hop_count(self):
        """Return number of links."""
        return len(self.links)

    def devices(self):
        """Return tuple of device ids along the path."""
        if not self.links:
            return ()
        return (self.links[0].src.device_id,) + tuple(
            link.dst.device_id for link in self.links)

    def __str__(self):
        return ' '.join(str(link) for link in self.links) or '<empty>'


class FlowRule(
        namedtuple('FlowRule', 'device_id match out_port priority permanent '
                   'timeout app_id table_id')):
    """Forwarding instruction owned by an application.

    Attributes:
        device_id (str): device where the rule is installed
        match (Match): exact match on in_port, eth_src, eth_dst
        out_port (int): output port of the single OUTPUT action
        priority (int): rule priority
        permanent (bool): True if the rule never times out
        timeout (int): idle timeout in seconds (ignored if permanent)
        app_id (str): owning application identity
        table_id (int): table index

    """

    __slots__ = ()

    @property
    def key(self):
        """Return the (device_id, match) pair identifying this rule."""
        return (self.device_id, self.match)

    def to_flow_mod(self):
        """Return an OpenFlow FLOW_MOD message for this rule."""
        action = {'action': 'OUTPUT', 'port_no': self.out_port, 'max_len': 'MAX'}
        instruction = {'instruction': 'APPLY_ACTIONS', 'actions': [action]}
        return {
            'type': 'FLOW_MOD',
            'datapath_id': self.device_id,
            'msg': {
                'table_id': self.table_id,
                'command': 'ADD',
                'idle_timeout': 0 if self.permanent else self.timeout,
                'hard_timeout': 0,
                'priority': self.priority,
                'buffer_id': 'NO_BUFFER',
                'match': self.match.to_list(),
                'instructions': [instruction]
            }
        }

    def __str__(self):
        return '%s %s>%s in_port=%s -> %s' % (self.device_id, self.match.eth_src,
                                              self.match.eth_dst,
                                              self.match.in_port, self.out_port)
