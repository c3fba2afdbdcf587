"""Implements Frame and PacketIn classes."""

import enum
import struct
from collections import namedtuple


class EtherType(enum.Enum):
    """Ether-types the classifier distinguishes."""

    LLDP = 0x88cc
    ARP = 0x0806
    IPV4 = 0x0800
    OTHER = None

    @classmethod
    def from_value(cls, value):
        """Map a numeric ether-type to an EtherType member."""
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


ETH_TYPE_IPV4 = EtherType.IPV4.value

_VLAN_TPIDS = {0x8100, 0x88a8, 0x9100}
_ETH_HEADER = struct.Struct('!6s6sH')
_VLAN_TAG = struct.Struct('!HH')


def normalize_mac(value):
    """Return MAC address as lower-case, colon-separated string.

    Accepts 6 raw bytes or a string using ':' or '-' as separator.
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 6:
            raise ValueError('Invalid MAC address: %r' % value)
        return ':'.join('%02x' % octet for octet in value)
    if not isinstance(value, str):
        raise ValueError('Invalid MAC address: %r' % (value,))

    octets = value.replace('-', ':').lower().split(':')
    if len(octets) != 6 or not all(len(octet) == 2 for octet in octets):
        raise ValueError('Invalid MAC address: %r' % value)
    try:
        int(''.join(octets), 16)
    except ValueError:
        raise ValueError('Invalid MAC address: %r' % value) from None
    return ':'.join(octets)


class Frame(namedtuple('Frame', 'eth_src eth_dst eth_type')):
    """Ethernet-layer view of a packet-in payload.

    Attributes:
        eth_src (str): source MAC address
        eth_dst (str): destination MAC address
        eth_type (int): outermost non-VLAN ether-type

    """

    __slots__ = ()

    def __new__(cls, eth_src, eth_dst, eth_type):
        return super().__new__(cls, normalize_mac(eth_src),
                               normalize_mac(eth_dst), int(eth_type))

    @property
    def ether_type(self):
        """Return classified EtherType."""
        return EtherType.from_value(self.eth_type)

    @classmethod
    def from_bytes(cls, data):
        """Decode an Ethernet frame, skipping any VLAN tags."""
        if len(data) < _ETH_HEADER.size:
            raise ValueError('Truncated ethernet frame: %d bytes' % len(data))

        eth_dst, eth_src, eth_type = _ETH_HEADER.unpack_from(data)
        offset = _ETH_HEADER.size
        while eth_type in _VLAN_TPIDS:
            if len(data) < offset + _VLAN_TAG.size:
                raise ValueError('Truncated vlan tag at offset %d' % offset)
            _, eth_type = _VLAN_TAG.unpack_from(data, offset)
            offset += _VLAN_TAG.size

        return cls(eth_src, eth_dst, eth_type)

    @classmethod
    def from_packet(cls, pkt):
        """Construct a Frame from a decoded packet field dict."""
        return cls(pkt['eth_src'], pkt['eth_dst'], pkt['eth_type'])


class PacketIn(namedtuple('PacketIn', 'frame device_id in_port')):
    """Immutable context for one punted frame.

    Attributes:
        frame (Frame): parsed frame
        device_id (str): receiving device
        in_port (int): receiving port

    """

    __slots__ = ()

    @classmethod
    def from_event(cls, event):
        """Convert a PACKET_IN event dict into a PacketIn.

        The frame is taken from the decoded `pkt` fields when present,
        otherwise it is decoded from the raw `data`.
        """
        if event.get('type') != 'PACKET_IN':
            raise ValueError('Not a PACKET_IN event: %r' % event.get('type'))

        msg = event['msg']
        pkt = msg.get('pkt')
        if pkt and 'eth_type' in pkt:
            frame = Frame.from_packet(pkt)
        else:
            data = msg['data']
            if isinstance(data, str):
                data = bytes.fromhex(data)
            frame = Frame.from_bytes(data)

        return cls(frame, event['datapath_id'], msg['in_port'])

    def __repr__(self):
        """Return string representation of packet-in."""
        return '<PacketIn %s %s>%s type=%#06x at %s:%s>' % (
            self.frame.ether_type.name, self.frame.eth_src,
            self.frame.eth_dst, self.frame.eth_type, self.device_id,
            self.in_port)
