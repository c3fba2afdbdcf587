"""Implements Match class."""

from collections import namedtuple


class Match(namedtuple('Match', 'in_port eth_src eth_dst')):
    """Exact match on input port and ethernet addresses.

    Matches are hashable so they can key the installer's rule cache.
    """

    __slots__ = ()

    def to_list(self):
        """Convert to list of OpenFlow fields."""
        return [_make_field(key, value) for key, value in self._asdict().items()]


def _make_field(name, value):
    assert not isinstance(value, (list, tuple))
    return {'field': name.upper(), 'value': to_str(value)}


def to_str(value):
    """Convert bytes to hex strings."""
    if isinstance(value, (bytes, bytearray)):
        return value.hex()
    return value
