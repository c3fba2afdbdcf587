"""Test zofwd.pathselect module and in-memory path computation."""

import pytest

from zofwd.exception import ServiceError
from zofwd.model import ConnectPoint, Link, Path
from zofwd.pathselect import PathSelector, path_sort_key, select_path
from zofwd.service.memory import MemoryTopologyService, shortest_paths


def _path(*hops):
    """Build a path from (src_dev, src_port, dst_dev, dst_port) tuples."""
    return Path(
        Link(ConnectPoint(a, p), ConnectPoint(b, q)) for a, p, b, q in hops)


def test_select_fewest_links():
    short = _path(('D1', 2, 'D9', 1))
    long = _path(('D1', 3, 'D2', 1), ('D2', 2, 'D9', 2))
    assert select_path({long, short}) == short


def test_select_device_order():
    via_b = _path(('A', 1, 'B', 1), ('B', 2, 'Z', 1))
    via_c = _path(('A', 2, 'C', 1), ('C', 2, 'Z', 2))
    assert select_path({via_c, via_b}) == via_b
    assert select_path([via_b, via_c]) == select_path([via_c, via_b])


def test_select_port_order():
    # Parallel links between the same devices; lowest port wins and
    # numeric ports sort numerically.
    port10 = _path(('A', 10, 'B', 1))
    port9 = _path(('A', 9, 'B', 1))
    assert select_path({port10, port9}) == port9

    named = _path(('A', 'LOCAL', 'B', 1))
    assert select_path({named, port10}) == port10
    assert path_sort_key(port9) < path_sort_key(named)


def test_select_none():
    assert select_path(set()) is None
    assert select_path({Path([])}) is None


def test_shortest_paths():
    topology = MemoryTopologyService()
    # Square: D1-D2-D4 and D1-D3-D4, plus a longer D1-D5-D6-D4.
    topology.add_link('D1', 1, 'D2', 1)
    topology.add_link('D2', 2, 'D4', 1)
    topology.add_link('D1', 2, 'D3', 1)
    topology.add_link('D3', 2, 'D4', 2)
    topology.add_link('D1', 3, 'D5', 1)
    topology.add_link('D5', 2, 'D6', 1)
    topology.add_link('D6', 2, 'D4', 3)

    paths = shortest_paths(topology.links, 'D1', 'D4')
    assert {path.devices() for path in paths} == {('D1', 'D2', 'D4'),
                                                   ('D1', 'D3', 'D4')}
    assert shortest_paths(topology.links, 'D4', 'D1')
    assert shortest_paths(topology.links, 'D1', 'D1') == set()
    assert shortest_paths(topology.links, 'D1', 'D99') == set()

    topology.add_link('D7', 1, 'D8', 1, bidirectional=False)
    assert shortest_paths(topology.links, 'D7', 'D8')
    assert not shortest_paths(topology.links, 'D8', 'D7')

    # Parallel links give one path each.
    topology.add_link('D7', 2, 'D8', 2, bidirectional=False)
    assert len(shortest_paths(topology.links, 'D7', 'D8')) == 2


@pytest.mark.asyncio
async def test_path_selector():
    topology = MemoryTopologyService()
    topology.add_link('D1', 2, 'D2', 7)
    topology.add_link('D1', 3, 'D3', 1)
    topology.add_link('D3', 2, 'D2', 8)
    selector = PathSelector(topology)

    path = await selector.select('D1', 'D2')
    assert path == _path(('D1', 2, 'D2', 7))

    # Each call sees the current topology.
    topology.remove_link('D1', 2, 'D2', 7)
    path = await selector.select('D1', 'D2')
    assert path.devices() == ('D1', 'D3', 'D2')
    assert path.dst == ConnectPoint('D2', 8)

    topology.remove_link('D3', 2, 'D2', 8)
    assert await selector.select('D1', 'D2') is None


@pytest.mark.asyncio
async def test_path_selector_error():
    class _Broken(MemoryTopologyService):
        async def paths(self, snapshot, src_device, dst_device):
            raise ServiceError('topology', 'unavailable')

    with pytest.raises(ServiceError):
        await PathSelector(_Broken()).select('D1', 'D2')
