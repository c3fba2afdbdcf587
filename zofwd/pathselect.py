"""Implements PathSelector class."""

from zofwd.log import logger


def path_sort_key(path):
    """Return the sort key that orders candidate paths.

    Paths are ordered by fewest links, then by the sequence of device ids
    along the path, then by the sequence of port numbers. Numeric ports
    sort before named ports.
    """
    ports = []
    for link in path.links:
        ports.append(_port_key(link.src.port))
        ports.append(_port_key(link.dst.port))
    return (path.hop_count, tuple(str(dev) for dev in path.devices()),
            tuple(ports))


def _port_key(port):
    if isinstance(port, int):
        return (0, port, '')
    return (1, 0, str(port))


def select_path(paths):
    """Return the preferred non-empty path, or None if there are none."""
    candidates = [path for path in paths if path.links]
    if not candidates:
        return None
    return min(candidates, key=path_sort_key)


class PathSelector:
    """Choose one path between two devices from the current topology."""

    def __init__(self, topology_service):
        self.topology_service = topology_service

    async def select(self, src_device, dst_device):
        """Return the selected Path, or None if no route exists.

        A fresh topology snapshot is taken on every call.
        """
        topology = self.topology_service
        snapshot = await topology.current_snapshot()
        paths = await topology.paths(snapshot, src_device, dst_device)
        path = select_path(paths or ())
        if path is not None:
            logger.debug('Select %s among %d paths %s->%s', path, len(paths),
                         src_device, dst_device)
        return path
