"""Implements FlowInstaller class."""

import asyncio

from zofwd import event as ev
from zofwd.exception import InstallError, ServiceError
from zofwd.log import logger
from zofwd.match import Match
from zofwd.model import FlowRule
from zofwd.packet import normalize_mac

PENDING = 'PENDING'
INSTALLED = 'INSTALLED'


class _CacheEntry:
    """State of one (device_id, match) key in the rule cache."""

    __slots__ = ('rule', 'state', 'time')

    def __init__(self, rule, state, time):
        self.rule = rule
        self.state = state
        self.time = time


class FlowInstaller:
    """Push forwarding rules to devices, at most once per (device, match).

    The rule cache records each key while its installation is in flight
    and for `rule_cache_ttl` seconds after it succeeds. Repeated requests
    for a cached key are skipped. A failed installation removes its key,
    so the next packet-in for the flow tries again.
    """

    def __init__(self, flow_service, config, events):
        self.flow_service = flow_service
        self.config = config
        self.events = events
        self.cache = {}

    def make_rule(self, device_id, in_port, out_port, eth_src, eth_dst):
        """Return the FlowRule for a forwarding decision."""
        config = self.config
        match = Match(in_port, normalize_mac(eth_src), normalize_mac(eth_dst))
        return FlowRule(
            device_id=device_id,
            match=match,
            out_port=out_port,
            priority=config.flow_priority,
            permanent=config.flow_permanent,
            timeout=config.flow_timeout,
            app_id=config.app_id,
            table_id=config.flow_table)

    async def install(self, device_id, in_port, out_port, eth_src, eth_dst):
        """Install a rule forwarding eth_src>eth_dst from in_port to out_port.

        Returns:
            FlowRule if the rule was applied, None if it was skipped as a
            duplicate.

        Raises:
            InstallError: the flow service rejected the rule

        """
        rule = self.make_rule(device_id, in_port, out_port, eth_src, eth_dst)
        key = rule.key
        now = asyncio.get_running_loop().time()

        entry = self.cache.get(key)
        if entry is not None and self._suppresses(entry, rule, now):
            self.events.emit(
                ev.RULE_DUPLICATE, device=device_id, state=entry.state,
                eth_src=rule.match.eth_src, eth_dst=rule.match.eth_dst)
            return None

        # Mark the key before yielding so concurrent callers see it.
        entry = _CacheEntry(rule, PENDING, now)
        self.cache[key] = entry
        try:
            await self.flow_service.apply_rules({rule})
        except ServiceError as ex:
            self._discard(key, entry)
            raise InstallError.zofwd_from_exception(rule, ex) from ex
        except BaseException:
            self._discard(key, entry)
            raise

        if self.cache.get(key) is entry:
            entry.state = INSTALLED
            entry.time = asyncio.get_running_loop().time()
        else:
            logger.debug('Rule cache cleared while installing %s', rule)

        self.events.emit(
            ev.RULE_INSTALLED, device=device_id, in_port=in_port,
            out_port=out_port, eth_src=rule.match.eth_src,
            eth_dst=rule.match.eth_dst)
        return rule

    def _suppresses(self, entry, rule, now):
        """Return True if a cached entry makes installing rule redundant."""
        if entry.state == PENDING:
            return True
        if entry.rule != rule:
            # Same match, new action: replace the installed rule.
            return False
        return now - entry.time < self.config.rule_cache_ttl

    def _discard(self, key, entry):
        if self.cache.get(key) is entry:
            del self.cache[key]

    def invalidate(self, device_id=None):
        """Drop cache entries for a device, or all entries if None."""
        if device_id is None:
            self.clear()
            return
        for key in [key for key in self.cache if key[0] == device_id]:
            del self.cache[key]

    def invalidate_host(self, mac):
        """Drop cache entries whose match names the given MAC."""
        mac = normalize_mac(mac)
        stale = [
            key for key in self.cache
            if mac in (key[1].eth_src, key[1].eth_dst)
        ]
        for key in stale:
            del self.cache[key]

    def clear(self):
        """Drop all cache entries."""
        self.cache.clear()

    def entries(self):
        """Return list of cache entries as plain dicts."""
        return [{
            'device_id': entry.rule.device_id,
            'in_port': entry.rule.match.in_port,
            'eth_src': entry.rule.match.eth_src,
            'eth_dst': entry.rule.match.eth_dst,
            'out_port': entry.rule.out_port,
            'state': entry.state
        } for entry in self.cache.values()]
