"""HTTP status server for a running ForwardingApp.

Routes:
    GET /metrics - prometheus text exposition
    GET /rules   - installer rule cache as JSON
    GET /status  - lifecycle state as JSON
"""

import inspect
import re

import aiohttp.web as web
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from zofwd.log import logger

_ENDPOINT_REGEX = re.compile(r'^(?:(?:\[(\S*)\]|(\S*)):)?(\d+)$')


def split_endpoint(endpt):
    """Split "host:port", "[v6]:port" or "port" into (host, port)."""
    m = _ENDPOINT_REGEX.match(endpt)
    if not m:
        raise ValueError('Invalid endpoint: %s' % endpt)
    return (m.group(1) or m.group(2) or '', int(m.group(3)))


class HttpServer:
    """Simple async web server.

    Usage:

        web = HttpServer()

        @web.get('/foo')
        async def get_foo():
            return 'foo'

        @web.get('/foo.json', 'json')
        async def get_foo_json():
            return {'foo': 1}

        await web.start('127.0.0.1:8080')
        ...
        await web.stop()
    """

    def __init__(self):
        self.web_app = web.Application()
        self.web_runner = None
        self.endpoint = None

    @property
    def port(self):
        """Return the bound port, or None if not listening."""
        if self.web_runner is None or not self.web_runner.addresses:
            return None
        return self.web_runner.addresses[0][1]

    async def start(self, endpoint):
        """Start web server listening on endpoint "address:port"."""
        assert self.web_runner is None
        host, port = split_endpoint(endpoint)
        self.web_runner = web.AppRunner(self.web_app, access_log=None)
        await self.web_runner.setup()
        site = web.TCPSite(self.web_runner, host or None, port)
        try:
            await site.start()
        except OSError:
            await self.web_runner.cleanup()
            self.web_runner = None
            raise
        self.endpoint = endpoint
        logger.info('HttpServer: Start listening on %s', endpoint)

    async def stop(self):
        """Stop web server."""
        if self.web_runner is None:
            return
        await self.web_runner.cleanup()
        self.web_runner = None
        logger.info('HttpServer: Stop listening on %s', self.endpoint)

    def get(self, path, payload_type='text'):
        """Decorator for routing HTTP GET requests."""
        respond = _RESPOND[payload_type]

        def _wrap(func):
            assert func is not None

            async def _get(_request):
                return await respond(func)

            self.web_app.router.add_get(path, _get)
            return func

        return _wrap


async def _call(func):
    if inspect.iscoroutinefunction(func):
        return await func()
    return func()


async def _respond_json(func):
    return web.json_response(await _call(func))


async def _respond_text(func):
    result = await _call(func)
    if isinstance(result, bytes):
        # Prometheus content type carries its own charset parameter.
        return web.Response(
            body=result, headers={'Content-Type': CONTENT_TYPE_LATEST})
    return web.Response(text=result)


_RESPOND = {'json': _respond_json, 'text': _respond_text}


def make_status_server(app, registry):
    """Return an HttpServer publishing status for a ForwardingApp."""
    server = HttpServer()

    @server.get('/metrics')
    def _metrics():
        return generate_latest(registry)

    @server.get('/rules', 'json')
    def _rules():
        return app.installer.entries()

    @server.get('/status', 'json')
    def _status():
        return app.status()

    return server
