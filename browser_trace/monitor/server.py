"""HTTP dashboard for watching the targets of a browser session live.

Serves one page listing the targets and one page per target that keeps reloading its
screenshot. The reason not to use chrome://inspect for this is that a target cannot be
driven by more than one controller.
"""

import asyncio
import logging
import socket
import webbrowser

from aiohttp import web
from pydantic import BaseModel, ConfigDict, PrivateAttr

from browser_trace.assets import monitor_html, monitor_page_html
from browser_trace.browser.driver import TargetDriver

logger = logging.getLogger(__name__)

DRIVER_KEY = web.AppKey('driver', TargetDriver)


def parse_host(host: str) -> tuple[str, int]:
	"""Split 'host:port', ':port' or 'host' into a bindable address. Port 0 picks a free port."""
	if host.startswith('[') and ']' in host:
		addr, _, rest = host[1:].partition(']')
		port = rest.lstrip(':')
		return addr, int(port or 0)
	addr, sep, port = host.rpartition(':')
	if not sep:
		return host, 0
	return addr, int(port or 0)


def viewer_url(address: tuple[str, int]) -> str:
	host, port = address[0], address[1]
	if host in ('0.0.0.0', '::', ''):
		host = '127.0.0.1'
	if ':' in host:
		host = f'[{host}]'
	return f'http://{host}:{port}'


@web.middleware
async def error_boundary(request: web.Request, handler) -> web.StreamResponse:
	"""Turn any failure inside a handler into a 400 so one bad request can't take the monitor down."""
	try:
		response = await handler(request)
	except web.HTTPException as e:
		e.force_close()
		raise
	except Exception as e:
		logger.warning(f'⚠️ Monitor request {request.method} {request.path} failed: {type(e).__name__}: {e}')
		response = web.json_response({'error': f'{type(e).__name__}: {e}'}, status=400)
	# no keep-alive: closing the listener has to end every connection
	response.force_close()
	return response


async def dashboard(request: web.Request) -> web.Response:
	return web.Response(text=monitor_html(), content_type='text/html')


async def list_pages(request: web.Request) -> web.Response:
	targets = await request.app[DRIVER_KEY].list_targets()
	return web.json_response(targets)


async def page_dashboard(request: web.Request) -> web.Response:
	return web.Response(text=monitor_page_html(), content_type='text/html')


async def page_info(request: web.Request) -> web.Response:
	info = await request.app[DRIVER_KEY].get_target_info(request.match_info['id'])
	return web.json_response(info)


async def screenshot(request: web.Request) -> web.Response:
	data = await request.app[DRIVER_KEY].capture_screenshot(request.match_info['id'])
	return web.Response(body=data, content_type='image/png')


def create_app(driver: TargetDriver) -> web.Application:
	app = web.Application(middlewares=[error_boundary])
	app[DRIVER_KEY] = driver
	app.add_routes(
		[
			web.get('/', dashboard),
			web.get('/pages', list_pages),
			web.get('/page/{id}', page_dashboard),
			web.get('/api/page/{id}', page_info),
			web.get('/screenshot/{id}', screenshot),
		]
	)
	return app


class MonitorSession(BaseModel):
	"""A running (or disabled) monitor. Lives until the owning session is cancelled."""

	model_config = ConfigDict(arbitrary_types_allowed=True, revalidate_instances='never')

	address: tuple[str, int] | None = None

	_runner: web.AppRunner | None = PrivateAttr(default=None)
	_listener: socket.socket | None = PrivateAttr(default=None)
	_watcher_task: asyncio.Task | None = PrivateAttr(default=None)
	_closed: asyncio.Event = PrivateAttr(default_factory=asyncio.Event)

	@property
	def enabled(self) -> bool:
		return self.address is not None

	@property
	def url(self) -> str | None:
		return viewer_url(self.address) if self.address else None

	@property
	def closed(self) -> bool:
		return self._closed.is_set()

	async def wait_closed(self) -> None:
		if not self.enabled:
			return
		await self._closed.wait()

	def __str__(self) -> str:
		return f'MonitorSession({self.url or "disabled"})'


class MonitorServer:
	def __init__(self, driver: TargetDriver, cancelled: asyncio.Event, shutdown_timeout: float = 2.0):
		self.driver = driver
		self.cancelled = cancelled
		self.shutdown_timeout = shutdown_timeout

	async def start(self, host: str, auto_open: bool = False) -> MonitorSession:
		"""Bind `host` and serve the dashboard until the owning session is cancelled.

		An empty host disables the monitor: nothing is bound and a disabled session is returned.
		"""
		if not host:
			return MonitorSession()

		bind_host, port = parse_host(host)
		listener = socket.create_server((bind_host, port), family=_family_for(bind_host))

		runner = web.AppRunner(create_app(self.driver), access_log=None, shutdown_timeout=self.shutdown_timeout)
		await runner.setup()
		site = web.SockSite(runner, listener)
		try:
			await site.start()
		except Exception:
			await runner.cleanup()
			listener.close()
			raise

		session = MonitorSession(address=listener.getsockname()[:2])
		session._runner = runner
		session._listener = listener
		session._watcher_task = asyncio.create_task(self._close_when_cancelled(session))
		logger.info(f'🖥️  Monitor serving on {session.url}')

		if auto_open:
			# the real bound address, so ephemeral ports work
			await asyncio.to_thread(webbrowser.open, session.url)

		return session

	async def _close_when_cancelled(self, session: MonitorSession) -> None:
		await self.cancelled.wait()
		try:
			if session._runner is not None:
				await session._runner.cleanup()
		finally:
			if session._listener is not None:
				session._listener.close()
			session._closed.set()
			logger.debug(f'Monitor on {session.url} closed')


def _family_for(host: str) -> socket.AddressFamily:
	return socket.AF_INET6 if ':' in host else socket.AF_INET
