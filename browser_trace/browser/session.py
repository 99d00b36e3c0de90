"""Browser session owning the tracing components and the monitor of one controlled browser."""

import asyncio
import logging
from functools import cached_property
from typing import Any

from bubus import BaseEvent, EventBus
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr
from uuid_extensions import uuid7str

from browser_trace.browser.driver import TargetDriver
from browser_trace.browser.events import (
	BrowserStopEvent,
	BrowserStoppedEvent,
	CallTracedEvent,
	MonitorStartedEvent,
	TraceErrorEvent,
)
from browser_trace.browser.profile import TraceConfig
from browser_trace.browser.views import BrowserTraceError, RemoteObjectRef, TargetNotFoundError
from browser_trace.monitor.server import MonitorServer, MonitorSession
from browser_trace.tracing.call_tracer import CallTracer, Remover, TraceEvent
from browser_trace.tracing.helpers import HELPER_LIBRARY, HelperCall, format_call
from browser_trace.tracing.mouse import Mouse, MouseTracer, new_mouse_id
from browser_trace.tracing.overlay import OverlayInjector
from browser_trace.tracing.pacer import Pacer

yellow = '\033[93m'
cyan = '\033[96m'
reset = '\033[0m'


class BrowserSession(BaseModel):
	"""Everything browser-trace attaches to one controlled browser.

	The session is the single owner of:
	- the frozen TraceConfig every component reads
	- the TargetDriver used to reach the browser
	- the event bus where traced calls and advisory errors are published
	- the cancellation signal that ends the monitor server

	```python
	session = BrowserSession(driver=await CDPDriver(cdp_url='http://localhost:9222').connect(), config=TraceConfig(trace=True))
	await session.start()
	result = await session.evaluate(target_id, '() => document.title', [])
	await session.stop()
	```
	"""

	model_config = ConfigDict(
		arbitrary_types_allowed=True,
		validate_assignment=True,
		extra='forbid',
		revalidate_instances='never',
	)

	id: str = Field(default_factory=lambda: str(uuid7str()), description='Unique identifier for this browser session')
	# the tracing components are built from these on first use, so neither can be swapped afterwards
	driver: TargetDriver = Field(frozen=True)
	config: TraceConfig = Field(default_factory=TraceConfig.from_env, frozen=True)

	event_bus: EventBus = Field(default_factory=EventBus)

	_cancelled: asyncio.Event = PrivateAttr(default_factory=asyncio.Event)
	_monitor: MonitorSession | None = PrivateAttr(default=None)
	_mice: dict[str, Mouse] = PrivateAttr(default_factory=dict)

	@property
	def logger(self) -> logging.Logger:
		return logging.getLogger(f'browser_trace.{self}')

	def __str__(self) -> str:
		return f'BrowserSession🅑 {self.id[-4:]}'

	def __repr__(self) -> str:
		return f'BrowserSession🅑 {self.id[-4:]} (driver={self.driver}, config={self.config})'

	def model_post_init(self, __context) -> None:
		stop_handlers = self.event_bus.handlers.get('BrowserStopEvent', [])
		if any('on_BrowserStopEvent' in getattr(h, '__name__', str(h)) for h in stop_handlers):
			raise RuntimeError(
				'[BrowserSession] Duplicate handler registration attempted! '
				'on_BrowserStopEvent is already registered. '
				'This likely means BrowserSession was initialized multiple times with the same EventBus.'
			)
		self.event_bus.on(BrowserStopEvent, self.on_BrowserStopEvent)

	# ========== Lifecycle ==========

	async def start(self) -> None:
		"""Serve the monitor if the config asks for one."""
		if self.config.monitor:
			await self.serve_monitor()

	async def stop(self, reason: str = 'stopped') -> None:
		"""Fire the cancellation signal; the monitor closes itself in response."""
		if self.cancelled:
			return
		await self.event_bus.dispatch(BrowserStopEvent(reason=reason))
		if self._monitor is not None:
			await self._monitor.wait_closed()
		await self.event_bus.stop(clear=True, timeout=5)

	async def on_BrowserStopEvent(self, event: BrowserStopEvent) -> None:
		self.logger.debug(f'🛑 Stopping session: {event.reason}')
		self._cancelled.set()
		self.event_bus.dispatch(BrowserStoppedEvent(reason=event.reason))

	@property
	def cancelled(self) -> bool:
		return self._cancelled.is_set()

	async def wait_cancelled(self) -> None:
		await self._cancelled.wait()

	# ========== Advisory sinks ==========

	def _emit(self, event: BaseEvent[Any]) -> None:
		if self.cancelled:
			return
		try:
			self.event_bus.dispatch(event)
		except Exception as e:
			self.logger.debug(f'Dropped {type(event).__name__}: {type(e).__name__}: {e}')

	def log_act(self, msg: str) -> None:
		self.logger.info(f'{cyan}act{reset} {msg}')

	def log_js(self, script_source: str, arguments: list[Any]) -> None:
		self.logger.info(f'{yellow}js{reset} {format_call(script_source, arguments)}')

	def log_err(self, error: BaseException) -> None:
		"""Advisory error sink: logged and published, never raised."""
		if isinstance(error, (asyncio.CancelledError, asyncio.TimeoutError)):
			return
		self.logger.warning(f'{yellow}[trace err]{reset} {type(error).__name__}: {error}')
		details = error.details if isinstance(error, BrowserTraceError) and error.details else {}
		self._emit(TraceErrorEvent(error_type=type(error).__name__, message=str(error), details=details))

	def _on_traced(self, target_id: str, event: TraceEvent) -> None:
		self._emit(
			CallTracedEvent(
				target_id=target_id,
				name=event.name,
				script_source=event.script_source,
				arguments=event.arguments,
				label=event.label,
			)
		)

	# ========== Tracing components ==========

	@cached_property
	def pacer(self) -> Pacer:
		return Pacer(self.config)

	@cached_property
	def overlays(self) -> OverlayInjector:
		return OverlayInjector(self.driver, on_error=self.log_err)

	@cached_property
	def call_tracer(self) -> CallTracer:
		return CallTracer(
			self.config,
			self.overlays,
			log_act=self.log_act,
			log_js=self.log_js,
			on_traced=self._on_traced,
		)

	def mouse(self, target_id: str) -> Mouse:
		"""The pointer for `target_id`, mirrored into the page when tracing is on."""
		if target_id not in self._mice:
			tracer = MouseTracer(self.driver, target_id, new_mouse_id()) if self.config.trace else None
			self._mice[target_id] = Mouse(tracer)
		return self._mice[target_id]

	def forget_target(self, target_id: str) -> None:
		"""Drop per-target state once `target_id` is gone. Called automatically when the driver reports it missing."""
		self._mice.pop(target_id, None)

	# ========== Traced operations ==========

	async def evaluate(self, target_id: str, script_source: str, arguments: list[Any]) -> Any:
		"""Evaluate through the driver, paced and captioned while it runs."""
		await self.pacer.pace()
		remove_caption = await self.call_tracer.trace_call(target_id, script_source, arguments)
		try:
			return await self.driver.evaluate(target_id, script_source, arguments)
		except TargetNotFoundError:
			self.forget_target(target_id)
			raise
		finally:
			await remove_caption()

	async def call_helper(self, target_id: str, call: HelperCall) -> Any:
		"""Run a helper library function, traced under its own name."""
		await self.pacer.pace()
		remove_caption = await self.call_tracer.trace_helper(target_id, call)
		try:
			return await self.driver.evaluate(target_id, call.script, call.arguments)
		except TargetNotFoundError:
			self.forget_target(target_id)
			raise
		finally:
			await remove_caption()

	async def trace_action(self, target_id: str, element: RemoteObjectRef, msg: str) -> Remover:
		"""Pace, then caption `element` with `msg`. Call the returned remover once the action is done."""
		await self.pacer.pace()
		return await self.call_tracer.trace_action(target_id, element, msg)

	async def expose_helpers(self, target_id: str) -> None:
		"""Put the helper library on window.rod, e.g. to try rod.overlay(...) from the page's console."""
		await self.driver.evaluate(target_id, 'rod => { window.rod = rod }', [HELPER_LIBRARY])

	# ========== Monitor ==========

	@property
	def monitor(self) -> MonitorSession | None:
		return self._monitor

	async def serve_monitor(self, host: str | None = None, open_browser: bool | None = None) -> MonitorSession:
		"""Start the monitor dashboard; it stops when this session is stopped.

		Defaults come from config.monitor / config.open_monitor. An empty host returns a
		disabled MonitorSession without binding anything.
		"""
		host = self.config.monitor if host is None else host
		open_browser = self.config.open_monitor if open_browser is None else open_browser

		server = MonitorServer(self.driver, cancelled=self._cancelled)
		monitor = await server.start(host, auto_open=open_browser)
		if monitor.enabled:
			self._monitor = monitor
			self._emit(MonitorStartedEvent(url=monitor.url or ''))
		return monitor
