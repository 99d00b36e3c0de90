"""Human-readable tracing of script calls and element actions."""

from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel, Field

from browser_trace.browser.profile import TraceConfig
from browser_trace.browser.views import RemoteObjectRef
from browser_trace.tracing.helpers import HelperCall, format_call, format_call_html, unwrap_helper_source
from browser_trace.tracing.overlay import OverlayInjector

Remover = Callable[[], Awaitable[None]]

# where the js caption goes: a 500px wide strip at the top left of the viewport
JS_CAPTION_BOX = (0, 0, 500, 0)


async def _noop_remove() -> None:
	return None


class TraceEvent(BaseModel):
	"""One traced call as it was displayed.

	`name` is what the label shows: the helper name for helper wrappers, otherwise the source itself.
	"""

	name: str
	script_source: str
	arguments: list[Any] = Field(default_factory=list)
	label: str


class CallTracer:
	def __init__(
		self,
		config: TraceConfig,
		overlays: OverlayInjector,
		log_act: Callable[[str], None],
		log_js: Callable[[str, list[Any]], None],
		on_traced: Callable[[str, TraceEvent], None] | None = None,
	):
		self.config = config
		self.overlays = overlays
		self.log_act = log_act
		self.log_js = log_js
		self.on_traced = on_traced

	@property
	def enabled(self) -> bool:
		return self.config.trace

	def describe(self, script_source: str, arguments: list[Any]) -> TraceEvent:
		name, display_args = unwrap_helper_source(script_source, arguments)
		return TraceEvent(name=name, script_source=script_source, arguments=display_args, label=format_call(name, display_args))

	async def trace_call(self, target_id: str, script_source: str, arguments: list[Any]) -> Remover:
		"""Log the call and caption it in the page. Returns the caption's remover.

		Nothing is serialized or sent to the page when tracing is off.
		"""
		if not self.enabled:
			return _noop_remove
		return await self._trace(target_id, self.describe(script_source, arguments))

	async def trace_helper(self, target_id: str, call: HelperCall) -> Remover:
		"""Like trace_call, for helper invocations that carry their own name and arguments."""
		if not self.enabled:
			return _noop_remove
		args = list(call.args)
		event = TraceEvent(name=call.name, script_source=call.script, arguments=args, label=format_call(call.name, args))
		return await self._trace(target_id, event)

	async def _trace(self, target_id: str, event: TraceEvent) -> Remover:
		if not self.config.quiet:
			self.log_js(event.name, event.arguments)
		if self.on_traced is not None:
			self.on_traced(target_id, event)

		x, y, width, height = JS_CAPTION_BOX
		handle = await self.overlays.overlay(
			target_id, x, y, width, height, format_call_html(event.name, event.arguments)
		)
		return handle.remove

	async def trace_action(self, target_id: str, element: RemoteObjectRef, msg: str) -> Remover:
		"""Caption an element with the action about to happen to it, e.g. 'click'."""
		if not self.enabled:
			return _noop_remove
		if not self.config.quiet:
			self.log_act(msg)
		handle = await self.overlays.element_overlay(target_id, element, msg)
		return handle.remove

