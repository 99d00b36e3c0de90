"""Synthetic cursor mirrored into the page so mouse-driven steps can be followed visually."""

from browser_trace.assets import mouse_pointer_data_url
from browser_trace.browser.driver import TargetDriver
from browser_trace.tracing.helpers import js_helper
from browser_trace.tracing.overlay import random_overlay_id


def new_mouse_id() -> str:
	return f'browser-trace-mouse-{random_overlay_id()}'


class MouseTracer:
	def __init__(self, driver: TargetDriver, target_id: str, mouse_id: str):
		self.driver = driver
		self.target_id = target_id
		self.mouse_id = mouse_id

	async def init(self) -> None:
		"""Inject the cursor marker. A no-op in the page when it already exists."""
		call = js_helper('initMouseTracer', self.mouse_id, mouse_pointer_data_url())
		try:
			await self.driver.evaluate(self.target_id, call.script, call.arguments)
		except Exception:
			pass

	async def update(self, x: float, y: float) -> bool:
		"""Move the marker; False means it is missing from the page and needs init().

		A failed evaluation reports True: the page is most likely navigating and a
		fresh init() would fail the same way.
		"""
		call = js_helper('updateMouseTracer', self.mouse_id, x, y)
		try:
			result = await self.driver.evaluate(self.target_id, call.script, call.arguments)
		except Exception:
			return True
		return bool(result)


class Mouse:
	"""In-process pointer position for one page.

	Input dispatch belongs to the automation; this only keeps the coordinates and
	mirrors them into the page when tracing is on.
	"""

	def __init__(self, tracer: MouseTracer | None = None):
		self.id = tracer.mouse_id if tracer else new_mouse_id()
		self.x = 0.0
		self.y = 0.0
		self.tracer = tracer

	async def move(self, x: float, y: float) -> None:
		self.x = x
		self.y = y
		await self.trace()

	async def trace(self) -> None:
		if self.tracer is None:
			return
		if not await self.tracer.update(self.x, self.y):
			await self.tracer.init()
			await self.tracer.update(self.x, self.y)
