"""Labeled overlays drawn in the controlled page."""

import secrets
import string
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from browser_trace.browser.driver import TargetDriver
from browser_trace.browser.views import RemoteObjectRef
from browser_trace.tracing.helpers import js_helper

OVERLAY_ID_ALPHABET = string.ascii_letters + string.digits
OVERLAY_ID_LENGTH = 8

ErrorSink = Callable[[BaseException], None]


def random_overlay_id(length: int = OVERLAY_ID_LENGTH) -> str:
	return ''.join(secrets.choice(OVERLAY_ID_ALPHABET) for _ in range(length))


@dataclass(frozen=True)
class OverlayHandle:
	"""A drawn overlay plus the means to erase it.

	remove() is best effort: by the time it runs the page may be gone, so every error
	is dropped. Calling it more than once is harmless.
	"""

	id: str
	target_id: str
	driver: TargetDriver = field(repr=False, compare=False)

	async def remove(self) -> None:
		call = js_helper('removeOverlay', self.id)
		try:
			await self.driver.evaluate(self.target_id, call.script, call.arguments)
		except Exception:
			pass


class OverlayInjector:
	def __init__(self, driver: TargetDriver, on_error: ErrorSink):
		self.driver = driver
		self.on_error = on_error

	async def show(self, target_id: str, kind: str, *params: Any) -> OverlayHandle:
		"""Draw the `kind` helper overlay with `[id, *params]` and return its handle.

		A failed draw is reported to the error sink, the handle is returned regardless.
		"""
		overlay_id = random_overlay_id()
		call = js_helper(kind, overlay_id, *params)
		try:
			await self.driver.evaluate(target_id, call.script, call.arguments)
		except Exception as e:
			self.on_error(e)
		return OverlayHandle(id=overlay_id, target_id=target_id, driver=self.driver)

	async def overlay(self, target_id: str, left: float, top: float, width: float, height: float, msg: str) -> OverlayHandle:
		"""Rectangle in viewport coordinates with an HTML caption."""
		return await self.show(target_id, 'overlay', left, top, width, height, msg)

	async def element_overlay(self, target_id: str, element: RemoteObjectRef, msg: str) -> OverlayHandle:
		"""Rectangle that follows `element` around the page."""
		return await self.show(target_id, 'elementOverlay', element, msg)
