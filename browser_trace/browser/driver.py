"""Boundary to the browser-control layer that browser-trace observes."""

from typing import Any, Protocol, runtime_checkable

from browser_trace.browser.views import TargetInfo


@runtime_checkable
class TargetDriver(Protocol):
	"""What tracing, overlays and the monitor need from the controlled browser.

	Every call is one round trip to the browser. Failures are raised, never returned.
	"""

	async def list_targets(self) -> list[TargetInfo]: ...

	async def get_target_info(self, target_id: str) -> TargetInfo: ...

	async def capture_screenshot(self, target_id: str) -> bytes:
		"""PNG bytes of the target's viewport. Raises if the target is gone."""
		...

	async def evaluate(self, target_id: str, script_source: str, arguments: list[Any]) -> Any:
		"""Call the function `script_source` in the target page with `arguments`, return its JSON value."""
		...
