"""Shared fixtures: a stub TargetDriver standing in for a real browser page."""

import pytest

from browser_trace.browser.views import EvaluationError, RemoteObjectRef, TargetNotFoundError
from browser_trace.tracing.helpers import HELPER_LIBRARY, unwrap_helper_source

# 1x1 transparent PNG
PNG_BYTES = bytes.fromhex(
	'89504e470d0a1a0a0000000d49484452000000010000000108060000001f15c4890000000d49444154789c63000100000500010d0a2db40000000049454e44ae426082'
)


class StubPage:
	"""What the helper library would have drawn in one page."""

	def __init__(self):
		self.overlays: dict[str, list] = {}
		self.mouse_markers: dict[str, tuple[float, float]] = {}


class StubDriver:
	"""Records every evaluation and plays the helper library against StubPage state."""

	def __init__(self):
		self.calls: list[tuple[str, str, list]] = []
		self.pages: dict[str, StubPage] = {'T1': StubPage()}
		self.targets = [
			{'targetId': 'T1', 'type': 'page', 'title': 'Example', 'url': 'https://example.com/', 'attached': True},
			{'targetId': 'T2', 'type': 'page', 'title': 'Blank', 'url': 'about:blank', 'attached': False},
		]
		self.fail_evaluate = False
		self.eval_result = None

	async def list_targets(self):
		return self.targets

	async def get_target_info(self, target_id):
		for target in self.targets:
			if target['targetId'] == target_id:
				return target
		raise TargetNotFoundError(target_id)

	async def capture_screenshot(self, target_id):
		if target_id not in self.pages:
			raise TargetNotFoundError(target_id)
		return PNG_BYTES

	async def evaluate(self, target_id, script_source, arguments):
		self.calls.append((target_id, script_source, list(arguments)))
		if self.fail_evaluate:
			raise EvaluationError('Execution context was destroyed.')
		if target_id not in self.pages:
			raise TargetNotFoundError(target_id)
		page = self.pages[target_id]

		if not arguments or arguments[0] is not HELPER_LIBRARY:
			return self.eval_result

		name, args = unwrap_helper_source(script_source, arguments)
		if name == script_source:
			# takes the library but is not a named helper, e.g. exposing it on window
			return self.eval_result
		if name in ('overlay', 'elementOverlay'):
			if name == 'elementOverlay':
				assert isinstance(args[1], RemoteObjectRef)
			page.overlays[args[0]] = args[1:]
		elif name == 'removeOverlay':
			page.overlays.pop(args[0], None)
		elif name == 'initMouseTracer':
			page.mouse_markers.setdefault(args[0], (0.0, 0.0))
		elif name == 'updateMouseTracer':
			if args[0] not in page.mouse_markers:
				return False
			page.mouse_markers[args[0]] = (args[1], args[2])
			return True
		return None

	def helper_calls(self, name: str) -> list[tuple[str, str, list]]:
		return [call for call in self.calls if f'rod.{name}.apply' in call[1]]


@pytest.fixture
def driver() -> StubDriver:
	return StubDriver()


@pytest.fixture
def element() -> RemoteObjectRef:
	return RemoteObjectRef(object_id='-1234567890.1.42', description='button#submit')
