"""Invocation side of the in-page helper library.

Helpers are called through a generated wrapper function whose first argument is the
helper library object itself:

	(rod, ...args) => rod.overlay.apply(this, args)

The driver resolves the HELPER_LIBRARY placeholder to the live library object in the
target page before calling the wrapper.
"""

import html
import json
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

HELPER_NAMES = ('overlay', 'removeOverlay', 'elementOverlay', 'initMouseTracer', 'updateMouseTracer')

_WRAPPED_HELPER_RE = re.compile(r'\A\(rod, \.\.\.args\) => rod\.(.+)\.apply\(this, ')


class _HelperLibrary:
	"""Placeholder argument standing for the helper library object in the page."""

	_instance = None

	def __new__(cls):
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __repr__(self) -> str:
		return 'HELPER_LIBRARY'

	def __reduce__(self):
		return (_HelperLibrary, ())


HELPER_LIBRARY = _HelperLibrary()


class HelperCall(BaseModel):
	"""One invocation of a named helper with the caller's own arguments."""

	model_config = ConfigDict(frozen=True)

	name: str
	args: tuple[Any, ...] = Field(default_factory=tuple)

	@property
	def script(self) -> str:
		return f'(rod, ...args) => rod.{self.name}.apply(this, args)'

	@property
	def arguments(self) -> list[Any]:
		"""Arguments as the driver receives them, library reference first."""
		return [HELPER_LIBRARY, *self.args]


def js_helper(name: str, *args: Any) -> HelperCall:
	return HelperCall(name=name, args=tuple(args))


def unwrap_helper_source(script_source: str, arguments: list[Any]) -> tuple[str, list[Any]]:
	"""Recover the helper name and caller arguments from a generated wrapper.

	Sources that are not wrappers come back unchanged.
	"""
	match = _WRAPPED_HELPER_RE.match(script_source)
	if match is None:
		return script_source, list(arguments)
	return match.group(1), list(arguments[1:])


def _json_default(value: Any) -> Any:
	if isinstance(value, BaseModel):
		return str(value)
	return repr(value)


def format_arguments(arguments: list[Any]) -> str:
	"""Render arguments as a call argument list: ["a", 1] -> '"a", 1'."""
	text = json.dumps(list(arguments), ensure_ascii=False, separators=(', ', ': '), default=_json_default).strip()
	if text.startswith('['):
		text = text[1:]
	if text.endswith(']'):
		text = text[:-1]
	return text.strip()


def format_call(name: str, arguments: list[Any]) -> str:
	return f'{name}({format_arguments(arguments)})'


def format_call_html(name: str, arguments: list[Any]) -> str:
	"""Overlay caption for a call, escaped for innerHTML."""
	return f'js <code>{html.escape(name)}({html.escape(format_arguments(arguments))})</code>'
