from typing import TYPE_CHECKING

# Type stubs for lazy imports
if TYPE_CHECKING:
	from .cdp import CDPDriver
	from .profile import TraceConfig
	from .session import BrowserSession


# Lazy imports mapping for heavier components
_LAZY_IMPORTS = {
	'CDPDriver': ('.cdp', 'CDPDriver'),
	'TraceConfig': ('.profile', 'TraceConfig'),
	'BrowserSession': ('.session', 'BrowserSession'),
}


def __getattr__(name: str):
	"""Lazy import mechanism for browser components."""
	if name in _LAZY_IMPORTS:
		module_path, attr_name = _LAZY_IMPORTS[name]
		full_module_path = f'browser_trace.browser{module_path}'
		try:
			from importlib import import_module

			module = import_module(full_module_path)
			attr = getattr(module, attr_name)
			# Cache the imported attribute in the module's globals
			globals()[name] = attr
			return attr
		except ImportError as e:
			raise ImportError(f'Failed to import {name} from {full_module_path}: {e}') from e

	raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
	'BrowserSession',
	'CDPDriver',
	'TraceConfig',
]
