import os
from typing import TYPE_CHECKING

from browser_trace.logging_config import setup_logging

# Embedding applications can opt out and configure logging themselves
if os.environ.get('BROWSER_TRACE_SETUP_LOGGING', 'true').lower() != 'false':
	logger = setup_logging()

if TYPE_CHECKING:
	from browser_trace.browser.cdp import CDPDriver
	from browser_trace.browser.profile import TraceConfig
	from browser_trace.browser.session import BrowserSession
	from browser_trace.monitor.server import MonitorSession


_LAZY_IMPORTS = {
	'BrowserSession': ('browser_trace.browser.session', 'BrowserSession'),
	'CDPDriver': ('browser_trace.browser.cdp', 'CDPDriver'),
	'TraceConfig': ('browser_trace.browser.profile', 'TraceConfig'),
	'MonitorSession': ('browser_trace.monitor.server', 'MonitorSession'),
}


def __getattr__(name: str):
	"""Lazy import mechanism - only import modules when they're actually accessed."""
	if name in _LAZY_IMPORTS:
		module_path, attr_name = _LAZY_IMPORTS[name]
		try:
			from importlib import import_module

			module = import_module(module_path)
			attr = getattr(module, attr_name)
			globals()[name] = attr
			return attr
		except ImportError as e:
			raise ImportError(f'Failed to import {name} from {module_path}: {e}') from e

	raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
	'BrowserSession',
	'CDPDriver',
	'MonitorSession',
	'TraceConfig',
]
