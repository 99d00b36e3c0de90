"""Static assets: the in-page helper library, the monitor pages and the cursor icon."""

import base64
import importlib.resources
from functools import cache


@cache
def load_asset(filename: str) -> str:
	"""Read a text asset shipped inside the package."""
	try:
		with importlib.resources.files('browser_trace.assets').joinpath(filename).open('r', encoding='utf-8') as f:
			return f.read()
	except Exception as e:
		raise RuntimeError(f'Failed to load asset {filename}: {e}')


def helper_library_js() -> str:
	return load_asset('helper.js')


def monitor_html() -> str:
	return load_asset('monitor.html')


def monitor_page_html() -> str:
	return load_asset('monitor_page.html')


@cache
def mouse_pointer_data_url() -> str:
	svg = load_asset('mouse_pointer.svg').strip()
	return 'data:image/svg+xml;base64,' + base64.b64encode(svg.encode()).decode()
