"""Configuration for browser-trace, read lazily from environment variables."""

import os


def _truthy(value: str) -> bool:
	return value.strip().lower() in ('1', 'true', 'yes', 'y', 'on')


class Config:
	"""Environment-backed settings.

	Every attribute is re-read from the environment on access, so values loaded by
	load_dotenv() or patched in tests are always picked up.
	"""

	@property
	def BROWSER_TRACE_LOGGING_LEVEL(self) -> str:
		return os.getenv('BROWSER_TRACE_LOGGING_LEVEL', 'info').lower()

	@property
	def CDP_LOGGING_LEVEL(self) -> str:
		return os.getenv('CDP_LOGGING_LEVEL', 'WARNING')

	@property
	def BROWSER_TRACE(self) -> bool:
		return _truthy(os.getenv('BROWSER_TRACE', 'false') or 'false')

	@property
	def BROWSER_TRACE_QUIET(self) -> bool:
		return _truthy(os.getenv('BROWSER_TRACE_QUIET', 'false') or 'false')

	@property
	def BROWSER_TRACE_SLOW_MOTION(self) -> float:
		return float(os.getenv('BROWSER_TRACE_SLOW_MOTION', '0') or 0)

	@property
	def BROWSER_TRACE_MONITOR(self) -> str:
		return os.getenv('BROWSER_TRACE_MONITOR', '')

	@property
	def BROWSER_TRACE_OPEN_MONITOR(self) -> bool:
		return _truthy(os.getenv('BROWSER_TRACE_OPEN_MONITOR', 'false') or 'false')


CONFIG = Config()
