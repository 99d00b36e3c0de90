import logging
import sys

from dotenv import load_dotenv

load_dotenv()

from browser_trace.config import CONFIG

LOG_FORMAT = '%(levelname)-8s [%(name)s] %(message)s'

# talk to the browser over CDP, kept at CDP_LOGGING_LEVEL
CDP_LOGGERS = ('cdp_use', 'cdp_use.client', 'cdp_use.cdp', 'cdp_use.cdp.registry', 'websockets.client')

# chatty at INFO, only errors get through
QUIET_LOGGERS = ('aiohttp.access', 'aiohttp.server', 'aiohttp.web', 'httpx', 'httpcore', 'asyncio', 'websockets')


class BrowserTraceFormatter(logging.Formatter):
	"""Shortens browser_trace.* logger names unless running at DEBUG."""

	def __init__(self, fmt, log_level):
		super().__init__(fmt)
		self.log_level = log_level

	def format(self, record):
		if self.log_level > logging.DEBUG and isinstance(record.name, str) and record.name.startswith('browser_trace.'):
			if 'BrowserSession' in record.name:
				record.name = 'BrowserSession'
			elif 'monitor' in record.name:
				record.name = 'monitor'
			else:
				record.name = record.name.split('.')[-1]
		return super().format(record)


def _level_for(name: str) -> int:
	level = logging.getLevelName(name.upper())
	return level if isinstance(level, int) else logging.INFO


def _attach(logger_name: str, handlers: list[logging.Handler], level: int) -> logging.Logger:
	logger = logging.getLogger(logger_name)
	logger.handlers = list(handlers)
	logger.setLevel(level)
	logger.propagate = False
	return logger


def setup_logging(stream=None, log_level=None, force_setup=False, log_file=None):
	"""Setup logging configuration for browser-trace.

	Args:
		stream: Output stream for logs (default: sys.stdout)
		log_level: Override log level name (default: CONFIG.BROWSER_TRACE_LOGGING_LEVEL)
		force_setup: Force reconfiguration even if handlers already exist
		log_file: Also write every record at DEBUG and above to this file
	"""
	if logging.getLogger().hasHandlers() and not force_setup:
		return logging.getLogger('browser_trace')

	level = _level_for(log_level or CONFIG.BROWSER_TRACE_LOGGING_LEVEL)

	console = logging.StreamHandler(stream or sys.stdout)
	console.setLevel(level)
	console.setFormatter(BrowserTraceFormatter(LOG_FORMAT, level))
	handlers: list[logging.Handler] = [console]

	if log_file:
		file_handler = logging.FileHandler(log_file, encoding='utf-8')
		file_handler.setLevel(logging.DEBUG)
		file_handler.setFormatter(BrowserTraceFormatter('%(asctime)s - ' + LOG_FORMAT, logging.DEBUG))
		handlers.append(file_handler)

	effective_level = logging.DEBUG if log_file else level

	root = logging.getLogger()
	root.handlers = list(handlers)
	root.setLevel(effective_level)

	_attach('bubus', handlers, effective_level)
	cdp_level = _level_for(CONFIG.CDP_LOGGING_LEVEL)
	for logger_name in CDP_LOGGERS:
		_attach(logger_name, [console], cdp_level)
	for logger_name in QUIET_LOGGERS:
		logging.getLogger(logger_name).setLevel(logging.ERROR)
		logging.getLogger(logger_name).propagate = False

	return _attach('browser_trace', handlers, effective_level)
