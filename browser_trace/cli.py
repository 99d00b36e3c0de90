import asyncio
import logging
import os
import sys

import click
from dotenv import load_dotenv

load_dotenv()

from browser_trace.browser.cdp import CDPDriver
from browser_trace.browser.profile import TraceConfig
from browser_trace.browser.session import BrowserSession
from browser_trace.logging_config import setup_logging

logger = logging.getLogger('browser_trace.cli')


async def run_monitor(cdp_url: str, host: str, open_browser: bool) -> None:
	driver = await CDPDriver(cdp_url=cdp_url).connect()
	session = BrowserSession(driver=driver, config=TraceConfig.from_env(monitor=host, open_monitor=open_browser))
	try:
		monitor = await session.serve_monitor()
		if not monitor.enabled:
			logger.error('Monitor is disabled: pass --host or set BROWSER_TRACE_MONITOR')
			return
		click.echo(f'Monitor running at {monitor.url} (Ctrl+C to stop)')
		await asyncio.Event().wait()
	finally:
		await session.stop(reason='cli exit')
		await driver.disconnect()


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.version_option(package_name='browser-trace')
def main(debug: bool = False):
	"""Live tracing and monitoring for CDP-controlled browsers."""
	if debug:
		os.environ['BROWSER_TRACE_LOGGING_LEVEL'] = 'debug'
	setup_logging(stream=sys.stderr, force_setup=True)


@main.command()
@click.option('--cdp-url', type=str, required=True, help='CDP endpoint of the browser, e.g. http://localhost:9222')
@click.option('--host', type=str, default='127.0.0.1:0', show_default=True, help='host:port to serve on, port 0 picks one')
@click.option('--open', 'open_browser', is_flag=True, help='Open the dashboard in the default browser')
def monitor(cdp_url: str, host: str, open_browser: bool):
	"""Serve the target list and live screenshots of a running browser."""
	try:
		asyncio.run(run_monitor(cdp_url, host, open_browser))
	except KeyboardInterrupt:
		pass


if __name__ == '__main__':
	main()
