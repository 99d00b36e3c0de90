import asyncio

from browser_trace.browser.profile import TraceConfig


class Pacer:
	"""Slow motion: holds every traced step back so a human can follow along."""

	def __init__(self, config: TraceConfig):
		self.delay = config.slow_motion

	async def pace(self) -> None:
		if self.delay <= 0:
			return
		await asyncio.sleep(self.delay)
