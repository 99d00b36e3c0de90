from typing import Self

from pydantic import BaseModel, ConfigDict, Field

from browser_trace.config import CONFIG


class TraceConfig(BaseModel):
	"""Tracing options for one browser session.

	Built once before automation starts and frozen afterwards, so every component
	can read it without locking.
	"""

	model_config = ConfigDict(
		frozen=True,
		extra='forbid',
	)

	trace: bool = Field(default=False, description='Log traced calls and draw overlays for them in the page')
	quiet: bool = Field(default=False, description='Keep drawing overlays but skip the trace log lines')
	slow_motion: float = Field(default=0.0, ge=0, description='Seconds to wait before every traced action')
	monitor: str = Field(default='', description='host:port to serve the monitor dashboard on, empty disables it')
	open_monitor: bool = Field(default=False, description='Open the monitor dashboard in a local browser once bound')

	@classmethod
	def from_env(cls, **overrides) -> Self:
		"""Build a config from BROWSER_TRACE_* environment variables, explicit overrides win."""
		values = {
			'trace': CONFIG.BROWSER_TRACE,
			'quiet': CONFIG.BROWSER_TRACE_QUIET,
			'slow_motion': CONFIG.BROWSER_TRACE_SLOW_MOTION,
			'monitor': CONFIG.BROWSER_TRACE_MONITOR,
			'open_monitor': CONFIG.BROWSER_TRACE_OPEN_MONITOR,
		}
		values.update({k: v for k, v in overrides.items() if v is not None})
		return cls(**values)

	def __str__(self) -> str:
		flags = [name for name in ('trace', 'quiet', 'open_monitor') if getattr(self, name)]
		if self.slow_motion:
			flags.append(f'slow_motion={self.slow_motion}s')
		if self.monitor:
			flags.append(f'monitor={self.monitor}')
		return f'TraceConfig({", ".join(flags) or "off"})'
