"""Event definitions exchanged on the browser session's event bus."""

from typing import Any

from bubus import BaseEvent
from pydantic import Field

# ============================================================================
# Session lifecycle
# ============================================================================


class BrowserStopEvent(BaseEvent[None]):
	"""Stop the session: fires its cancellation signal, which tears down the monitor."""

	reason: str = 'stopped'

	event_timeout: float | None = 10.0  # seconds


class BrowserStoppedEvent(BaseEvent[None]):
	"""The session's cancellation signal has fired."""

	reason: str | None = None

	event_timeout: float | None = 5.0  # seconds


# ============================================================================
# Tracing -> observers
# ============================================================================


class CallTracedEvent(BaseEvent[None]):
	"""A script call went through the call tracer."""

	target_id: str
	name: str
	script_source: str
	arguments: list[Any] = Field(default_factory=list)
	label: str

	event_timeout: float | None = 5.0  # seconds


class TraceErrorEvent(BaseEvent[None]):
	"""An advisory error from tracing, overlays or the monitor. Never fatal to the automation."""

	error_type: str
	message: str
	details: dict[str, Any] = Field(default_factory=dict)

	event_timeout: float | None = 5.0  # seconds


class MonitorStartedEvent(BaseEvent[None]):
	"""The monitor server bound its listener."""

	url: str

	event_timeout: float | None = 5.0  # seconds
