from browser_trace.tracing.call_tracer import CallTracer, TraceEvent
from browser_trace.tracing.helpers import HELPER_LIBRARY, HelperCall, js_helper
from browser_trace.tracing.mouse import Mouse, MouseTracer
from browser_trace.tracing.overlay import OverlayHandle, OverlayInjector
from browser_trace.tracing.pacer import Pacer

__all__ = [
	'CallTracer',
	'HELPER_LIBRARY',
	'HelperCall',
	'Mouse',
	'MouseTracer',
	'OverlayHandle',
	'OverlayInjector',
	'Pacer',
	'TraceEvent',
	'js_helper',
]
