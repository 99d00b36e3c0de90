"""BrowserSession wiring: traced evaluation, advisory errors, monitor lifecycle."""

import asyncio

import httpx
import pytest
from bubus import EventBus
from pydantic import ValidationError

from browser_trace.browser.events import BrowserStoppedEvent, CallTracedEvent, MonitorStartedEvent, TraceErrorEvent
from browser_trace.browser.profile import TraceConfig
from browser_trace.browser.session import BrowserSession
from browser_trace.browser.views import EvaluationError, TargetNotFoundError
from browser_trace.tracing.helpers import HELPER_LIBRARY, js_helper


@pytest.fixture
async def make_session(driver):
	sessions = []

	def factory(**config) -> BrowserSession:
		session = BrowserSession(driver=driver, config=TraceConfig(**config))
		sessions.append(session)
		return session

	yield factory
	for session in sessions:
		await session.stop(reason='test teardown')


def helper_names(driver) -> list[str]:
	names = []
	for _, source, _ in driver.calls:
		names.append(source.split('rod.', 1)[1].split('.apply', 1)[0] if 'rod.' in source else source)
	return names


async def test_evaluate_untraced_is_a_single_round_trip(driver, make_session):
	session = make_session()
	driver.eval_result = 'Example'

	assert await session.evaluate('T1', '() => document.title', []) == 'Example'
	assert driver.calls == [('T1', '() => document.title', [])]


async def test_evaluate_captions_then_removes(driver, make_session):
	session = make_session(trace=True)
	driver.eval_result = 42

	result = await session.evaluate('T1', 'n => n + 1', [41])

	assert result == 42
	assert helper_names(driver) == ['overlay', 'n => n + 1', 'removeOverlay']
	assert driver.pages['T1'].overlays == {}


async def test_evaluate_removes_caption_when_script_fails(driver, make_session):
	session = make_session(trace=True)

	original = driver.evaluate

	async def evaluate(target_id, script_source, arguments):
		if script_source == '() => x':
			driver.calls.append((target_id, script_source, list(arguments)))
			raise EvaluationError('ReferenceError: x is not defined')
		return await original(target_id, script_source, arguments)

	driver.evaluate = evaluate

	with pytest.raises(EvaluationError):
		await session.evaluate('T1', '() => x', [])
	assert driver.pages['T1'].overlays == {}
	assert helper_names(driver)[-1] == 'removeOverlay'


async def test_call_helper_is_traced_under_its_name(driver, make_session):
	session = make_session(trace=True)
	traced = []
	session.event_bus.on(CallTracedEvent, lambda e: traced.append(e))

	await session.call_helper('T1', js_helper('overlay', 'abc', 1, 2, 3, 4, 'hi'))
	await session.event_bus.wait_until_idle()

	assert len(traced) == 1
	assert traced[0].target_id == 'T1'
	assert traced[0].name == 'overlay'
	assert traced[0].script_source == '(rod, ...args) => rod.overlay.apply(this, args)'
	assert traced[0].label == 'overlay("abc", 1, 2, 3, 4, "hi")'
	# the caption is gone, the overlay drawn by the helper itself stays
	assert list(driver.pages['T1'].overlays) == ['abc']


async def test_evaluate_is_paced(driver, make_session, monkeypatch):
	session = make_session(slow_motion=0.25)
	waits = []

	async def fake_pace():
		waits.append(session.pacer.delay)

	monkeypatch.setattr(session.pacer, 'pace', fake_pace)

	await session.evaluate('T1', '() => 1', [])
	await session.trace_action('T1', None, 'click')

	assert waits == [0.25, 0.25]


async def test_overlay_failure_is_published_not_raised(driver, make_session):
	session = make_session(trace=True)
	errors = []
	session.event_bus.on(TraceErrorEvent, lambda e: errors.append(e))
	driver.fail_evaluate = True

	with pytest.raises(EvaluationError):
		await session.evaluate('T1', '() => 1', [])
	await session.event_bus.wait_until_idle()

	assert len(errors) == 1
	assert errors[0].error_type == 'EvaluationError'
	assert 'Execution context was destroyed' in errors[0].message


async def test_log_err_ignores_cancellation(make_session):
	session = make_session()
	errors = []
	session.event_bus.on(TraceErrorEvent, lambda e: errors.append(e))

	session.log_err(asyncio.CancelledError())
	session.log_err(TimeoutError())
	session.log_err(ValueError('real problem'))
	await session.event_bus.wait_until_idle()

	assert [e.error_type for e in errors] == ['ValueError']


async def test_trace_action_captions_element(driver, element, make_session):
	session = make_session(trace=True)

	remove = await session.trace_action('T1', element, 'input "hello"')
	assert list(driver.pages['T1'].overlays.values()) == [[element, 'input "hello"']]

	await remove()
	assert driver.pages['T1'].overlays == {}


async def test_mouse_is_mirrored_only_when_tracing(driver, make_session):
	quiet_session = make_session()
	mouse = quiet_session.mouse('T1')
	await mouse.move(10, 10)
	assert mouse.tracer is None
	assert driver.calls == []

	traced_session = make_session(trace=True)
	mouse = traced_session.mouse('T1')
	assert traced_session.mouse('T1') is mouse
	await mouse.move(10, 20)
	assert driver.pages['T1'].mouse_markers[mouse.id] == (10, 20)


async def test_expose_helpers_passes_library(driver, make_session):
	session = make_session()

	await session.expose_helpers('T1')

	assert driver.calls == [('T1', 'rod => { window.rod = rod }', [HELPER_LIBRARY])]
	assert driver.pages['T1'].overlays == {}


async def test_session_config_and_driver_are_fixed(driver, make_session):
	session = make_session(trace=True)
	assert session.call_tracer.enabled

	with pytest.raises(ValidationError):
		session.config = TraceConfig()
	with pytest.raises(ValidationError):
		session.driver = driver
	assert session.config.trace


async def test_gone_target_drops_its_mouse(driver, make_session):
	session = make_session(trace=True)
	mouse = session.mouse('T1')
	await mouse.move(1, 2)

	del driver.pages['T1']
	with pytest.raises(TargetNotFoundError):
		await session.evaluate('T1', '() => 1', [])

	assert session.mouse('T1') is not mouse


async def test_forget_target_only_touches_that_target(make_session):
	session = make_session()
	first, second = session.mouse('T1'), session.mouse('T2')

	session.forget_target('T1')
	session.forget_target('T1')

	assert session.mouse('T1') is not first
	assert session.mouse('T2') is second


async def test_stop_is_idempotent_and_announced(make_session):
	session = make_session()
	stopped = []
	session.event_bus.on(BrowserStoppedEvent, lambda e: stopped.append(e))

	await session.stop(reason='done')
	await session.stop(reason='again')

	assert session.cancelled
	assert [e.reason for e in stopped] == ['done']
	await asyncio.wait_for(session.wait_cancelled(), timeout=1)


async def test_start_serves_monitor_until_stopped(make_session):
	session = make_session(monitor='127.0.0.1:0')
	started = []
	session.event_bus.on(MonitorStartedEvent, lambda e: started.append(e))

	await session.start()
	await session.event_bus.wait_until_idle()
	monitor = session.monitor

	assert monitor is not None and monitor.enabled
	assert [e.url for e in started] == [monitor.url]
	async with httpx.AsyncClient() as client:
		assert (await client.get(f'{monitor.url}/pages')).status_code == 200

	await session.stop()

	assert monitor.closed
	async with httpx.AsyncClient() as client:
		with pytest.raises(httpx.ConnectError):
			await client.get(f'{monitor.url}/pages')


async def test_start_without_monitor_binds_nothing(make_session):
	session = make_session()
	await session.start()
	assert session.monitor is None


async def test_serve_monitor_with_empty_host_is_disabled(make_session):
	session = make_session(monitor='127.0.0.1:0')
	monitor = await session.serve_monitor(host='')
	assert not monitor.enabled
	assert session.monitor is None


async def test_shared_event_bus_is_rejected(driver):
	bus = EventBus()
	BrowserSession(driver=driver, config=TraceConfig(), event_bus=bus)
	with pytest.raises(RuntimeError, match='Duplicate handler'):
		BrowserSession(driver=driver, config=TraceConfig(), event_bus=bus)
