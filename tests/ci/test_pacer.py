import asyncio
import time

import pytest
from pydantic import ValidationError

from browser_trace.browser.profile import TraceConfig
from browser_trace.tracing import pacer as pacer_module
from browser_trace.tracing.pacer import Pacer


async def test_zero_delay_never_sleeps(monkeypatch):
	sleeps = []

	async def fake_sleep(delay):
		sleeps.append(delay)

	monkeypatch.setattr(pacer_module.asyncio, 'sleep', fake_sleep)

	await Pacer(TraceConfig(slow_motion=0)).pace()

	assert sleeps == []


async def test_pace_waits_at_least_the_delay():
	pacer = Pacer(TraceConfig(slow_motion=0.05))

	start = time.monotonic()
	await pacer.pace()
	elapsed = time.monotonic() - start

	assert elapsed >= 0.045
	assert elapsed < 1.0


async def test_concurrent_steps_are_paced_independently():
	pacer = Pacer(TraceConfig(slow_motion=0.05))

	start = time.monotonic()
	await asyncio.gather(*(pacer.pace() for _ in range(5)))
	elapsed = time.monotonic() - start

	assert 0.045 <= elapsed < 0.5


def test_negative_slow_motion_is_rejected():
	with pytest.raises(ValidationError):
		TraceConfig(slow_motion=-1)
