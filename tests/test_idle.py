import asyncio
import time

import pytest

from siteauditor.core.idle import IdleWaitState, NetworkIdleDetector
from siteauditor.core.models import IdleOutcome

from conftest import FakeContext, FakeRequest


async def _timed(coro):
    started = time.monotonic()
    outcome = await coro
    return outcome, time.monotonic() - started


# ── detector against a fake event source ──────────────────────

async def test_request_completing_quickly_reaches_idle_before_max_wait():
    detector = NetworkIdleDetector(quiet_period=0.05, max_wait=2.0, static_delay=0.5)

    async def traffic():
        detector.request_started("r1", "https://example.com/app.js")
        await asyncio.sleep(0.02)
        detector.request_finished("r1")

    waiter = asyncio.ensure_future(_timed(detector.wait()))
    await asyncio.sleep(0)
    await traffic()
    outcome, elapsed = await waiter

    assert outcome is IdleOutcome.IDLE
    assert elapsed < 1.0


async def test_page_without_requests_falls_back_to_static():
    detector = NetworkIdleDetector(quiet_period=0.05, max_wait=2.0, static_delay=0.1)

    outcome, elapsed = await _timed(detector.wait())

    assert outcome is IdleOutcome.STATIC
    assert 0.09 <= elapsed < 1.0


async def test_request_that_never_completes_times_out_at_max_wait():
    detector = NetworkIdleDetector(quiet_period=0.05, max_wait=0.3, static_delay=0.05)
    detector.request_started("r1", "https://example.com/stream")

    outcome, elapsed = await _timed(detector.wait())

    assert outcome is IdleOutcome.TIMED_OUT
    assert 0.29 <= elapsed < 0.6


async def test_ignored_requests_do_not_block_static_fallback():
    detector = NetworkIdleDetector(quiet_period=0.05, max_wait=2.0, static_delay=0.05)
    detector.request_started("ga", "https://www.google-analytics.com/collect")
    detector.request_started("img", "data:image/png;base64,AAAA")

    outcome, elapsed = await _timed(detector.wait())

    assert outcome is IdleOutcome.STATIC
    assert elapsed < 1.0


async def test_failed_request_counts_as_done():
    detector = NetworkIdleDetector(quiet_period=0.02, max_wait=2.0, static_delay=0.5)
    detector.request_started("r1", "https://example.com/missing.js")
    detector.request_failed("r1")

    outcome, _ = await _timed(detector.wait())
    assert outcome is IdleOutcome.IDLE


async def test_watch_binds_and_unbinds_page_events():
    page = await FakeContext().new_page()
    detector = NetworkIdleDetector(quiet_period=0.02, max_wait=2.0, static_delay=0.5)
    request = FakeRequest("https://example.com/app.js")

    async with detector.watch(page):
        page.emit("request", request)
        assert request in detector.state.active
        page.emit("requestfinished", request)
        assert not detector.state.active
        outcome = await detector.wait()

    assert outcome is IdleOutcome.IDLE
    assert all(not handlers for handlers in page.listeners.values())


# ── pure state machine ─────────────────────────────────────────

def test_new_activity_resets_idle_timer():
    state = IdleWaitState(quiet_period=0.5, max_wait=10, static_delay=1)
    state.arm(0.0)

    state.request_started("r1", "https://example.com/a.js", 0.1)
    assert state.static_deadline is None
    state.request_finished("r1", 0.2)
    assert state.idle_deadline == pytest.approx(0.7)

    state.request_started("r2", "https://example.com/b.js", 0.6)
    assert state.idle_deadline is None
    assert state.poll(0.8) is None

    state.request_finished("r2", 0.9)
    assert state.poll(1.3) is None
    assert state.poll(1.45) is IdleOutcome.IDLE


def test_idle_timer_waits_for_every_request():
    state = IdleWaitState(quiet_period=0.5, max_wait=10, static_delay=1)
    state.arm(0.0)
    state.request_started("r1", "https://example.com/a.js", 0.1)
    state.request_started("r2", "https://example.com/b.js", 0.1)

    state.request_finished("r1", 0.2)
    assert state.idle_deadline is None
    state.request_finished("r2", 0.3)
    assert state.idle_deadline == pytest.approx(0.8)


def test_finish_for_untracked_request_is_ignored():
    state = IdleWaitState(quiet_period=0.5, max_wait=10, static_delay=1)
    state.arm(0.0)

    assert not state.request_finished("unknown", 0.1)
    assert state.idle_deadline is None
    assert state.static_deadline == 1


def test_earliest_passed_deadline_wins():
    state = IdleWaitState(quiet_period=0.5, max_wait=1.0, static_delay=1)
    state.arm(0.0)
    state.request_started("r1", "https://example.com/a.js", 0.2)
    state.request_finished("r1", 0.4)   # idle at 0.9, max at 1.0

    assert state.poll(5.0) is IdleOutcome.IDLE
    assert state.next_deadline() == pytest.approx(0.9)


def test_requests_seen_before_arming_disable_static_fallback():
    state = IdleWaitState(quiet_period=0.5, max_wait=10, static_delay=1)
    state.request_started("r1", "https://example.com/a.js", 0.0)
    state.arm(0.1)

    assert state.static_deadline is None
    assert state.poll(10.2) is IdleOutcome.TIMED_OUT


async def test_main_document_request_does_not_count_as_page_traffic():
    page = await FakeContext().new_page()
    detector = NetworkIdleDetector(quiet_period=0.02, max_wait=2.0, static_delay=0.1)
    document = FakeRequest("https://example.com/", frame=page.main_frame, navigation=True)

    async with detector.watch(page):
        page.emit("request", document)
        page.emit("requestfinished", document)
        outcome, elapsed = await _timed(detector.wait())

    assert outcome is IdleOutcome.STATIC
    assert elapsed >= 0.09


async def test_iframe_navigation_is_tracked():
    page = await FakeContext().new_page()
    detector = NetworkIdleDetector(quiet_period=0.02, max_wait=0.3, static_delay=0.05)
    embed = FakeRequest("https://maps.example.net/embed", frame=object(), navigation=True)

    async with detector.watch(page):
        page.emit("request", embed)
        outcome = await detector.wait()

    assert outcome is IdleOutcome.TIMED_OUT
