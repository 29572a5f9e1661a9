"""Network idle detection.

Pages keep issuing requests long after they look finished, and there is no
browser event saying "done". Instead we track in-flight requests (ignoring
analytics and widget noise) and wait for the first of three deadlines:

  idle    the network has been quiet for ``quiet_period``
  static  no tracked request was seen at all within ``static_delay``
  max     ``max_wait`` elapsed; the caller samples whatever state it has

Usage:
    detector = NetworkIdleDetector(quiet_period=0.5, max_wait=10)
    async with detector.watch(page):
        await page.goto(url)
        outcome = await detector.wait()
"""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, Optional

from siteauditor.core.models import IdleOutcome
from siteauditor.core.resources import is_ignored


class IdleWaitState:
    """Pure state machine behind the detector. Callers pass the clock in."""

    def __init__(self, quiet_period: float, max_wait: float, static_delay: float,
                 ignore: Callable[[str], bool] = is_ignored):
        self.quiet_period = quiet_period
        self.max_wait = max_wait
        self.static_delay = static_delay
        self.ignore = ignore

        self.active: Dict[Any, str] = {}       # request key -> url
        self.saw_request = False
        self.idle_deadline: Optional[float] = None
        self.static_deadline: Optional[float] = None
        self.max_deadline: Optional[float] = None

    @property
    def armed(self) -> bool:
        return self.max_deadline is not None

    def arm(self, now: float) -> None:
        if not self.saw_request:
            self.static_deadline = now + self.static_delay
        self.max_deadline = now + self.max_wait

    def request_started(self, key: Any, url: str, now: float) -> bool:
        if self.ignore(url):
            return False
        self.saw_request = True
        self.static_deadline = None
        self.active[key] = url
        self.idle_deadline = None
        return True

    def request_finished(self, key: Any, now: float) -> bool:
        if self.active.pop(key, None) is None:
            return False
        if not self.active:
            self.idle_deadline = now + self.quiet_period
        return True

    def next_deadline(self) -> Optional[float]:
        pending = [d for d in (self.idle_deadline, self.static_deadline, self.max_deadline)
                   if d is not None]
        return min(pending) if pending else None

    def poll(self, now: float) -> Optional[IdleOutcome]:
        """Return the outcome of the earliest deadline that has passed, if any."""
        fired = [
            (deadline, outcome)
            for deadline, outcome in (
                (self.idle_deadline, IdleOutcome.IDLE),
                (self.static_deadline, IdleOutcome.STATIC),
                (self.max_deadline, IdleOutcome.TIMED_OUT),
            )
            if deadline is not None and deadline <= now
        ]
        if not fired:
            return None
        return min(fired, key=lambda item: item[0])[1]


class NetworkIdleDetector:
    """Waits until a page's network activity settles. One instance per navigation."""

    def __init__(self, quiet_period: float = 0.5, max_wait: float = 10.0,
                 static_delay: float = 1.0, ignore: Callable[[str], bool] = is_ignored,
                 clock: Callable[[], float] = time.monotonic, logger=None):
        self.state = IdleWaitState(quiet_period, max_wait, static_delay, ignore)
        self.clock = clock
        self.logger = logger
        self._changed = asyncio.Event()

    # ── event hooks ────────────────────────────────────────────

    def request_started(self, key: Any, url: str) -> None:
        if self.state.request_started(key, url, self.clock()):
            self._changed.set()
        elif self.logger and self.logger.verbose >= 3:
            self.logger.debug(f"Idle wait ignores {url}")

    def request_finished(self, key: Any) -> None:
        if self.state.request_finished(key, self.clock()):
            self._changed.set()

    request_failed = request_finished

    @asynccontextmanager
    async def watch(self, page):
        """Feed the page's request events into the detector while the block runs."""

        def on_request(request):
            # the main document is awaited by goto() itself; only subresources count
            if request.is_navigation_request() and request.frame is page.main_frame:
                return
            self.request_started(request, request.url)

        def on_request_done(request):
            self.request_finished(request)

        page.on("request", on_request)
        page.on("requestfinished", on_request_done)
        page.on("requestfailed", on_request_done)
        try:
            yield self
        finally:
            page.remove_listener("request", on_request)
            page.remove_listener("requestfinished", on_request_done)
            page.remove_listener("requestfailed", on_request_done)

    # ── waiting ────────────────────────────────────────────────

    def arm(self) -> None:
        self.state.arm(self.clock())

    async def wait(self) -> IdleOutcome:
        if not self.state.armed:
            self.arm()

        while True:
            now = self.clock()
            outcome = self.state.poll(now)
            if outcome is not None:
                if self.logger:
                    self.logger.debug(
                        f"Network {outcome.value} ({len(self.state.active)} requests in flight)")
                return outcome

            self._changed.clear()
            timeout = max(0.0, self.state.next_deadline() - now)
            try:
                await asyncio.wait_for(self._changed.wait(), timeout)
            except asyncio.TimeoutError:
                pass
