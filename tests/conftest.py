"""In-memory stand-ins for playwright's Browser, BrowserContext, Page and Response."""

import asyncio
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set
from urllib.parse import urlsplit

import pytest
from playwright.async_api import Error as PlaywrightError

from siteauditor.core.models import AuditConfig


ALL_SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'self'",
    "Strict-Transport-Security": "max-age=63072000",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Permissions-Policy": "camera=()",
    "Referrer-Policy": "no-referrer",
}


class FakeResponse:
    def __init__(self, status: int = 200, headers: Optional[Dict[str, str]] = None):
        self.status = status
        self._headers = {k.lower(): v for k, v in (headers or {}).items()}

    async def all_headers(self):
        return dict(self._headers)


class FakeRequest:
    def __init__(self, url: str, frame=None, navigation: bool = False):
        self.url = url
        self.frame = frame
        self._navigation = navigation

    def is_navigation_request(self):
        return self._navigation


@dataclass
class Scenario:
    """How a fake site behaves when navigated to."""
    response: Optional[FakeResponse] = field(default_factory=FakeResponse)
    final_url: Optional[str] = None          # where redirects end up
    navigation_error: Optional[str] = None
    goto_delay: float = 0.0
    evaluations: Dict[str, object] = field(default_factory=dict)
    failing_scripts: Set[str] = field(default_factory=set)
    screenshot_error: Optional[str] = None
    subresources: List[str] = field(default_factory=list)      # started and finished
    hanging_requests: List[str] = field(default_factory=list)  # started, never finished


class FakeCDPSession:
    def __init__(self):
        self.sent: List[str] = []

    async def send(self, method, params=None):
        self.sent.append(method)
        return {}


class FakePage:
    def __init__(self, context: "FakeContext"):
        self.context = context
        self.current = context.default
        self.url = "about:blank"
        self.listeners = defaultdict(list)
        self.init_scripts: List[str] = []
        self.visited: List[str] = []
        self.evaluated: List[str] = []
        self.screenshots: List[str] = []
        self.load_states: List[str] = []
        self.main_frame = object()

    def scenario(self, url: str) -> Scenario:
        return self.context.scenario_for(urlsplit(url).netloc)

    # events
    def on(self, event, handler):
        self.listeners[event].append(handler)

    def remove_listener(self, event, handler):
        self.listeners[event].remove(handler)

    def emit(self, event, request):
        for handler in list(self.listeners[event]):
            handler(request)

    # navigation
    async def goto(self, url, **kwargs):
        self.visited.append(url)
        if url == "about:blank":
            self.url = url
            return None

        scenario = self.scenario(url)
        if scenario.goto_delay:
            await asyncio.sleep(scenario.goto_delay)
        if scenario.navigation_error:
            raise PlaywrightError(scenario.navigation_error)

        self.current = scenario
        document = FakeRequest(url, frame=self.main_frame, navigation=True)
        self.emit("request", document)
        self.emit("requestfinished", document)
        for request_url in scenario.subresources:
            request = FakeRequest(request_url, frame=self.main_frame)
            self.emit("request", request)
            self.emit("requestfinished", request)
        for request_url in scenario.hanging_requests:
            self.emit("request", FakeRequest(request_url, frame=self.main_frame))
        self.url = scenario.final_url or url
        return scenario.response

    async def wait_for_selector(self, selector, **kwargs):
        return None

    async def wait_for_load_state(self, state="load", **kwargs):
        self.load_states.append(state)

    async def add_init_script(self, script):
        self.init_scripts.append(script)

    async def evaluate(self, expression):
        scenario = self.current
        if expression in scenario.failing_scripts:
            raise PlaywrightError("Execution context was destroyed\nCall log: ...")
        self.evaluated.append(expression)
        return scenario.evaluations.get(expression)

    async def screenshot(self, path=None, full_page=False):
        if self.current.screenshot_error:
            raise PlaywrightError(self.current.screenshot_error)
        Path(path).write_bytes(b"\x89PNG")
        self.screenshots.append(path)
        return b"\x89PNG"


class FakeContext:
    def __init__(self, browser: Optional["FakeBrowser"] = None, scenario: Optional[Scenario] = None,
                 **options):
        self.browser = browser
        self.default = scenario or Scenario()
        self.options = options
        self.pages: List[FakePage] = []
        self.cdp = FakeCDPSession()
        self.cookies_cleared = False
        self.closed = False

    def scenario_for(self, host: str) -> Scenario:
        if self.browser is not None:
            return self.browser.scenarios.get(host, self.default)
        return self.default

    async def new_page(self):
        page = FakePage(self)
        self.pages.append(page)
        return page

    async def clear_cookies(self):
        self.cookies_cleared = True

    async def new_cdp_session(self, page):
        return self.cdp

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, scenarios: Optional[Dict[str, Scenario]] = None):
        self.scenarios = scenarios or {}
        self.contexts: List[FakeContext] = []

    async def new_context(self, **options):
        context = FakeContext(self, **options)
        self.contexts.append(context)
        return context


@pytest.fixture
def config(tmp_path):
    return AuditConfig(
        screenshot_dir=tmp_path / "shots",
        site_timeout=2.0,
        navigation_timeout=1.0,
        idle_quiet_period=0.01,
        idle_max_wait=0.3,
        static_fallback=0.01,
        settle_delay=0.0,
        browser_settle=0.0,
    )
