"""Check pipeline: runs the enabled checks for one site in one browser context.

Order per site:
  1. blank page, settle
  2. init scripts for the enabled checks (LCP observer, error capture)
  3. mobile emulation (bound to the context, see MOBILE_PROFILE)
  4. clear cookies and cache
  5. navigate, forcing http:// when the secure check is enabled
  6. wait for <body>, then for network idle, then settle
  7. fatal checkpoint: navigation error or status >= 400 ends the run
  8. security headers of the main document
  9. in-page checks in PAGE_CHECKERS order; first failure ends the run
 10. screenshot
"""

import asyncio
from typing import Dict, List, Optional

from playwright.async_api import Error as PlaywrightError

from siteauditor.checkers.base import BaseChecker
from siteauditor.checkers.errors import ConsoleErrorsChecker, RequestErrorsChecker
from siteauditor.checkers.forms import FormChecker
from siteauditor.checkers.headers import SecurityHeadersChecker
from siteauditor.checkers.lcp import LCPChecker
from siteauditor.checkers.responsive import ResponsiveChecker
from siteauditor.checkers.screenshot import ScreenshotChecker
from siteauditor.checkers.secure import SecureChecker
from siteauditor.checkers.techstack import TechStackChecker
from siteauditor.core.idle import NetworkIdleDetector
from siteauditor.core.models import (
    AuditConfig, AuditResult, CheckKind, CheckSelection, IdleOutcome, Site,
)


MOBILE_PROFILE = {
    "viewport": {"width": 390, "height": 844},
    "screen": {"width": 390, "height": 844},
    "user_agent": (
        "Mozilla/5.0 (iPhone; CPU iPhone OS 17_5 like Mac OS X) "
        "AppleWebKit/605.1.15 (KHTML, like Gecko) "
        "Version/17.5 Mobile/15E148 Safari/604.1"
    ),
    "device_scale_factor": 3,
    "is_mobile": True,
    "has_touch": True,
}

PAGE_CHECKERS = (
    SecureChecker,
    LCPChecker,
    ResponsiveChecker,
    ConsoleErrorsChecker,
    RequestErrorsChecker,
    FormChecker,
    TechStackChecker,
)


def describe(exc: Exception) -> str:
    """First line of an exception message; playwright appends a call log."""
    text = str(exc).strip()
    return text.splitlines()[0] if text else exc.__class__.__name__


class CheckPipeline:
    """
    Runs one site's checks. Built once per batch from the CheckSelection and
    reused for every site; holds no per-site state.

    Usage:
        pipeline = CheckPipeline(selection, config, logger)
        result = await pipeline.run_one(context, site, AuditResult(site, selection))
    """

    def __init__(self, selection: CheckSelection, config: Optional[AuditConfig] = None,
                 logger=None):
        self.selection = selection
        self.config = config or AuditConfig()
        self.logger = logger

        self.checkers: List[BaseChecker] = [
            cls() for cls in PAGE_CHECKERS if selection.is_enabled(cls.kind)
        ]
        self._by_kind: Dict[CheckKind, BaseChecker] = {c.kind: c for c in self.checkers}
        self.headers = (SecurityHeadersChecker()
                        if selection.is_enabled(CheckKind.MISSING_HEADERS) else None)

    def init_scripts(self) -> List[str]:
        scripts: List[str] = []
        for checker in self.checkers:
            if checker.init_script and checker.init_script not in scripts:
                scripts.append(checker.init_script)
        return scripts

    def target_url(self, site: Site) -> str:
        # Start from http so an https upgrade by the site is observable.
        if self.selection.is_enabled(CheckKind.SECURE):
            return site.url("http")
        return site.url()

    # ── per-site run ───────────────────────────────────────────

    async def run_one(self, context, site: Site, result: AuditResult) -> AuditResult:
        page = await context.new_page()

        await page.goto("about:blank")
        await asyncio.sleep(self.config.settle_delay)

        for script in self.init_scripts():
            await page.add_init_script(script)

        await self._clear_state(context, page)

        url = self.target_url(site)
        response = await self._load(page, url, result)
        if response is None:
            return result

        if response.status >= 400:
            result.audit_errors.append(f"{url} returned HTTP {response.status}")
            return result

        if self.headers is not None:
            try:
                result.set(CheckKind.MISSING_HEADERS, await self.headers.run(page, response))
            except PlaywrightError as exc:
                result.audit_errors.append(f"failed to read response headers: {describe(exc)}")
                return result

        for checker in self.checkers:
            if checker.kind is CheckKind.TECH_STACK and self._skip_tech_stack(result):
                if self.logger:
                    self.logger.debug(f"{site.domain}: no responsive or form findings, skipping tech stack")
                continue
            try:
                value = await checker.run(page, response)
            except PlaywrightError as exc:
                result.audit_errors.append(
                    f"failed to evaluate {checker.kind.cli_name} check: {describe(exc)}")
                return result
            result.set(checker.kind, value)

        if self.selection.is_enabled(CheckKind.SCREENSHOT):
            shot = ScreenshotChecker(self.config.screenshot_dir, site.domain)
            try:
                result.set(CheckKind.SCREENSHOT, await shot.run(page, response))
            except (PlaywrightError, OSError) as exc:
                result.audit_errors.append(f"failed to capture screenshot: {describe(exc)}")

        return result

    # ── internal helpers ───────────────────────────────────────

    def _skip_tech_stack(self, result: AuditResult) -> bool:
        """Important mode only fingerprints sites that already have findings."""
        if not self.selection.important:
            return False
        for kind in (CheckKind.RESPONSIVE_ISSUES, CheckKind.FORM_ISSUES):
            checker = self._by_kind.get(kind)
            if checker is not None and checker.has_findings(result.get(kind)):
                return False
        return True

    async def _clear_state(self, context, page) -> None:
        await context.clear_cookies()
        cdp = await context.new_cdp_session(page)
        await cdp.send("Network.enable")
        await cdp.send("Network.clearBrowserCache")
        await cdp.send("Network.setCacheDisabled", {"cacheDisabled": True})

    async def _load(self, page, url: str, result: AuditResult):
        """Navigate and wait for the page to settle. Returns the main-document
        response, or None after recording a fatal error on *result*."""
        cfg = self.config
        detector = NetworkIdleDetector(
            quiet_period=cfg.idle_quiet_period,
            max_wait=cfg.idle_max_wait,
            static_delay=cfg.static_fallback,
            logger=self.logger,
        )
        timeout_ms = cfg.navigation_timeout * 1000

        async with detector.watch(page):
            try:
                response = await page.goto(url, wait_until="commit", timeout=timeout_ms)
                await page.wait_for_selector("body", state="attached", timeout=timeout_ms)
            except PlaywrightError as exc:
                result.audit_errors.append(f"failed to navigate to {url}: {describe(exc)}")
                return None

            outcome = await detector.wait()

        if outcome is IdleOutcome.TIMED_OUT:
            message = f"network not idle after {cfg.idle_max_wait:g}s on {url}"
            if cfg.strict_idle:
                result.audit_errors.append(message)
                return None
            if self.logger:
                self.logger.warn(f"{message}, sampling current state")
        elif outcome is IdleOutcome.STATIC:
            try:
                await page.wait_for_load_state("domcontentloaded", timeout=timeout_ms)
            except PlaywrightError as exc:
                result.audit_errors.append(f"failed to navigate to {url}: {describe(exc)}")
                return None

        await asyncio.sleep(cfg.settle_delay)

        if response is None:
            result.audit_errors.append(f"no response received for {url}")
        return response
