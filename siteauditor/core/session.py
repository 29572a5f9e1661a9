"""Browser session: one Chromium per batch, one isolated context per site."""

import asyncio
import time
from typing import List, Optional, Sequence

from playwright.async_api import Error as PlaywrightError, async_playwright

from siteauditor.checkers.screenshot import prepare_directory
from siteauditor.core.aggregator import ResultAggregator
from siteauditor.core.errors import BrowserLaunchError
from siteauditor.core.models import AuditConfig, AuditResult, CheckKind, CheckSelection, Site
from siteauditor.core.pipeline import MOBILE_PROFILE, CheckPipeline, describe

# Determinism and speed over fidelity: no GPU, no disk cache, no background traffic.
BROWSER_ARGS = [
    "--disable-gpu",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-background-networking",
    "--disable-background-timer-throttling",
    "--disable-renderer-backgrounding",
    "--disable-extensions",
    "--disable-sync",
    "--disk-cache-size=0",
    "--no-first-run",
]


class BrowserSession:
    """
    Owns the browser for a whole batch and audits sites one at a time.

    Usage:
        async with BrowserSession(config, logger) as session:
            results = await session.run(sites, selection)
    """

    def __init__(self, config: Optional[AuditConfig] = None, logger=None):
        self.config = config or AuditConfig()
        self.logger = logger
        self.browser = None
        self._playwright = None
        self._owns_browser = False

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, *exc):
        await self.stop()

    # ── lifecycle ──────────────────────────────────────────────

    async def start(self, browser=None) -> None:
        """Launch Chromium, or adopt an already running *browser* (not closed by stop())."""
        if browser is not None:
            self.browser = browser
            self._owns_browser = False
            return

        try:
            self._playwright = await async_playwright().start()
            self.browser = await self._playwright.chromium.launch(
                headless=self.config.headless, args=BROWSER_ARGS)
            self._owns_browser = True

            # Absorb cold-start cost before the first site is measured.
            page = await self.browser.new_page()
            await page.goto("about:blank")
            await asyncio.sleep(self.config.browser_settle)
            await page.close()
        except PlaywrightError as exc:
            await self.stop()
            raise BrowserLaunchError(f"failed to launch browser: {describe(exc)}") from exc

        if self.logger:
            self.logger.info(f"Browser started ({self.browser.version})")

    async def stop(self) -> None:
        if self.browser is not None and self._owns_browser:
            try:
                await self.browser.close()
            except PlaywrightError as exc:
                if self.logger:
                    self.logger.warn(f"Browser close failed: {describe(exc)}")
        self.browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    # ── batch ──────────────────────────────────────────────────

    async def run(self, sites: Sequence[Site], selection: CheckSelection,
                  cancel: Optional[asyncio.Event] = None) -> List[AuditResult]:
        """
        Audit *sites* sequentially. Always returns one result per site, in
        input order; site failures end up in the result's audit_errors.
        Setting *cancel* aborts the running site and skips the rest.
        """
        if self.browser is None:
            raise RuntimeError("browser session not started")

        if selection.is_enabled(CheckKind.SCREENSHOT):
            prepare_directory(self.config.screenshot_dir)

        pipeline = CheckPipeline(selection, self.config, self.logger)
        aggregator = ResultAggregator()
        total = len(sites)

        for index, site in enumerate(sites, 1):
            result = AuditResult(site=site, selection=selection)
            if cancel is not None and cancel.is_set():
                result.audit_errors.append("audit cancelled before start")
                aggregator.add(result)
                continue

            if self.logger:
                self.logger.debug(f"Auditing {site} ({index}/{total})")
            started = time.monotonic()
            await self._audit(pipeline, site, result, cancel)
            aggregator.add(result)

            if self.logger:
                self.logger.site(index, total, result, time.monotonic() - started)

        return aggregator.results

    async def _audit(self, pipeline: CheckPipeline, site: Site, result: AuditResult,
                     cancel: Optional[asyncio.Event]) -> None:
        try:
            context = await self.browser.new_context(**MOBILE_PROFILE)
        except PlaywrightError as exc:
            result.audit_errors.append(f"failed to open browser context: {describe(exc)}")
            return

        try:
            aborted = await self._run_with_deadline(
                pipeline.run_one(context, site, result), cancel)
            if aborted:
                result.audit_errors.append(aborted)
        except PlaywrightError as exc:
            result.audit_errors.append(f"browser error on {site}: {describe(exc)}")
        finally:
            try:
                await context.close()
            except PlaywrightError as exc:
                if self.logger:
                    self.logger.warn(f"Closing context for {site} failed: {describe(exc)}")

    async def _run_with_deadline(self, coro, cancel: Optional[asyncio.Event]) -> Optional[str]:
        """Run *coro* under the per-site deadline, raced against *cancel*.

        Returns None when it finished, otherwise the reason it was aborted.
        Exceptions raised by *coro* propagate.
        """
        task = asyncio.ensure_future(coro)
        stop = asyncio.ensure_future(cancel.wait()) if cancel is not None else None
        waiters = {task} if stop is None else {task, stop}

        try:
            done, _ = await asyncio.wait(
                waiters, timeout=self.config.site_timeout,
                return_when=asyncio.FIRST_COMPLETED)
        finally:
            if stop is not None:
                stop.cancel()
            if not task.done():
                task.cancel()
                await asyncio.wait({task})

        if task in done:
            task.result()
            return None
        if stop is not None and stop in done:
            return "audit cancelled"
        return f"audit timed out after {self.config.site_timeout:g}s"
