"""Largest Contentful Paint timing."""

from siteauditor.checkers.base import BaseChecker
from siteauditor.core.models import CheckKind


LCP_SCRIPT = """(() => {
    window.__lcp = 0;
    try {
        new PerformanceObserver((list) => {
            const entries = list.getEntries();
            const last = entries[entries.length - 1];
            window.__lcp = (last && last.startTime) || 0;
        }).observe({ type: "largest-contentful-paint", buffered: true });
    } catch (e) {
        // unsupported entry type; stays 0
    }
})();"""

READ_LCP = "() => window.__lcp || 0"


class LCPChecker(BaseChecker):

    kind = CheckKind.LCP
    init_script = LCP_SCRIPT

    async def run(self, page, response) -> float:
        value = await page.evaluate(READ_LCP)
        return round(float(value or 0), 2)
