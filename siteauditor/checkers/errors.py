"""Console and request error capture.

ERRORS_SCRIPT runs before any page script and records uncaught errors,
unhandled rejections, console.error/warn calls, failed resource loads and
failed fetch/XHR calls into two window buffers. The checkers drain them.
"""

from typing import List

from siteauditor.checkers.base import BaseChecker
from siteauditor.core.models import CheckKind


ERRORS_SCRIPT = """(() => {
    if (window.__auditErrorsInstalled) return;
    window.__auditErrorsInstalled = true;
    window.__console_errors = [];
    window.__request_errors = [];

    window.addEventListener("error", (e) => {
        const target = e.target;
        if (target && (target.src || target.href)) {
            window.__request_errors.push(
                "[Resource Load Failed]: " + (target.src || target.href) +
                " (type: " + target.tagName + ")");
            return;
        }
        window.__console_errors.push(
            "[Uncaught JS Error]: " + e.message + " at " + e.filename + ":" +
            e.lineno + ":" + e.colno + " (" + (e.error && e.error.stack) + ")");
    }, true);

    window.addEventListener("unhandledrejection", (e) => {
        const reason = e.reason;
        window.__console_errors.push(
            "[Unhandled Promise Rejection]: " + (reason ? reason.message || String(reason) : "Unknown") +
            " (" + (reason && reason.stack) + ")");
    });

    const origFetch = window.fetch;
    if (origFetch) {
        window.fetch = async function (...args) {
            try {
                const res = await origFetch.apply(this, args);
                if (res.status >= 400) {
                    window.__request_errors.push("[HTTP Error]: " + res.status + " for " + res.url);
                }
                return res;
            } catch (err) {
                const target = args.length ? (args[0] && args[0].url) || args[0] : "";
                window.__request_errors.push("[HTTP Error]: " + err.message + " for " + target);
                throw err;
            }
        };
    }

    const origOpen = XMLHttpRequest.prototype.open;
    const origSend = XMLHttpRequest.prototype.send;
    XMLHttpRequest.prototype.open = function (method, url) {
        this.__auditUrl = url;
        return origOpen.apply(this, arguments);
    };
    XMLHttpRequest.prototype.send = function () {
        const xhr = this;
        const report = () => {
            if (xhr.status >= 400 || xhr.status === 0) {
                window.__request_errors.push("[HTTP Error]: " + xhr.status + " for " + xhr.__auditUrl);
            }
        };
        this.addEventListener("load", report);
        this.addEventListener("error", report);
        this.addEventListener("abort", report);
        return origSend.apply(this, arguments);
    };

    const origError = console.error;
    console.error = (...args) => {
        window.__console_errors.push("[Error]: " + args.map(String).join(" "));
        origError.apply(console, args);
    };
    const origWarn = console.warn;
    console.warn = (...args) => {
        window.__console_errors.push("[Warning]: " + args.map(String).join(" "));
        origWarn.apply(console, args);
    };
})();"""

DRAIN_CONSOLE_ERRORS = """() => {
    const out = window.__console_errors || [];
    window.__console_errors = [];
    return out;
}"""

DRAIN_REQUEST_ERRORS = """() => {
    const out = window.__request_errors || [];
    window.__request_errors = [];
    return out;
}"""


class ConsoleErrorsChecker(BaseChecker):

    kind = CheckKind.CONSOLE_ERRORS
    init_script = ERRORS_SCRIPT

    async def run(self, page, response) -> List[str]:
        return self.as_strings(await page.evaluate(DRAIN_CONSOLE_ERRORS))


class RequestErrorsChecker(BaseChecker):

    kind = CheckKind.REQUEST_ERRORS
    init_script = ERRORS_SCRIPT

    async def run(self, page, response) -> List[str]:
        return self.as_strings(await page.evaluate(DRAIN_REQUEST_ERRORS))
