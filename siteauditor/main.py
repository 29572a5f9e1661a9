import argparse
import asyncio
import signal
from pathlib import Path

from siteauditor.checkers.screenshot import prepare_directory
from siteauditor.core.errors import AuditorError, ConfigError
from siteauditor.core.models import AuditConfig, CheckKind
from siteauditor.core.registry import check_names, select_checks
from siteauditor.core.session import BrowserSession
from siteauditor.parsers.sources import CSVSource, SearchSource, extract_urls
from siteauditor.parsers.website import filter_sites
from siteauditor.reporters.console import Log
from siteauditor.reporters.csv_report import CSVReport


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Front-end health audit for a list of websites")
    p.add_argument("--input", help="CSV file with URLs in the first column (header skipped)")
    p.add_argument("--scrape", help="Search query to collect result URLs for")
    p.add_argument("--output", default="report.csv", help="CSV report path")
    p.add_argument("--checks", default="",
                   help=f"Comma separated checks ({','.join(check_names())}). Empty = all")
    p.add_argument("--important", action="store_true",
                   help="Only the fast, high-signal checks (excludes --checks)")
    p.add_argument("--screenshots", default="screenshots", help="Screenshot directory")
    p.add_argument("--timeout", type=float, default=60.0, help="Per-site timeout (s)")
    p.add_argument("--idle-timeout", type=float, default=10.0,
                   help="Max wait for network idle per site (s)")
    p.add_argument("--strict-idle", action="store_true",
                   help="Fail the site when the network never goes idle")
    p.add_argument("--headful", action="store_true", help="Show the browser window")
    p.add_argument("-v", "--verbose", action="count", default=1,
                   help="-v, -vv")
    return p


def prepare(args, log: Log):
    """Validate everything that can be validated before a browser starts."""
    selection = select_checks(args.checks, args.important)

    sources = []
    if args.input:
        sources.append(CSVSource(args.input))
    if args.scrape:
        sources.append(SearchSource(args.scrape, logger=log))
    if not sources:
        raise ConfigError("no URL source given: use --input and/or --scrape")

    if args.timeout <= 0 or args.idle_timeout <= 0:
        raise ConfigError("timeouts must be positive")

    config = AuditConfig(
        screenshot_dir=Path(args.screenshots),
        site_timeout=args.timeout,
        idle_max_wait=args.idle_timeout,
        strict_idle=args.strict_idle,
        headless=not args.headful,
    )
    if selection.is_enabled(CheckKind.SCREENSHOT):
        prepare_directory(config.screenshot_dir)
    report = CSVReport(args.output)
    return selection, sources, report, config


def _install_signal_handlers(cancel: asyncio.Event, log: Log) -> None:
    loop = asyncio.get_running_loop()

    def on_signal():
        if not cancel.is_set():
            log.warn("Interrupted, finishing up with the sites audited so far")
        cancel.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, on_signal)
        except NotImplementedError:
            log.debug(f"No handler for {sig.name} on this platform")


async def audit(selection, sources, report: CSVReport, config: AuditConfig, log: Log) -> int:
    urls = await extract_urls(sources, logger=log)
    sites = filter_sites(urls, logger=log)
    if not sites:
        log.fail("No websites to audit")
        return 1

    log.info(f"Auditing {len(sites)} websites "
             f"({', '.join(k.cli_name for k in selection.enabled)})")

    cancel = asyncio.Event()
    _install_signal_handlers(cancel, log)

    async with BrowserSession(config, logger=log) as session:
        results = await session.run(sites, selection, cancel)

    report.write(results, selection)
    failed = sum(1 for r in results if r.failed)
    log.ok(f"Report written to {report.path} "
           f"({len(results)} sites, {failed} with audit errors)")
    return 0


def main(argv=None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    log = Log(verbose=args.verbose)

    try:
        selection, sources, report, config = prepare(args, log)
    except ConfigError as exc:
        p.error(str(exc))

    try:
        return asyncio.run(audit(selection, sources, report, config, log))
    except AuditorError as exc:
        log.fail(str(exc))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
