"""URL sources: where the sites to audit come from.

Every source implements extract() -> list of raw URLs. extract_urls() runs
them concurrently; the first failing source fails the whole extraction.
"""

import asyncio
import csv
import random
from abc import ABC, abstractmethod
from html.parser import HTMLParser
from pathlib import Path
from typing import List, Optional, Sequence, Tuple
from urllib.parse import quote_plus, urljoin

import httpx

from siteauditor.core.errors import ConfigError, SourceError


class BaseSource(ABC):

    name: str = "unnamed source"

    @abstractmethod
    async def extract(self) -> List[str]:
        """Return candidate URLs; raise SourceError on failure."""
        ...


# ── CSV file ───────────────────────────────────────────────────

def read_urls(path: Path) -> List[str]:
    """First column of every row after the header, blanks skipped."""
    try:
        with open(path, "r", encoding="utf-8", errors="ignore", newline="") as f:
            rows = list(csv.reader(f))
    except (OSError, csv.Error) as exc:
        raise SourceError(f"failed to read CSV {path}: {exc}") from exc

    if not rows:
        raise SourceError(f"CSV file {path} is empty or missing header")

    urls = []
    for row in rows[1:]:
        if row and row[0].strip():
            urls.append(row[0].strip())
    return urls


class CSVSource(BaseSource):

    name = "csv"

    def __init__(self, path):
        self.path = Path(path)
        if not self.path.is_file():
            raise ConfigError(f"input file does not exist: {path}")

    async def extract(self) -> List[str]:
        return read_urls(self.path)


# ── Search engine results ──────────────────────────────────────

SEARCH_BASE = "https://www.google.com"
SEARCH_USER_AGENT = (
    "Mozilla/5.0 (X11; CrOS x86_64 14541.0.0) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/137.0.0.0 Safari/537.36"
)


class _ResultLinkExtractor(HTMLParser):
    """Collect result links (div.yuRUbf a) and the consent/redirect link (div#yvlrue a)."""

    def __init__(self):
        super().__init__()
        self.links: List[str] = []
        self.redirect: Optional[str] = None
        self._divs: List[Optional[str]] = []

    def handle_starttag(self, tag, attrs):
        attr_dict = dict(attrs)

        if tag == "div":
            classes = (attr_dict.get("class") or "").split()
            if "yuRUbf" in classes:
                self._divs.append("result")
            elif attr_dict.get("id") == "yvlrue":
                self._divs.append("redirect")
            else:
                self._divs.append(None)

        elif tag == "a":
            href = attr_dict.get("href")
            if not href:
                return
            if "result" in self._divs:
                self.links.append(href)
            elif "redirect" in self._divs and self.redirect is None:
                self.redirect = href

    def handle_endtag(self, tag):
        if tag == "div" and self._divs:
            self._divs.pop()


def parse_results(html: str) -> _ResultLinkExtractor:
    parser = _ResultLinkExtractor()
    parser.feed(html or "")
    parser.close()
    return parser


class SearchSource(BaseSource):
    """Scrapes organic result links for *query*, pausing between pages."""

    name = "search"

    def __init__(self, query: str, pages: int = 9, delay: Tuple[float, float] = (30.0, 60.0),
                 client: Optional[httpx.AsyncClient] = None, base_url: str = SEARCH_BASE,
                 logger=None):
        if not query.strip():
            raise ConfigError("search query cannot be empty")
        self.query = query
        self.pages = pages
        self.delay = delay
        self.client = client
        self.base_url = base_url
        self.logger = logger

    async def extract(self) -> List[str]:
        client = self.client or httpx.AsyncClient(timeout=20, follow_redirects=True)
        urls: List[str] = []
        try:
            for page in range(self.pages):
                url = f"{self.base_url}/search?q={quote_plus(self.query)}&start={page * 10}"
                results = await self._fetch(client, url)
                found = [href for href in results.links
                         if href.startswith("http") and "google.com" not in href]
                urls.extend(found)
                if self.logger:
                    self.logger.debug(f"Search page {page + 1}: {len(found)} results")

                if page < self.pages - 1:
                    # look less like a bot
                    await asyncio.sleep(random.uniform(*self.delay))
        finally:
            if self.client is None:
                await client.aclose()
        return urls

    async def _fetch(self, client: httpx.AsyncClient, url: str,
                     follow_redirect: bool = True) -> _ResultLinkExtractor:
        try:
            resp = await client.get(url, headers={"User-Agent": SEARCH_USER_AGENT})
        except httpx.HTTPError as exc:
            raise SourceError(f"search request failed for {url}: {exc}") from exc
        if resp.status_code != 200:
            raise SourceError(f"search returned HTTP {resp.status_code} for {url}")

        results = parse_results(resp.text)
        if results.redirect and follow_redirect:
            return await self._fetch(client, urljoin(url, results.redirect), follow_redirect=False)
        return results


# ── fan-in ─────────────────────────────────────────────────────

async def extract_urls(sources: Sequence[BaseSource], logger=None) -> List[str]:
    """Run all *sources* concurrently; URLs come back in source order."""
    if not sources:
        return []

    tasks = [asyncio.ensure_future(source.extract()) for source in sources]
    done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)

    for task in pending:
        task.cancel()
    if pending:
        await asyncio.wait(pending)

    for source, task in zip(sources, tasks):
        if task in done and task.exception() is not None:
            raise task.exception()

    urls: List[str] = []
    for source, task in zip(sources, tasks):
        found = task.result()
        if logger:
            logger.info(f"{source.name} source: {len(found)} URLs")
        urls.extend(found)
    return urls
