"""Full-page screenshot capture."""

import re
from pathlib import Path

from siteauditor.checkers.base import BaseChecker
from siteauditor.core.errors import ConfigError
from siteauditor.core.models import CheckKind


_UNSAFE = re.compile(r"[/\\:]")


def prepare_directory(directory) -> Path:
    """Create the screenshot directory, or raise ConfigError if it cannot be used."""
    path = Path(directory)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigError(f"cannot create screenshot directory {directory}: {exc}") from exc
    return path


def screenshot_path(directory: Path, domain: str) -> Path:
    """File for *domain*'s screenshot; path separators and colons become '_'."""
    return Path(directory) / f"{_UNSAFE.sub('_', domain)}.png"


class ScreenshotChecker(BaseChecker):

    kind = CheckKind.SCREENSHOT

    def __init__(self, directory: Path, domain: str):
        self.directory = Path(directory)
        self.domain = domain

    async def run(self, page, response) -> bool:
        path = screenshot_path(self.directory, self.domain)
        await page.screenshot(path=str(path), full_page=True)
        return True
