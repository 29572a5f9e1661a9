"""HTTPS enforcement check."""

from siteauditor.checkers.base import BaseChecker
from siteauditor.core.models import CheckKind


class SecureChecker(BaseChecker):
    """
    The pipeline navigates to the http:// URL when this check is enabled, so
    the settled page is only https when the site upgraded the connection.
    """

    kind = CheckKind.SECURE

    async def run(self, page, response) -> bool:
        return page.url.lower().startswith("https://")

    def has_findings(self, value) -> bool:
        return not value
