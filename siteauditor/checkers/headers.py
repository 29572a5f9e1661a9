"""Missing security headers on the main-document response."""

from typing import Iterable, List

from siteauditor.checkers.base import BaseChecker
from siteauditor.core.models import CheckKind


# Reported in this order.
REQUIRED_SECURITY_HEADERS = (
    "Content-Security-Policy",
    "Strict-Transport-Security",
    "X-Content-Type-Options",
    "X-Frame-Options",
    "Permissions-Policy",
    "Referrer-Policy",
)


def missing_security_headers(header_names: Iterable[str]) -> List[str]:
    """Required headers absent from *header_names*, compared case-insensitively."""
    present = {name.lower() for name in header_names}
    return [h for h in REQUIRED_SECURITY_HEADERS if h.lower() not in present]


class SecurityHeadersChecker(BaseChecker):
    """Pure header inspection; never touches the page."""

    kind = CheckKind.MISSING_HEADERS

    async def run(self, page, response) -> List[str]:
        headers = await response.all_headers()
        return missing_security_headers(headers.keys())
