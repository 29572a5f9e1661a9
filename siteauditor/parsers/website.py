"""Raw URL -> Site normalization and filtering."""

from typing import Iterable, List, Set

from siteauditor.core.models import Site


# Listing, review and social domains: they are never the business's own site.
IGNORED_BUSINESS_PATTERNS = (
    "facebook.com", "instagram.com", "twitter.com", "x.com", "linkedin.com",
    "youtube.com", "tiktok.com", "pinterest.com",
    "booksy.com", "treatwell.co.uk", "fresha.com",
    "yelp.com", "yelp.co.uk", "yell.com", "tripadvisor.com", "trustpilot.com",
    "boots.com", "superdrug.com", "directory",
    "google.com", "maps.google.com", "bizmapgo",
)


def is_ignored_domain(domain: str) -> bool:
    """True when *domain* belongs to a directory, social network or similar."""
    domain = domain.lower()
    if domain.startswith("["):
        domain = domain.split("]", 1)[0] + "]"
    else:
        domain = domain.split(":", 1)[0]
    for pattern in IGNORED_BUSINESS_PATTERNS:
        if "." in pattern:
            if domain == pattern or domain.endswith("." + pattern):
                return True
        elif pattern in domain:
            return True
    return False


def filter_sites(urls: Iterable[str], logger=None) -> List[Site]:
    """Parse *urls* into Sites, dropping blanks, bad URLs, duplicates and ignored domains."""
    sites: List[Site] = []
    seen: Set[str] = set()

    for raw in urls:
        if not raw or not raw.strip():
            continue
        try:
            site = Site.from_url(raw)
        except ValueError as exc:
            if logger:
                logger.warn(f"Skipping {raw!r}: {exc}")
            continue

        if site.domain in seen:
            continue
        if is_ignored_domain(site.domain):
            if logger:
                logger.debug(f"Ignoring directory/social domain {site.domain}")
            continue

        seen.add(site.domain)
        sites.append(site)

    return sites
