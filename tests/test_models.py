import pytest

from siteauditor.core.aggregator import ResultAggregator
from siteauditor.core.models import AuditResult, CheckKind, Site
from siteauditor.core.registry import select_checks


@pytest.mark.parametrize("raw, domain, scheme", [
    ("example.com", "example.com", "https"),
    ("http://Example.COM/about?x=1", "example.com", "http"),
    ("  https://shop.example.co.uk  ", "shop.example.co.uk", "https"),
    ("http://localhost:8080/", "localhost:8080", "http"),
    ("http://[::1]:8080/status", "[::1]:8080", "http"),
    ("https://[2001:DB8::1]", "[2001:db8::1]", "https"),
])
def test_site_from_url(raw, domain, scheme):
    site = Site.from_url(raw)
    assert site.domain == domain
    assert site.scheme == scheme
    assert site.original_url == raw


@pytest.mark.parametrize("raw", ["", "   ", "ftp://example.com", "https://"])
def test_site_from_url_rejects(raw):
    with pytest.raises(ValueError):
        Site.from_url(raw)


def test_site_url_can_force_scheme():
    site = Site.from_url("https://example.com/page")
    assert site.url() == "https://example.com/"
    assert site.url("http") == "http://example.com/"
    assert str(site) == "https://example.com/"


def test_result_starts_with_zero_values_for_enabled_checks():
    result = AuditResult(Site.from_url("example.com"), select_checks("security,lcp,tech"))

    assert result.results == {CheckKind.SECURE: False, CheckKind.LCP: 0.0, CheckKind.TECH_STACK: []}
    assert not result.failed


def test_result_refuses_values_for_disabled_checks():
    result = AuditResult(Site.from_url("example.com"), select_checks("lcp"))

    with pytest.raises(ValueError):
        result.set(CheckKind.SECURE, True)
    assert result.get(CheckKind.SECURE) is False


def test_zero_values_are_not_shared():
    selection = select_checks("tech")
    first = AuditResult(Site.from_url("a.com"), selection)
    second = AuditResult(Site.from_url("b.com"), selection)

    first.get(CheckKind.TECH_STACK).append("React")

    assert second.get(CheckKind.TECH_STACK) == []


def test_aggregator_keeps_insertion_order():
    selection = select_checks("lcp")
    aggregator = ResultAggregator()
    for domain in ("c.com", "a.com", "b.com"):
        aggregator.add(AuditResult(Site.from_url(domain), selection))
    aggregator.results[1].audit_errors.append("audit timed out after 60s")

    assert [r.site.domain for r in aggregator] == ["c.com", "a.com", "b.com"]
    assert len(aggregator) == 3
    assert [r.site.domain for r in aggregator.failed] == ["a.com"]


def test_aggregator_results_is_a_copy():
    aggregator = ResultAggregator()
    aggregator.results.append("nope")
    assert len(aggregator) == 0


def test_ipv6_site_url_keeps_brackets():
    site = Site.from_url("http://[::1]:8080")
    assert site.url() == "http://[::1]:8080/"
    assert site.url("https") == "https://[::1]:8080/"
