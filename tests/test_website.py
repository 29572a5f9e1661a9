import pytest

from siteauditor.parsers.website import filter_sites, is_ignored_domain


@pytest.mark.parametrize("domain", [
    "facebook.com",
    "www.facebook.com",
    "m.yelp.co.uk",
    "x.com",
    "maps.google.com",
    "local-directory.net",
    "www.bizmapgo.com",
    "booksy.com:443",
])
def test_ignored_domains(domain):
    assert is_ignored_domain(domain)


@pytest.mark.parametrize("domain", [
    "example.com",
    "netflix.com",          # must not match "x.com"
    "mybooksy.com.au",
    "salon-boots.co.uk",
])
def test_business_domains_kept(domain):
    assert not is_ignored_domain(domain)


class WarnLog:
    def __init__(self):
        self.warnings = []

    def warn(self, msg):
        self.warnings.append(msg)

    def debug(self, msg):
        pass


def test_filter_sites_normalizes_dedups_and_drops():
    log = WarnLog()
    urls = [
        "https://example.com/contact",
        "",
        "EXAMPLE.com",
        "http://other.example.org",
        "https://www.facebook.com/somebusiness",
        "ftp://files.example.net",
    ]

    sites = filter_sites(urls, logger=log)

    assert [s.domain for s in sites] == ["example.com", "other.example.org"]
    assert sites[0].original_url == "https://example.com/contact"
    assert len(log.warnings) == 1
    assert "ftp://files.example.net" in log.warnings[0]


def test_ipv6_hosts_are_kept():
    sites = filter_sites(["http://[::1]:8080/", "http://[::1]:9090/", "http://[::1]:8080/x"])
    assert [s.domain for s in sites] == ["[::1]:8080", "[::1]:9090"]
    assert not is_ignored_domain("[::1]:8080")
