"""Resource filter: requests that never count as page loading activity."""

# Never real network trips.
_IGNORED_SCHEMES = ("blob:", "data:")

# Analytics, tracking, ads, chat and support widgets. These keep connections
# open or ping forever and say nothing about whether the page has loaded.
IGNORED_RESOURCE_PATTERNS = (
    # analytics / tag managers
    "google-analytics.com",
    "googletagmanager.com",
    "analytics.google.com",
    "stats.g.doubleclick.net",
    "plausible.io",
    "segment.io",
    "segment.com",
    "mixpanel.com",
    "amplitude.com",
    "heap.io",
    "heapanalytics.com",
    "mc.yandex.ru",
    # session recording / monitoring
    "hotjar.com",
    "hotjar.io",
    "clarity.ms",
    "fullstory.com",
    "mouseflow.com",
    "newrelic.com",
    "nr-data.net",
    "sentry.io",
    "sentry-cdn.com",
    # advertising and social pixels
    "doubleclick.net",
    "googlesyndication.com",
    "googleadservices.com",
    "adservice.google.",
    "connect.facebook.net",
    "facebook.com/tr",
    "snap.licdn.com",
    "px.ads.linkedin.com",
    "static.ads-twitter.com",
    "analytics.twitter.com",
    "analytics.tiktok.com",
    "bat.bing.com",
    "ct.pinterest.com",
    # chat and support widgets
    "intercom.io",
    "intercomcdn.com",
    "zendesk.com",
    "zdassets.com",
    "zopim.com",
    "tawk.to",
    "crisp.chat",
    "drift.com",
    "driftt.com",
    "livechatinc.com",
    "tidio.co",
    "olark.com",
    "freshchat.com",
    # marketing automation
    "hs-analytics.net",
    "hs-scripts.com",
    "hs-banner.com",
    "hubspot.com",
    "hsforms.net",
    "klaviyo.com",
    "onesignal.com",
)


def is_ignored(resource: str) -> bool:
    """Return True when *resource* should not hold up network idle detection."""
    lower = (resource or "").lower()
    if lower.startswith(_IGNORED_SCHEMES):
        return True
    return any(pattern in lower for pattern in IGNORED_RESOURCE_PATTERNS)
