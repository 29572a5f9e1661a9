"""Shared data models for the site auditor."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlsplit


_SCHEMES = ("http", "https")


@dataclass(frozen=True)
class Site:
    """A website to audit, normalized from a raw URL."""
    domain: str            # lowercased host, port kept if present
    scheme: str            # "http" or "https"
    original_url: str

    @classmethod
    def from_url(cls, raw: str) -> "Site":
        value = (raw or "").strip()
        if not value:
            raise ValueError("empty URL")
        if "://" not in value:
            value = f"https://{value}"

        parts = urlsplit(value)
        scheme = parts.scheme.lower()
        if scheme not in _SCHEMES:
            raise ValueError(f"unsupported scheme in URL {raw}: {parts.scheme}")
        if not parts.hostname:
            raise ValueError(f"URL missing host: {raw}")

        domain = parts.hostname.lower()
        if ":" in domain:
            domain = f"[{domain}]"   # IPv6 literal
        if parts.port:
            domain = f"{domain}:{parts.port}"
        return cls(domain=domain, scheme=scheme, original_url=raw)

    def url(self, scheme: Optional[str] = None) -> str:
        return f"{scheme or self.scheme}://{self.domain}/"

    def __str__(self):
        return self.url()


class CheckKind(Enum):
    """Closed set of checks. Declaration order is execution and column order."""

    SECURE = ("security", "Secure", bool)
    LCP = ("lcp", "LCP (ms)", float)
    CONSOLE_ERRORS = ("console", "Console Errors", list)
    REQUEST_ERRORS = ("request", "Request Errors", list)
    MISSING_HEADERS = ("headers", "Missing Headers", list)
    RESPONSIVE_ISSUES = ("mobile", "Responsive Issues", list)
    FORM_ISSUES = ("form", "Form Issues", list)
    TECH_STACK = ("tech", "Detected Tech", list)
    SCREENSHOT = ("screenshot", "Screenshot", bool)

    def __init__(self, cli_name: str, label: str, result_type: type):
        self.cli_name = cli_name
        self.label = label
        self.result_type = result_type

    def zero(self) -> Any:
        """Value a check holds when it is disabled or never produced output."""
        return self.result_type()

    @classmethod
    def from_cli_name(cls, name: str) -> Optional["CheckKind"]:
        for kind in cls:
            if kind.cli_name == name:
                return kind
        return None


@dataclass(frozen=True)
class CheckSelection:
    """The checks enabled for a whole batch."""
    enabled: Tuple[CheckKind, ...]
    important: bool = False

    def is_enabled(self, kind: CheckKind) -> bool:
        return kind in self.enabled

    @property
    def labels(self) -> List[str]:
        return [kind.label for kind in self.enabled]


@dataclass
class AuditResult:
    """Findings for one site.

    ``results`` holds a value for every enabled check, starting from the
    check's zero value. ``audit_errors`` only receives fatal, run-aborting
    failures; check findings such as console errors live in ``results``.
    """
    site: Site
    selection: CheckSelection
    results: Dict[CheckKind, Any] = field(default_factory=dict)
    audit_errors: List[str] = field(default_factory=list)

    def __post_init__(self):
        for kind in self.selection.enabled:
            self.results.setdefault(kind, kind.zero())

    def get(self, kind: CheckKind) -> Any:
        if not self.selection.is_enabled(kind):
            return kind.zero()
        return self.results.get(kind, kind.zero())

    def set(self, kind: CheckKind, value: Any) -> None:
        if not self.selection.is_enabled(kind):
            raise ValueError(f"check {kind.cli_name} is not enabled")
        self.results[kind] = value

    @property
    def failed(self) -> bool:
        return bool(self.audit_errors)


class IdleOutcome(Enum):
    IDLE = "idle"            # quiet period elapsed with nothing in flight
    STATIC = "static"        # no tracked request was ever seen
    TIMED_OUT = "timed out"  # max wait elapsed first


@dataclass
class AuditConfig:
    """Timing and output settings for one batch. Durations are in seconds."""
    screenshot_dir: Path = Path("screenshots")
    site_timeout: float = 60.0
    navigation_timeout: float = 30.0
    idle_quiet_period: float = 0.5
    idle_max_wait: float = 10.0
    static_fallback: float = 1.0
    settle_delay: float = 1.0
    browser_settle: float = 2.0
    strict_idle: bool = False
    headless: bool = True
