"""Check registry: turns the check configuration into a CheckSelection."""

from typing import List

from siteauditor.core.errors import ConfigError
from siteauditor.core.models import CheckKind, CheckSelection


ALL_CHECKS = tuple(CheckKind)

# Fast, high-signal subset
IMPORTANT_CHECKS = (
    CheckKind.SECURE,
    CheckKind.RESPONSIVE_ISSUES,
    CheckKind.FORM_ISSUES,
    CheckKind.TECH_STACK,
)


def check_names() -> List[str]:
    return [kind.cli_name for kind in CheckKind]


def select_checks(names: str = "", important: bool = False) -> CheckSelection:
    """
    Build the batch's CheckSelection.

    names      comma separated check names (see check_names()); empty = all
    important  use the fixed important subset; exclusive with *names*
    """
    names = (names or "").strip()

    if important and names:
        raise ConfigError("--important and --checks are mutually exclusive")
    if important:
        return CheckSelection(enabled=IMPORTANT_CHECKS, important=True)
    if not names:
        return CheckSelection(enabled=ALL_CHECKS)

    wanted = set()
    for raw in names.split(","):
        name = raw.strip().lower()
        if not name:
            continue
        kind = CheckKind.from_cli_name(name)
        if kind is None:
            raise ConfigError(
                f"unknown check {raw.strip()!r} (valid: {', '.join(check_names())})")
        wanted.add(kind)

    if not wanted:
        raise ConfigError(f"no checks given in {names!r}")

    # canonical order regardless of how they were listed
    return CheckSelection(enabled=tuple(k for k in CheckKind if k in wanted))
