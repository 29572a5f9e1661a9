"""Abstract base for all page checkers."""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from siteauditor.core.models import CheckKind


class BaseChecker(ABC):
    """Every checker names its CheckKind and implements run()."""

    kind: CheckKind

    # Script installed with add_init_script() before navigation, if any.
    init_script: Optional[str] = None

    # ── public API ──────────────────────────────────────────────

    @abstractmethod
    async def run(self, page, response) -> Any:
        """
        Sample the settled *page* (and the main-document *response*).
        Return the check's result value; raise playwright's Error on failure.
        """
        ...

    def has_findings(self, value: Any) -> bool:
        """True when *value* reports at least one problem."""
        return bool(value)

    # ── shared helpers ──────────────────────────────────────────

    @staticmethod
    def as_strings(value: Any) -> List[str]:
        """Coerce an evaluate() result into a list of non-empty strings."""
        if not value:
            return []
        if isinstance(value, str):
            return [value]
        return [str(v) for v in value if v not in (None, "")]
