"""CSV report: one row per site, one column per enabled check."""

import csv
from pathlib import Path
from typing import Any, List, Sequence

from siteauditor.core.errors import ConfigError
from siteauditor.core.models import AuditResult, CheckSelection


PASS, FAIL = "✅", "❌"
LIST_SEPARATOR = ";\n"


def format_value(value: Any) -> str:
    if isinstance(value, bool):
        return PASS if value else FAIL
    if isinstance(value, float):
        return f"{value:.0f}" if value.is_integer() else f"{value:.2f}"
    if isinstance(value, list):
        return LIST_SEPARATOR.join(str(v) for v in value)
    return str(value)


class CSVReport:

    def __init__(self, path):
        self.path = Path(path)
        if not str(path).strip():
            raise ConfigError("output path cannot be empty")
        # creating it up front catches a bad directory before the audit runs
        try:
            self.path.touch()
        except OSError as exc:
            raise ConfigError(f"cannot create output file {path}: {exc}") from exc

    @staticmethod
    def header(selection: CheckSelection) -> List[str]:
        return ["Website"] + selection.labels + ["Audit Errors"]

    @staticmethod
    def row(result: AuditResult) -> List[str]:
        values = [format_value(result.get(kind)) for kind in result.selection.enabled]
        return [result.site.domain] + values + [LIST_SEPARATOR.join(result.audit_errors)]

    def write(self, results: Sequence[AuditResult], selection: CheckSelection) -> None:
        with open(self.path, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(self.header(selection))
            for result in results:
                writer.writerow(self.row(result))
