"""Ordered collection of per-site results."""

from typing import Iterator, List

from siteauditor.core.models import AuditResult


class ResultAggregator:
    """Keeps results in the order sites were audited. No dedup, no transformation."""

    def __init__(self):
        self._results: List[AuditResult] = []

    def add(self, result: AuditResult) -> None:
        self._results.append(result)

    @property
    def results(self) -> List[AuditResult]:
        return list(self._results)

    @property
    def failed(self) -> List[AuditResult]:
        return [r for r in self._results if r.failed]

    def __len__(self):
        return len(self._results)

    def __iter__(self) -> Iterator[AuditResult]:
        return iter(list(self._results))
