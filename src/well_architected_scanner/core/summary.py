"""
Summary statistics over a result set
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from .framework import CheckResult, CheckStatus


def compliance_score(passed: int, failed: int, warnings: int) -> float:
    """Share of scoreable results that passed, as a percentage"""
    denominator = passed + failed + warnings
    if denominator == 0:
        return 0.0
    return round(passed / denominator * 100, 2)


@dataclass
class PillarSummary:
    pillar: str
    total: int = 0
    passed: int = 0
    failed: int = 0
    warnings: int = 0

    @property
    def compliance_score(self) -> float:
        return compliance_score(self.passed, self.failed, self.warnings)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pillar": self.pillar,
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "compliance_score": self.compliance_score,
        }


@dataclass
class ScanSummary:
    total_checks: int = 0
    passed: int = 0
    failed: int = 0
    warnings: int = 0
    not_applicable: int = 0
    errors: int = 0
    compliance_score: float = 0.0
    by_pillar: List[PillarSummary] = field(default_factory=list)
    by_severity: Dict[str, int] = field(default_factory=dict)
    scan_started_at: Optional[str] = None
    duration_seconds: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_checks": self.total_checks,
            "passed": self.passed,
            "failed": self.failed,
            "warnings": self.warnings,
            "not_applicable": self.not_applicable,
            "errors": self.errors,
            "compliance_score": self.compliance_score,
            "by_pillar": [pillar.to_dict() for pillar in self.by_pillar],
            "by_severity": dict(self.by_severity),
            "scan_started_at": self.scan_started_at,
            "duration_seconds": self.duration_seconds,
        }


def summarize(results: Iterable[CheckResult],
              scan_start_time: Optional[datetime] = None) -> ScanSummary:
    """Compute counts, compliance score and breakdowns for ``results``"""
    results = list(results)
    counts = {status: 0 for status in CheckStatus}
    pillars: Dict[str, PillarSummary] = {}

    for result in results:
        counts[result.status] += 1
        pillar = pillars.setdefault(result.pillar.value, PillarSummary(result.pillar.value))
        pillar.total += 1
        if result.status == CheckStatus.PASS:
            pillar.passed += 1
        elif result.status == CheckStatus.FAIL:
            pillar.failed += 1
        elif result.status == CheckStatus.WARNING:
            pillar.warnings += 1

    by_severity: Dict[str, int] = {}
    for result in results:
        if result.status == CheckStatus.FAIL:
            key = result.severity.value
            by_severity[key] = by_severity.get(key, 0) + 1

    summary = ScanSummary(
        total_checks=len(results),
        passed=counts[CheckStatus.PASS],
        failed=counts[CheckStatus.FAIL],
        warnings=counts[CheckStatus.WARNING],
        not_applicable=counts[CheckStatus.NOT_APPLICABLE],
        errors=counts[CheckStatus.ERROR],
        by_pillar=list(pillars.values()),
        by_severity=by_severity,
    )
    summary.compliance_score = compliance_score(summary.passed, summary.failed, summary.warnings)

    if scan_start_time is not None:
        if scan_start_time.tzinfo is None:
            scan_start_time = scan_start_time.replace(tzinfo=timezone.utc)
        summary.scan_started_at = scan_start_time.isoformat()
        elapsed = datetime.now(timezone.utc) - scan_start_time
        summary.duration_seconds = round(elapsed.total_seconds(), 2)
    return summary
