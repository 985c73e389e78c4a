"""
Comparison of a scan against a previously saved result set
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .errors import BaselineError
from .framework import CheckResult, CheckStatus

logger = logging.getLogger(__name__)

CHECK_ID_FIELDS = ("check_id", "checkId", "CheckId")
SCOPE_FIELDS = ("scope", "Scope")
REGRESSED = (CheckStatus.FAIL, CheckStatus.WARNING)


@dataclass(frozen=True)
class StatusChange:
    check_id: str
    title: str
    current_status: CheckStatus
    baseline_status: Optional[CheckStatus] = None
    scope: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scope": self.scope,
            "check_id": self.check_id,
            "title": self.title,
            "current_status": self.current_status.value,
            "baseline_status": self.baseline_status.value if self.baseline_status else None,
        }


@dataclass
class BaselineComparison:
    """Per-check classification of a scan against a baseline

    ``unclassified`` holds status changes between two non-Pass states
    (for example Warning to Error). They are reported as they are and are
    neither regressions nor improvements.
    """
    new_failures: List[StatusChange] = field(default_factory=list)
    improvements: List[StatusChange] = field(default_factory=list)
    unchanged: List[StatusChange] = field(default_factory=list)
    unclassified: List[StatusChange] = field(default_factory=list)
    baseline_path: Optional[str] = None

    def merge(self, other: "BaselineComparison"):
        self.new_failures.extend(other.new_failures)
        self.improvements.extend(other.improvements)
        self.unchanged.extend(other.unchanged)
        self.unclassified.extend(other.unclassified)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "baseline_path": self.baseline_path,
            "new_failures": [change.to_dict() for change in self.new_failures],
            "improvements": [change.to_dict() for change in self.improvements],
            "unchanged": [change.to_dict() for change in self.unchanged],
            "unclassified": [change.to_dict() for change in self.unclassified],
        }


def _record_field(record: Dict[str, Any], names) -> Optional[str]:
    for name in names:
        if record.get(name):
            return str(record[name])
    return None


def index_baseline(records: Iterable[Dict[str, Any]],
                   scope: Optional[str] = None) -> Dict[str, CheckStatus]:
    """Map check id to baseline status; the first record for an id wins

    With ``scope`` set, records saved for a different scope are skipped.
    Records that carry no scope apply to every scope.
    """
    statuses: Dict[str, CheckStatus] = {}
    for record in records:
        if not isinstance(record, dict):
            continue
        check_id = _record_field(record, CHECK_ID_FIELDS)
        if check_id is None or check_id in statuses:
            continue
        record_scope = _record_field(record, SCOPE_FIELDS)
        if scope is not None and record_scope is not None and record_scope != scope:
            continue
        try:
            statuses[check_id] = CheckStatus.parse(record.get("status") or record.get("Status"))
        except ValueError:
            logger.warning(f"Baseline record for {check_id} has unknown status "
                           f"{record.get('status')!r}; ignoring it")
    return statuses


def compare(current: Iterable[CheckResult],
            baseline: Iterable[Dict[str, Any]],
            scope: Optional[str] = None) -> BaselineComparison:
    """Classify each current result against baseline records for ``scope``"""
    previous = index_baseline(baseline, scope)
    comparison = BaselineComparison()

    for result in current:
        before = previous.get(result.check_id)
        change = StatusChange(result.check_id, result.title, result.status, before, scope)
        if before is None:
            if result.status == CheckStatus.FAIL:
                comparison.new_failures.append(change)
        elif before == result.status:
            comparison.unchanged.append(change)
        elif result.status == CheckStatus.PASS:
            comparison.improvements.append(change)
        elif before == CheckStatus.PASS and result.status in REGRESSED:
            comparison.new_failures.append(change)
        else:
            comparison.unclassified.append(change)
    return comparison


def compare_scopes(current: Mapping[str, Iterable[CheckResult]],
                   baseline: Iterable[Dict[str, Any]]) -> BaselineComparison:
    """Compare each scope's results with that scope's baseline records"""
    records = list(baseline)
    comparison = BaselineComparison()
    for scope, results in current.items():
        comparison.merge(compare(results, records, scope))
    return comparison


def load_baseline(path: Union[str, Path]) -> Optional[List[Dict[str, Any]]]:
    """Read a saved result set; ``None`` when the file does not exist"""
    path = Path(path)
    if not path.exists():
        return None
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError) as e:
        raise BaselineError(str(path), f"unable to read: {e}") from e
    except json.JSONDecodeError as e:
        raise BaselineError(str(path), f"invalid JSON: {e}") from e

    # Full reports keep the result set under "results".
    if isinstance(data, dict):
        data = data.get("results")
    if not isinstance(data, list):
        raise BaselineError(str(path), "expected an array of check results")
    return data


def diff(current: Union[Iterable[CheckResult], Mapping[str, Iterable[CheckResult]]],
         baseline_path: Union[str, Path]) -> Optional[BaselineComparison]:
    """Compare ``current`` with the baseline file at ``baseline_path``

    ``current`` is either one scope's results or a mapping of scope to
    results; a mapping is matched against each scope's baseline records.
    """
    records = load_baseline(baseline_path)
    if records is None:
        logger.warning(f"Baseline {baseline_path} not found; skipping comparison")
        return None
    if isinstance(current, Mapping):
        comparison = compare_scopes(current, records)
    else:
        comparison = compare(current, records)
    comparison.baseline_path = str(baseline_path)
    logger.info(f"Baseline comparison: {len(comparison.new_failures)} new failure(s), "
                f"{len(comparison.improvements)} improvement(s), "
                f"{len(comparison.unchanged)} unchanged")
    return comparison
