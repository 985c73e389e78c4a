"""
Core scanning engine that orchestrates checks across scopes
"""

import logging
import concurrent.futures
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

from .config import CheckFilter, ScanConfig, clamp_concurrency
from .framework import CheckDefinition, CheckResult
from .registry import CheckRegistry
from .runner import CheckRunner

logger = logging.getLogger(__name__)


@dataclass
class ScopeScan:
    """Results of every selected check for one scope, or the reason there are none"""
    scope: str
    results: List[CheckResult] = field(default_factory=list)
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class ScanEngine:
    """Core scanning engine that orchestrates checks

    Checks inside a scope run one after another so that they share the query
    cache; scopes run side by side up to ``max_concurrency``.
    """

    def __init__(self, registry: CheckRegistry, config: ScanConfig = None,
                 runner: CheckRunner = None,
                 preflight: Callable[[str], None] = None):
        self.registry = registry
        self.config = config or ScanConfig()
        self.runner = runner or CheckRunner(self.config.timeout_per_check)
        self.preflight = preflight

    def select_checks(self, check_filter: CheckFilter = None) -> List[CheckDefinition]:
        """Resolve the checks to run; registry failures propagate"""
        if check_filter is None:
            check_filter = self.config.check_filter
        checks = self.registry.query(check_filter)
        if not checks:
            logger.warning("No checks selected for scanning")
        return checks

    def scan_one(self, scope: str, check_filter: CheckFilter = None,
                 timeout_per_check: float = None) -> List[CheckResult]:
        """Run the selected checks against one scope in registry order"""
        checks = self.select_checks(check_filter)
        return self._run_checks(scope, checks, timeout_per_check)

    def scan_many(self, scopes: Iterable[str], check_filter: CheckFilter = None,
                  timeout_per_check: float = None,
                  max_concurrency: int = None) -> Dict[str, ScopeScan]:
        """Scan several scopes with at most ``max_concurrency`` running at once"""
        scopes = list(dict.fromkeys(scopes))
        checks = self.select_checks(check_filter)
        requested = max_concurrency or self.config.max_concurrency
        workers = clamp_concurrency(requested)
        if workers != requested:
            logger.info(f"Concurrency {requested} clamped to {workers}")

        logger.info(f"Scanning {len(scopes)} scope(s) with {len(checks)} checks "
                    f"({workers} worker(s))")

        outcomes: Dict[str, ScopeScan] = {}
        if not scopes:
            return outcomes

        with concurrent.futures.ThreadPoolExecutor(
                max_workers=workers, thread_name_prefix="scope") as executor:
            future_to_scope = {
                executor.submit(self._scan_scope, scope, checks, timeout_per_check): scope
                for scope in scopes
            }
            for future in concurrent.futures.as_completed(future_to_scope):
                scope = future_to_scope[future]
                try:
                    outcomes[scope] = future.result()
                except Exception as e:
                    logger.error(f"Scan of scope {scope} failed: {str(e)}")
                    outcomes[scope] = ScopeScan(scope=scope, error=str(e))

        failed = [scope for scope, outcome in outcomes.items() if not outcome.succeeded]
        logger.info(f"Scan completed: {len(outcomes) - len(failed)} scope(s) scanned, "
                    f"{len(failed)} failed")
        return outcomes

    def _scan_scope(self, scope: str, checks: List[CheckDefinition],
                    timeout_per_check: Optional[float]) -> ScopeScan:
        started = datetime.now(timezone.utc)
        if self.preflight is not None:
            try:
                self.preflight(scope)
            except Exception as e:
                logger.error(f"Scope {scope} skipped: {str(e)}")
                return ScopeScan(scope=scope, error=str(e), started_at=started,
                                 finished_at=datetime.now(timezone.utc))
        results = self._run_checks(scope, checks, timeout_per_check)
        return ScopeScan(scope=scope, results=results, started_at=started,
                         finished_at=datetime.now(timezone.utc))

    def _run_checks(self, scope: str, checks: List[CheckDefinition],
                    timeout_per_check: Optional[float]) -> List[CheckResult]:
        timeout = timeout_per_check or self.config.timeout_per_check
        logger.info(f"Running {len(checks)} checks against {scope}...")
        results = [self.runner.run(check, scope, timeout) for check in checks]
        logger.info(f"Scope {scope} completed: {len(results)} results")
        return results
