"""
Well-Architected Scanner - audits AWS accounts against best-practice checks

This package provides a framework for registering checks, running them
against one or more accounts with timeouts and bounded concurrency,
summarizing the results and comparing them against a previous run.
"""

__version__ = "1.0.0"

from .core.framework import (
    CheckDefinition,
    CheckResult,
    CheckStatus,
    Pillar,
    RemediationEffort,
    Severity,
    WellArchitectedCheck,
)
from .core.provider import AWSProvider
from .core.query import QueryClient
from .core.engine import ScanEngine, ScopeScan
from .core.registry import CheckRegistry
from .core.runner import CheckRunner
from .core.summary import ScanSummary, summarize
from .core.baseline import BaselineComparison, diff
from .core.output import OutputEngine

__all__ = [
    "CheckDefinition",
    "CheckResult",
    "CheckStatus",
    "Pillar",
    "RemediationEffort",
    "Severity",
    "WellArchitectedCheck",
    "AWSProvider",
    "QueryClient",
    "ScanEngine",
    "ScopeScan",
    "CheckRegistry",
    "CheckRunner",
    "ScanSummary",
    "summarize",
    "BaselineComparison",
    "diff",
    "OutputEngine",
]
