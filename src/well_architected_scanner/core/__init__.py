"""Core framework components for the Well-Architected Scanner"""

from .framework import CheckDefinition, CheckResult, CheckStatus, WellArchitectedCheck
from .config import CheckFilter, ScanConfig
from .provider import AWSProvider
from .query import QueryClient
from .engine import ScanEngine, ScopeScan
from .registry import CheckRegistry
from .runner import CheckRunner
from .summary import ScanSummary, summarize
from .baseline import BaselineComparison, diff
from .output import OutputEngine

__all__ = [
    "CheckDefinition",
    "CheckResult",
    "CheckStatus",
    "WellArchitectedCheck",
    "CheckFilter",
    "ScanConfig",
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
