"""
Core framework classes and interfaces for well-architected checks
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Iterable, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .query import QueryClient


class Pillar(str, Enum):
    RELIABILITY = "Reliability"
    SECURITY = "Security"
    COST_OPTIMIZATION = "CostOptimization"
    PERFORMANCE_EFFICIENCY = "PerformanceEfficiency"
    OPERATIONAL_EXCELLENCE = "OperationalExcellence"

    @property
    def code(self) -> str:
        """Two-letter prefix used by check ids of this pillar"""
        return PILLAR_CODES[self]

    @classmethod
    def parse(cls, value: str) -> "Pillar":
        """Resolve a pillar from its name, value or two-letter code"""
        text = str(value).strip().replace(" ", "").replace("_", "").lower()
        for pillar in cls:
            if text in (pillar.value.lower(), pillar.name.replace("_", "").lower(),
                        pillar.code.lower()):
                return pillar
        raise ValueError(f"Unknown pillar: {value}")


PILLAR_CODES = {
    Pillar.RELIABILITY: "RE",
    Pillar.SECURITY: "SE",
    Pillar.COST_OPTIMIZATION: "CO",
    Pillar.PERFORMANCE_EFFICIENCY: "PE",
    Pillar.OPERATIONAL_EXCELLENCE: "OE",
}

CHECK_ID_PATTERN = re.compile(r"^(RE|SE|CO|PE|OE)\d{2}$")


class Severity(str, Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class RemediationEffort(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class CheckStatus(str, Enum):
    PASS = "Pass"
    FAIL = "Fail"
    WARNING = "Warning"
    NOT_APPLICABLE = "NotApplicable"
    ERROR = "Error"

    @classmethod
    def parse(cls, value: Any) -> "CheckStatus":
        """Case-insensitive lookup, accepts 'PASS', 'Not Applicable' and the like"""
        if isinstance(value, cls):
            return value
        text = str(value).strip().replace(" ", "").replace("_", "").lower()
        for status in cls:
            if status.value.lower() == text:
                return status
        raise ValueError(f"Unknown check status: {value}")


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class CheckResult:
    """Verdict of one check against one scope.

    ``metadata`` is an open map of evidence. Conventions:

    * Pass/Fail/Warning: counts used for the verdict (``total``, ``failing`` ...)
    * Error: ``error_type``, ``error`` and ``traceback`` for exceptions,
      ``timeout_seconds`` for timeouts, plus ``scope``
    """
    check_id: str
    pillar: Pillar
    title: str
    severity: Severity
    remediation_effort: RemediationEffort
    status: CheckStatus
    message: str
    affected_resources: Tuple[str, ...] = ()
    recommendation: str = ""
    remediation_script: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=_utc_now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary for JSON output"""
        return {
            "check_id": self.check_id,
            "pillar": self.pillar.value,
            "title": self.title,
            "severity": self.severity.value,
            "remediation_effort": self.remediation_effort.value,
            "status": self.status.value,
            "message": self.message,
            "affected_resources": list(self.affected_resources),
            "recommendation": self.recommendation,
            "remediation_script": self.remediation_script,
            "metadata": dict(self.metadata),
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> "CheckResult":
        """Rebuild a result from a serialized record"""
        return cls(
            check_id=record.get("check_id") or record["checkId"],
            pillar=Pillar.parse(record["pillar"]),
            title=record.get("title", ""),
            severity=Severity(record.get("severity", Severity.MEDIUM.value)),
            remediation_effort=RemediationEffort(
                record.get("remediation_effort", RemediationEffort.MEDIUM.value)),
            status=CheckStatus.parse(record["status"]),
            message=record.get("message", ""),
            affected_resources=tuple(record.get("affected_resources") or ()),
            recommendation=record.get("recommendation") or "",
            remediation_script=record.get("remediation_script") or "",
            metadata=dict(record.get("metadata") or {}),
            timestamp=record.get("timestamp") or _utc_now(),
        )


CheckLogic = Callable[[str], CheckResult]


@dataclass(frozen=True)
class CheckDefinition:
    """Registered description of a check and the logic that evaluates it"""
    id: str
    pillar: Pillar
    title: str
    logic: CheckLogic = field(compare=False, repr=False)
    description: str = ""
    severity: Severity = Severity.MEDIUM
    remediation_effort: RemediationEffort = RemediationEffort.MEDIUM
    tags: FrozenSet[str] = frozenset()

    def create_result(self, status: CheckStatus, message: str,
                      affected_resources: Iterable[str] = (),
                      recommendation: str = "", remediation_script: str = "",
                      metadata: Optional[Dict[str, Any]] = None) -> CheckResult:
        """Build a result carrying this definition's descriptive fields"""
        return CheckResult(
            check_id=self.id,
            pillar=self.pillar,
            title=self.title,
            severity=self.severity,
            remediation_effort=self.remediation_effort,
            status=status,
            message=message,
            affected_resources=tuple(affected_resources),
            recommendation=recommendation,
            remediation_script=remediation_script,
            metadata=dict(metadata or {}),
        )


class WellArchitectedCheck(ABC):
    """Abstract base class for checks backed by inventory queries"""

    def __init__(self, query: 'QueryClient'):
        self.query = query
        self.check_id: str = ""
        self.pillar: Pillar = Pillar.OPERATIONAL_EXCELLENCE
        self.title: str = ""
        self.description: str = ""
        self.severity: Severity = Severity.MEDIUM
        self.remediation_effort: RemediationEffort = RemediationEffort.MEDIUM
        self.tags: FrozenSet[str] = frozenset()

    @abstractmethod
    def evaluate(self, scope: str) -> CheckResult:
        """Evaluate the check against one scope"""
        pass

    def definition(self) -> CheckDefinition:
        return CheckDefinition(
            id=self.check_id,
            pillar=self.pillar,
            title=self.title,
            logic=self.evaluate,
            description=self.description,
            severity=self.severity,
            remediation_effort=self.remediation_effort,
            tags=frozenset(self.tags),
        )

    def create_result(self, status: CheckStatus, message: str,
                      affected_resources: Iterable[str] = (),
                      recommendation: str = "", remediation_script: str = "",
                      metadata: Optional[Dict[str, Any]] = None) -> CheckResult:
        """Helper method to create a result"""
        return self.definition().create_result(
            status, message,
            affected_resources=affected_resources,
            recommendation=recommendation,
            remediation_script=remediation_script,
            metadata=metadata,
        )

    def not_applicable(self, resource_label: str) -> CheckResult:
        return self.create_result(
            CheckStatus.NOT_APPLICABLE,
            f"No {resource_label} found in scope",
            metadata={"total": 0},
        )
