"""
Scan configuration values passed into the engine and query client
"""

import os
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .framework import Pillar

DEFAULT_TIMEOUT = 300
DEFAULT_MAX_RETRIES = 3
DEFAULT_BACKOFF_BASE = 2.0
DEFAULT_CACHE_TTL = 30 * 60
DEFAULT_MAX_CONCURRENCY = 1


def _pillars(values: Optional[Iterable]) -> List[Pillar]:
    return [value if isinstance(value, Pillar) else Pillar.parse(value)
            for value in (values or [])]


def _ids(values: Optional[Iterable[str]]) -> List[str]:
    return [value.strip().upper() for value in (values or []) if value.strip()]


@dataclass
class CheckFilter:
    """Selects checks from the registry. Exclusions win over inclusions."""
    include_pillars: List[Pillar] = field(default_factory=list)
    include_checks: List[str] = field(default_factory=list)
    exclude_pillars: List[Pillar] = field(default_factory=list)
    exclude_checks: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.include_pillars = _pillars(self.include_pillars)
        self.exclude_pillars = _pillars(self.exclude_pillars)
        self.include_checks = _ids(self.include_checks)
        self.exclude_checks = _ids(self.exclude_checks)

    @property
    def is_empty(self) -> bool:
        return not (self.include_pillars or self.include_checks
                    or self.exclude_pillars or self.exclude_checks)


@dataclass
class ScanConfig:
    """Process-wide scan settings"""
    timeout_per_check: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    backoff_base: float = DEFAULT_BACKOFF_BASE
    cache_ttl: float = DEFAULT_CACHE_TTL
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    include_pillars: List[str] = field(default_factory=list)
    include_checks: List[str] = field(default_factory=list)
    exclude_pillars: List[str] = field(default_factory=list)
    exclude_checks: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.timeout_per_check <= 0:
            raise ValueError("timeout_per_check must be positive")
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")
        if self.backoff_base < 0:
            raise ValueError("backoff_base must not be negative")
        if self.cache_ttl < 0:
            raise ValueError("cache_ttl must not be negative")
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

    @property
    def check_filter(self) -> CheckFilter:
        return CheckFilter(
            include_pillars=list(self.include_pillars),
            include_checks=list(self.include_checks),
            exclude_pillars=list(self.exclude_pillars),
            exclude_checks=list(self.exclude_checks),
        )


def clamp_concurrency(requested: int) -> int:
    """Clamp a worker count to [1, number of processors]"""
    return max(1, min(requested, os.cpu_count() or 1))
