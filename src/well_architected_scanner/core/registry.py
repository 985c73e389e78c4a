"""
Registry for managing well-architected checks
"""

import logging
from typing import Dict, List, Optional

from .config import CheckFilter
from .errors import InvalidCheckError, RegistrationConflictError
from .framework import CHECK_ID_PATTERN, CheckDefinition, Pillar

logger = logging.getLogger(__name__)


class CheckRegistry:
    """Registry for managing checks

    Built once at start-up and passed to the scan engine. Insertion order is
    the order in which checks run and are reported.
    """

    def __init__(self):
        self.checks: Dict[str, CheckDefinition] = {}
        self.conflicts: List[RegistrationConflictError] = []

    def register(self, definition: CheckDefinition) -> bool:
        """Register a check; returns False when the id is already taken"""
        self._validate(definition)
        if definition.id in self.checks:
            conflict = RegistrationConflictError(definition.id)
            self.conflicts.append(conflict)
            logger.warning(str(conflict))
            return False
        self.checks[definition.id] = definition
        logger.debug(f"Registered check {definition.id}: {definition.title}")
        return True

    @staticmethod
    def _validate(definition: CheckDefinition):
        if not isinstance(definition.id, str) or not CHECK_ID_PATTERN.match(definition.id):
            raise InvalidCheckError(f"Invalid check id: {definition.id!r}")
        if not isinstance(definition.pillar, Pillar):
            raise InvalidCheckError(f"Check {definition.id} has unknown pillar {definition.pillar!r}")
        if definition.id[:2] != definition.pillar.code:
            raise InvalidCheckError(
                f"Check {definition.id} prefix does not match pillar {definition.pillar.value}"
            )
        if not callable(definition.logic):
            raise InvalidCheckError(f"Check {definition.id} has no callable logic")

    def get_check(self, check_id: str) -> Optional[CheckDefinition]:
        """Get a specific check by ID"""
        return self.checks.get(check_id)

    def get_checks_by_pillar(self, pillar: Pillar) -> List[CheckDefinition]:
        return [check for check in self.checks.values() if check.pillar == pillar]

    def get_all_checks(self) -> List[CheckDefinition]:
        """Get all registered checks"""
        return list(self.checks.values())

    def query(self, check_filter: Optional[CheckFilter] = None) -> List[CheckDefinition]:
        """Checks selected by ``check_filter``, in registration order"""
        checks = self.get_all_checks()
        if check_filter is None or check_filter.is_empty:
            return checks

        if check_filter.include_pillars or check_filter.include_checks:
            pillars = set(check_filter.include_pillars)
            ids = set(check_filter.include_checks)
            checks = [check for check in checks
                      if check.pillar in pillars or check.id in ids]

        excluded_pillars = set(check_filter.exclude_pillars)
        excluded_ids = set(check_filter.exclude_checks)
        return [check for check in checks
                if check.pillar not in excluded_pillars and check.id not in excluded_ids]

    def list_checks(self) -> Dict[str, str]:
        """List all available checks"""
        return {check_id: check.title for check_id, check in self.checks.items()}

    def __len__(self) -> int:
        return len(self.checks)

    def __contains__(self, check_id: str) -> bool:
        return check_id in self.checks
