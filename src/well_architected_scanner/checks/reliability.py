"""
Reliability pillar checks
"""

from ..core.framework import (
    CheckResult, CheckStatus, Pillar, RemediationEffort, Severity, WellArchitectedCheck,
)
from . import resource_label


class DatabaseMultiAZCheck(WellArchitectedCheck):
    """RDS instances running in a single availability zone"""

    QUERY = """
        SELECT resourceId, resourceName, awsRegion, configuration.multiAZ,
               configuration.engine
        WHERE resourceType = 'AWS::RDS::DBInstance'
    """

    def __init__(self, query):
        super().__init__(query)
        self.check_id = "RE01"
        self.pillar = Pillar.RELIABILITY
        self.title = "RDS instances should be deployed across multiple availability zones"
        self.description = ("A single-AZ database is unavailable for the duration of an "
                            "AZ outage or a maintenance failover.")
        self.severity = Severity.HIGH
        self.remediation_effort = RemediationEffort.MEDIUM
        self.tags = {"rds", "high-availability"}

    def evaluate(self, scope: str) -> CheckResult:
        databases = self.query.execute(self.QUERY, scope)
        if not databases:
            return self.not_applicable("RDS instances")

        single_az = [resource_label(db) for db in databases
                     if not (db.get('configuration') or {}).get('multiAZ')]
        if single_az:
            return self.create_result(
                CheckStatus.FAIL,
                f"{len(single_az)} of {len(databases)} RDS instances are single-AZ",
                affected_resources=single_az,
                recommendation="Enable Multi-AZ deployment for production databases.",
                remediation_script=(
                    "aws rds modify-db-instance --db-instance-identifier <id> "
                    "--multi-az --apply-immediately"
                ),
                metadata={"total": len(databases), "failing": len(single_az)},
            )
        return self.create_result(
            CheckStatus.PASS,
            f"All {len(databases)} RDS instances are Multi-AZ",
            metadata={"total": len(databases), "failing": 0},
        )


class AutoScalingZoneSpreadCheck(WellArchitectedCheck):
    """Auto Scaling groups confined to one availability zone"""

    QUERY = """
        SELECT resourceId, resourceName, awsRegion, configuration.availabilityZones
        WHERE resourceType = 'AWS::AutoScaling::AutoScalingGroup'
    """
    MIN_ZONES = 2

    def __init__(self, query):
        super().__init__(query)
        self.check_id = "RE02"
        self.pillar = Pillar.RELIABILITY
        self.title = "Auto Scaling groups should span at least two availability zones"
        self.description = ("Groups limited to one zone cannot replace capacity when that "
                            "zone is impaired.")
        self.severity = Severity.MEDIUM
        self.remediation_effort = RemediationEffort.LOW
        self.tags = {"autoscaling", "high-availability"}

    def evaluate(self, scope: str) -> CheckResult:
        groups = self.query.execute(self.QUERY, scope)
        if not groups:
            return self.not_applicable("Auto Scaling groups")

        narrow = [
            resource_label(group) for group in groups
            if len((group.get('configuration') or {}).get('availabilityZones') or []) < self.MIN_ZONES
        ]
        if narrow:
            return self.create_result(
                CheckStatus.WARNING,
                f"{len(narrow)} of {len(groups)} Auto Scaling groups use a single availability zone",
                affected_resources=narrow,
                recommendation="Attach subnets from at least two availability zones to each group.",
                remediation_script=(
                    "aws autoscaling update-auto-scaling-group --auto-scaling-group-name <name> "
                    "--vpc-zone-identifier <subnet-a>,<subnet-b>"
                ),
                metadata={"total": len(groups), "failing": len(narrow)},
            )
        return self.create_result(
            CheckStatus.PASS,
            f"All {len(groups)} Auto Scaling groups span multiple availability zones",
            metadata={"total": len(groups), "failing": 0},
        )


CHECKS = [
    DatabaseMultiAZCheck,
    AutoScalingZoneSpreadCheck,
]
