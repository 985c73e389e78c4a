"""
Cost optimization pillar checks
"""

from ..core.framework import (
    CheckResult, CheckStatus, Pillar, RemediationEffort, Severity, WellArchitectedCheck,
)
from . import resource_label


class UnattachedVolumesCheck(WellArchitectedCheck):
    """EBS volumes that are billed but not attached to any instance"""

    QUERY = """
        SELECT resourceId, resourceName, awsRegion, configuration.size,
               configuration.state.value
        WHERE resourceType = 'AWS::EC2::Volume'
    """

    def __init__(self, query):
        super().__init__(query)
        self.check_id = "CO01"
        self.pillar = Pillar.COST_OPTIMIZATION
        self.title = "Unattached EBS volumes should be removed"
        self.description = "Volumes in the 'available' state accrue storage charges without use."
        self.severity = Severity.MEDIUM
        self.remediation_effort = RemediationEffort.LOW
        self.tags = {"ebs", "waste"}

    def evaluate(self, scope: str) -> CheckResult:
        volumes = self.query.execute(self.QUERY, scope)
        if not volumes:
            return self.not_applicable("EBS volumes")

        idle = [volume for volume in volumes
                if ((volume.get('configuration') or {}).get('state') or {}).get('value') == 'available']
        if idle:
            idle_gib = sum((volume.get('configuration') or {}).get('size') or 0 for volume in idle)
            return self.create_result(
                CheckStatus.FAIL,
                f"{len(idle)} unattached EBS volumes ({idle_gib} GiB) found",
                affected_resources=[resource_label(volume) for volume in idle],
                recommendation="Snapshot volumes worth keeping, then delete them.",
                remediation_script="aws ec2 delete-volume --volume-id <volume-id>",
                metadata={"total": len(volumes), "failing": len(idle), "idle_gib": idle_gib},
            )
        return self.create_result(
            CheckStatus.PASS,
            f"All {len(volumes)} EBS volumes are attached",
            metadata={"total": len(volumes), "failing": 0},
        )


class IdleElasticIPCheck(WellArchitectedCheck):
    """Elastic IP addresses that are not associated with anything"""

    QUERY = """
        SELECT resourceId, resourceName, awsRegion, configuration.associationId,
               configuration.publicIp
        WHERE resourceType = 'AWS::EC2::EIP'
    """

    def __init__(self, query):
        super().__init__(query)
        self.check_id = "CO02"
        self.pillar = Pillar.COST_OPTIMIZATION
        self.title = "Unassociated Elastic IP addresses should be released"
        self.description = "Idle Elastic IPs are charged hourly."
        self.severity = Severity.LOW
        self.remediation_effort = RemediationEffort.LOW
        self.tags = {"network", "waste"}

    def evaluate(self, scope: str) -> CheckResult:
        addresses = self.query.execute(self.QUERY, scope)
        if not addresses:
            return self.not_applicable("Elastic IP addresses")

        idle = [resource_label(address) for address in addresses
                if not (address.get('configuration') or {}).get('associationId')]
        if idle:
            return self.create_result(
                CheckStatus.WARNING,
                f"{len(idle)} of {len(addresses)} Elastic IP addresses are not associated",
                affected_resources=idle,
                recommendation="Release addresses that are no longer needed.",
                remediation_script="aws ec2 release-address --allocation-id <allocation-id>",
                metadata={"total": len(addresses), "failing": len(idle)},
            )
        return self.create_result(
            CheckStatus.PASS,
            f"All {len(addresses)} Elastic IP addresses are in use",
            metadata={"total": len(addresses), "failing": 0},
        )


CHECKS = [
    UnattachedVolumesCheck,
    IdleElasticIPCheck,
]
