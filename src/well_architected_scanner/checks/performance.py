"""
Performance efficiency pillar checks
"""

from ..core.framework import (
    CheckResult, CheckStatus, Pillar, RemediationEffort, Severity, WellArchitectedCheck,
)
from . import resource_label

PREVIOUS_GENERATION_FAMILIES = {
    "t1", "m1", "m2", "m3", "c1", "c3", "cc2", "cg1", "cr1",
    "g2", "hi1", "hs1", "i2", "r3", "d2",
}


def instance_family(instance_type: str) -> str:
    return (instance_type or "").split(".")[0].lower()


class PreviousGenerationInstancesCheck(WellArchitectedCheck):
    """Instances on previous-generation instance families"""

    QUERY = """
        SELECT resourceId, resourceName, awsRegion, configuration.instanceType,
               configuration.state.name
        WHERE resourceType = 'AWS::EC2::Instance'
    """

    def __init__(self, query):
        super().__init__(query)
        self.check_id = "PE01"
        self.pillar = Pillar.PERFORMANCE_EFFICIENCY
        self.title = "EC2 instances should use current-generation instance types"
        self.description = ("Previous-generation families deliver less performance per dollar "
                            "than their current replacements.")
        self.severity = Severity.LOW
        self.remediation_effort = RemediationEffort.MEDIUM
        self.tags = {"ec2", "right-sizing"}

    def evaluate(self, scope: str) -> CheckResult:
        instances = [
            instance for instance in self.query.execute(self.QUERY, scope)
            if ((instance.get('configuration') or {}).get('state') or {}).get('name')
            not in ('terminated', 'shutting-down')
        ]
        if not instances:
            return self.not_applicable("EC2 instances")

        outdated = {}
        for instance in instances:
            instance_type = (instance.get('configuration') or {}).get('instanceType', '')
            if instance_family(instance_type) in PREVIOUS_GENERATION_FAMILIES:
                outdated[resource_label(instance)] = instance_type

        if outdated:
            return self.create_result(
                CheckStatus.WARNING,
                f"{len(outdated)} of {len(instances)} instances use previous-generation types",
                affected_resources=list(outdated),
                recommendation="Move to the equivalent current-generation family (for example m3 to m6i).",
                remediation_script=(
                    "aws ec2 stop-instances --instance-ids <id> && "
                    "aws ec2 modify-instance-attribute --instance-id <id> "
                    "--instance-type Value=<new-type> && "
                    "aws ec2 start-instances --instance-ids <id>"
                ),
                metadata={"total": len(instances), "failing": len(outdated),
                          "instance_types": outdated},
            )
        return self.create_result(
            CheckStatus.PASS,
            f"All {len(instances)} instances use current-generation types",
            metadata={"total": len(instances), "failing": 0},
        )


CHECKS = [
    PreviousGenerationInstancesCheck,
]
