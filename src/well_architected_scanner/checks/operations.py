"""
Operational excellence pillar checks
"""

from ..core.framework import (
    CheckResult, CheckStatus, Pillar, RemediationEffort, Severity, WellArchitectedCheck,
)
from . import extract_tags, resource_label

REQUIRED_TAGS = ("Owner", "Environment")


class RequiredTagsCheck(WellArchitectedCheck):
    """Instances missing ownership and environment tags"""

    QUERY = """
        SELECT resourceId, resourceName, awsRegion, tags
        WHERE resourceType = 'AWS::EC2::Instance'
    """
    # Share of untagged instances above which the verdict becomes Fail.
    FAIL_RATIO = 0.5

    def __init__(self, query):
        super().__init__(query)
        self.check_id = "OE01"
        self.pillar = Pillar.OPERATIONAL_EXCELLENCE
        self.title = "EC2 instances should carry Owner and Environment tags"
        self.description = "Untagged resources cannot be attributed to a team or workload."
        self.severity = Severity.LOW
        self.remediation_effort = RemediationEffort.LOW
        self.tags = {"tagging", "governance"}

    def evaluate(self, scope: str) -> CheckResult:
        instances = self.query.execute(self.QUERY, scope)
        if not instances:
            return self.not_applicable("EC2 instances")

        missing = {}
        for instance in instances:
            tags = extract_tags(instance.get('tags'))
            absent = [name for name in REQUIRED_TAGS if not tags.get(name)]
            if absent:
                missing[resource_label(instance)] = absent

        if not missing:
            return self.create_result(
                CheckStatus.PASS,
                f"All {len(instances)} instances carry the required tags",
                metadata={"total": len(instances), "failing": 0},
            )

        status = CheckStatus.FAIL if len(missing) / len(instances) > self.FAIL_RATIO \
            else CheckStatus.WARNING
        return self.create_result(
            status,
            f"{len(missing)} of {len(instances)} instances are missing required tags",
            affected_resources=list(missing),
            recommendation=f"Tag every instance with {', '.join(REQUIRED_TAGS)}.",
            remediation_script=(
                "aws ec2 create-tags --resources <instance-id> "
                "--tags Key=Owner,Value=<team> Key=Environment,Value=<env>"
            ),
            metadata={"total": len(instances), "failing": len(missing),
                      "missing_tags": missing},
        )


class CloudTrailCoverageCheck(WellArchitectedCheck):
    """Account activity logging through a multi-region CloudTrail trail"""

    QUERY = """
        SELECT resourceId, resourceName, awsRegion, configuration.isMultiRegionTrail,
               configuration.isLogging
        WHERE resourceType = 'AWS::CloudTrail::Trail'
    """

    def __init__(self, query):
        super().__init__(query)
        self.check_id = "OE02"
        self.pillar = Pillar.OPERATIONAL_EXCELLENCE
        self.title = "A multi-region CloudTrail trail should record account activity"
        self.description = ("Without a multi-region trail, API activity in other regions "
                            "goes unrecorded.")
        self.severity = Severity.HIGH
        self.remediation_effort = RemediationEffort.LOW
        self.tags = {"logging", "audit"}

    def evaluate(self, scope: str) -> CheckResult:
        trails = self.query.execute(self.QUERY, scope)
        remediation_script = (
            "aws cloudtrail create-trail --name organization-trail "
            "--s3-bucket-name <bucket> --is-multi-region-trail && "
            "aws cloudtrail start-logging --name organization-trail"
        )
        if not trails:
            return self.create_result(
                CheckStatus.FAIL,
                "No CloudTrail trails are configured",
                recommendation="Create a multi-region trail delivering to a protected bucket.",
                remediation_script=remediation_script,
                metadata={"total": 0, "failing": 0},
            )

        multi_region = [trail for trail in trails
                        if (trail.get('configuration') or {}).get('isMultiRegionTrail')]
        if multi_region:
            return self.create_result(
                CheckStatus.PASS,
                f"{len(multi_region)} multi-region trail(s) configured",
                metadata={"total": len(trails), "failing": 0},
            )
        return self.create_result(
            CheckStatus.WARNING,
            f"{len(trails)} trail(s) configured but none cover all regions",
            affected_resources=[resource_label(trail) for trail in trails],
            recommendation="Convert an existing trail to multi-region.",
            remediation_script="aws cloudtrail update-trail --name <trail> --is-multi-region-trail",
            metadata={"total": len(trails), "failing": len(trails)},
        )


CHECKS = [
    RequiredTagsCheck,
    CloudTrailCoverageCheck,
]
