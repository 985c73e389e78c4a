"""
Security pillar checks
"""

from typing import Any, Dict, List

from ..core.framework import (
    CheckResult, CheckStatus, Pillar, RemediationEffort, Severity, WellArchitectedCheck,
)
from . import extract_tags, resource_label

DANGEROUS_PORTS = [22, 3389, 1433, 3306, 5432, 6379, 27017]
WORLD_CIDRS = ("0.0.0.0/0", "::/0")


def _open_to_world(rule: Dict[str, Any]) -> bool:
    for ip_range in rule.get('ipv4Ranges') or []:
        if ip_range.get('cidrIp') in WORLD_CIDRS:
            return True
    for ip_range in rule.get('ipv6Ranges') or []:
        if ip_range.get('cidrIpv6') in WORLD_CIDRS:
            return True
    return any(cidr in WORLD_CIDRS for cidr in rule.get('ipRanges') or [])


def _exposed_ports(rule: Dict[str, Any]) -> List[int]:
    if str(rule.get('ipProtocol')) == '-1':
        return list(DANGEROUS_PORTS)
    from_port = rule.get('fromPort')
    to_port = rule.get('toPort')
    if from_port is None or to_port is None:
        return []
    return [port for port in DANGEROUS_PORTS if from_port <= port <= to_port]


class SecurityGroupOpenPortsCheck(WellArchitectedCheck):
    """Security groups exposing administrative or database ports to the internet"""

    QUERY = """
        SELECT resourceId, resourceName, awsRegion, configuration.ipPermissions
        WHERE resourceType = 'AWS::EC2::SecurityGroup'
    """

    def __init__(self, query):
        super().__init__(query)
        self.check_id = "SE01"
        self.pillar = Pillar.SECURITY
        self.title = "Security groups should not allow unrestricted access to sensitive ports"
        self.description = ("Inbound rules open to 0.0.0.0/0 or ::/0 on SSH, RDP or "
                            "database ports expose workloads to the whole internet.")
        self.severity = Severity.CRITICAL
        self.remediation_effort = RemediationEffort.LOW
        self.tags = {"network", "ec2"}

    def evaluate(self, scope: str) -> CheckResult:
        groups = self.query.execute(self.QUERY, scope)
        if not groups:
            return self.not_applicable("security groups")

        exposed = {}
        for group in groups:
            ports = set()
            for rule in (group.get('configuration') or {}).get('ipPermissions') or []:
                if _open_to_world(rule):
                    ports.update(_exposed_ports(rule))
            if ports:
                exposed[resource_label(group)] = sorted(ports)

        if exposed:
            return self.create_result(
                CheckStatus.FAIL,
                f"{len(exposed)} of {len(groups)} security groups allow unrestricted "
                f"access to sensitive ports",
                affected_resources=list(exposed),
                recommendation="Restrict source IP ranges to only necessary addresses",
                remediation_script=(
                    "aws ec2 revoke-security-group-ingress --group-id <group-id> "
                    "--protocol tcp --port <port> --cidr 0.0.0.0/0"
                ),
                metadata={"total": len(groups), "failing": len(exposed), "exposed_ports": exposed},
            )
        return self.create_result(
            CheckStatus.PASS,
            f"None of {len(groups)} security groups expose sensitive ports",
            metadata={"total": len(groups), "failing": 0},
        )


class InstancePublicIPCheck(WellArchitectedCheck):
    """Running instances reachable on a public IP address"""

    QUERY = """
        SELECT resourceId, resourceName, awsRegion, tags,
               configuration.publicIpAddress, configuration.state.name
        WHERE resourceType = 'AWS::EC2::Instance'
    """

    def __init__(self, query):
        super().__init__(query)
        self.check_id = "SE02"
        self.pillar = Pillar.SECURITY
        self.title = "EC2 instances should not have public IP addresses unless required"
        self.description = ("Instances with public addresses are directly reachable from "
                            "the internet. Tag an instance PublicIPRequired=true to exempt it.")
        self.severity = Severity.MEDIUM
        self.remediation_effort = RemediationEffort.MEDIUM
        self.tags = {"network", "ec2"}

    def evaluate(self, scope: str) -> CheckResult:
        instances = [
            instance for instance in self.query.execute(self.QUERY, scope)
            if ((instance.get('configuration') or {}).get('state') or {}).get('name') == 'running'
        ]
        if not instances:
            return self.not_applicable("running EC2 instances")

        public = []
        for instance in instances:
            tags = extract_tags(instance.get('tags'))
            if tags.get('PublicIPRequired', '').lower() == 'true':
                continue
            if (instance.get('configuration') or {}).get('publicIpAddress'):
                public.append(resource_label(instance))

        if public:
            return self.create_result(
                CheckStatus.FAIL,
                f"{len(public)} of {len(instances)} running instances have a public IP address",
                affected_resources=public,
                recommendation=("Move instances to private subnets or remove public IPs. "
                                "Use a NAT Gateway or load balancer for internet access."),
                metadata={"total": len(instances), "failing": len(public)},
            )
        return self.create_result(
            CheckStatus.PASS,
            f"None of {len(instances)} running instances have an unexpected public IP address",
            metadata={"total": len(instances), "failing": 0},
        )


class UnencryptedVolumesCheck(WellArchitectedCheck):
    """EBS volumes stored without encryption at rest"""

    QUERY = """
        SELECT resourceId, resourceName, awsRegion, configuration.encrypted
        WHERE resourceType = 'AWS::EC2::Volume'
    """

    def __init__(self, query):
        super().__init__(query)
        self.check_id = "SE03"
        self.pillar = Pillar.SECURITY
        self.title = "EBS volumes should be encrypted at rest"
        self.description = "Unencrypted volumes and their snapshots leak data if copied or shared."
        self.severity = Severity.HIGH
        self.remediation_effort = RemediationEffort.HIGH
        self.tags = {"encryption", "ebs"}

    def evaluate(self, scope: str) -> CheckResult:
        volumes = self.query.execute(self.QUERY, scope)
        if not volumes:
            return self.not_applicable("EBS volumes")

        unencrypted = [resource_label(volume) for volume in volumes
                       if not (volume.get('configuration') or {}).get('encrypted')]
        if unencrypted:
            return self.create_result(
                CheckStatus.FAIL,
                f"{len(unencrypted)} of {len(volumes)} EBS volumes are not encrypted",
                affected_resources=unencrypted,
                recommendation=("Snapshot each volume, copy the snapshot with encryption enabled "
                                "and restore from the copy. Turn on EBS encryption by default."),
                remediation_script="aws ec2 enable-ebs-encryption-by-default",
                metadata={"total": len(volumes), "failing": len(unencrypted)},
            )
        return self.create_result(
            CheckStatus.PASS,
            f"All {len(volumes)} EBS volumes are encrypted",
            metadata={"total": len(volumes), "failing": 0},
        )


CHECKS = [
    SecurityGroupOpenPortsCheck,
    InstancePublicIPCheck,
    UnencryptedVolumesCheck,
]
