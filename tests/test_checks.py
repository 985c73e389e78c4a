"""Unit tests for the built-in check catalog."""
import pytest

from well_architected_scanner.checks import extract_tags, load_default_checks, resource_label
from well_architected_scanner.checks.cost import IdleElasticIPCheck, UnattachedVolumesCheck
from well_architected_scanner.checks.operations import CloudTrailCoverageCheck, RequiredTagsCheck
from well_architected_scanner.checks.performance import PreviousGenerationInstancesCheck
from well_architected_scanner.checks.reliability import AutoScalingZoneSpreadCheck, DatabaseMultiAZCheck
from well_architected_scanner.checks.security import (
    InstancePublicIPCheck,
    SecurityGroupOpenPortsCheck,
    UnencryptedVolumesCheck,
)
from well_architected_scanner.core.framework import CheckStatus, Pillar
from well_architected_scanner.core.registry import CheckRegistry

from conftest import FakeQuery

SCOPE = "111111111111"


def evaluate(check_class, rows_by_type):
    return check_class(FakeQuery(rows_by_type)).evaluate(SCOPE)


class TestCatalog:
    def test_loads_all_checks_without_conflicts(self):
        registry = load_default_checks(CheckRegistry(), FakeQuery({}))
        assert len(registry) == 10
        assert registry.conflicts == []
        assert {check.pillar for check in registry.get_all_checks()} == set(Pillar)

    def test_every_check_not_applicable_or_failing_on_empty_inventory(self):
        registry = load_default_checks(CheckRegistry(), FakeQuery({}))
        for check in registry.get_all_checks():
            result = check.logic(SCOPE)
            assert result.check_id == check.id
            assert result.status in (CheckStatus.NOT_APPLICABLE, CheckStatus.FAIL)

    def test_helpers(self):
        assert extract_tags([{"key": "Owner", "value": "team"}, {"Key": "Env", "Value": "prod"}]) == {
            "Owner": "team", "Env": "prod",
        }
        assert resource_label({"resourceId": "i-1", "resourceName": "web"}) == "i-1 (web)"
        assert resource_label({"resourceId": "i-1", "resourceName": "i-1"}) == "i-1"


class TestSecurityChecks:
    def test_open_ssh_fails(self):
        rows = [
            {"resourceId": "sg-1", "resourceName": "web", "configuration": {"ipPermissions": [
                {"ipProtocol": "tcp", "fromPort": 22, "toPort": 22,
                 "ipv4Ranges": [{"cidrIp": "0.0.0.0/0"}]},
            ]}},
            {"resourceId": "sg-2", "configuration": {"ipPermissions": [
                {"ipProtocol": "tcp", "fromPort": 443, "toPort": 443,
                 "ipv4Ranges": [{"cidrIp": "0.0.0.0/0"}]},
                {"ipProtocol": "tcp", "fromPort": 22, "toPort": 22,
                 "ipv4Ranges": [{"cidrIp": "10.0.0.0/8"}]},
            ]}},
        ]
        result = evaluate(SecurityGroupOpenPortsCheck, {"AWS::EC2::SecurityGroup": rows})
        assert result.status == CheckStatus.FAIL
        assert result.affected_resources == ("sg-1 (web)",)
        assert result.metadata["exposed_ports"] == {"sg-1 (web)": [22]}

    def test_all_protocols_rule_exposes_everything(self):
        rows = [{"resourceId": "sg-1", "configuration": {"ipPermissions": [
            {"ipProtocol": "-1", "ipRanges": ["0.0.0.0/0"]},
        ]}}]
        result = evaluate(SecurityGroupOpenPortsCheck, {"AWS::EC2::SecurityGroup": rows})
        assert result.status == CheckStatus.FAIL
        assert 3389 in result.metadata["exposed_ports"]["sg-1"]

    def test_closed_groups_pass(self):
        rows = [{"resourceId": "sg-1", "configuration": {"ipPermissions": []}}]
        result = evaluate(SecurityGroupOpenPortsCheck, {"AWS::EC2::SecurityGroup": rows})
        assert result.status == CheckStatus.PASS

    def test_public_ip_respects_exemption_tag(self):
        rows = [
            {"resourceId": "i-1", "configuration": {"publicIpAddress": "1.2.3.4",
                                                    "state": {"name": "running"}}},
            {"resourceId": "i-2", "tags": [{"key": "PublicIPRequired", "value": "true"}],
             "configuration": {"publicIpAddress": "5.6.7.8", "state": {"name": "running"}}},
            {"resourceId": "i-3", "configuration": {"publicIpAddress": "9.9.9.9",
                                                    "state": {"name": "stopped"}}},
        ]
        result = evaluate(InstancePublicIPCheck, {"AWS::EC2::Instance": rows})
        assert result.status == CheckStatus.FAIL
        assert result.affected_resources == ("i-1",)
        assert result.metadata["total"] == 2

    def test_unencrypted_volumes(self):
        rows = [
            {"resourceId": "vol-1", "configuration": {"encrypted": True}},
            {"resourceId": "vol-2", "configuration": {"encrypted": False}},
        ]
        result = evaluate(UnencryptedVolumesCheck, {"AWS::EC2::Volume": rows})
        assert result.status == CheckStatus.FAIL
        assert result.affected_resources == ("vol-2",)


class TestReliabilityChecks:
    def test_single_az_database_fails(self):
        rows = [
            {"resourceId": "db-1", "configuration": {"multiAZ": True}},
            {"resourceId": "db-2", "configuration": {"multiAZ": False}},
        ]
        result = evaluate(DatabaseMultiAZCheck, {"AWS::RDS::DBInstance": rows})
        assert result.status == CheckStatus.FAIL
        assert result.message == "1 of 2 RDS instances are single-AZ"
        assert "--multi-az" in result.remediation_script

    def test_no_databases_not_applicable(self):
        result = evaluate(DatabaseMultiAZCheck, {})
        assert result.status == CheckStatus.NOT_APPLICABLE

    def test_single_zone_group_warns(self):
        rows = [
            {"resourceId": "asg-1", "configuration": {"availabilityZones": ["us-east-1a"]}},
            {"resourceId": "asg-2", "configuration": {"availabilityZones": ["us-east-1a", "us-east-1b"]}},
        ]
        result = evaluate(AutoScalingZoneSpreadCheck, {"AWS::AutoScaling::AutoScalingGroup": rows})
        assert result.status == CheckStatus.WARNING
        assert result.affected_resources == ("asg-1",)


class TestCostChecks:
    def test_unattached_volumes(self):
        rows = [
            {"resourceId": "vol-1", "configuration": {"size": 100, "state": {"value": "available"}}},
            {"resourceId": "vol-2", "configuration": {"size": 50, "state": {"value": "in-use"}}},
        ]
        result = evaluate(UnattachedVolumesCheck, {"AWS::EC2::Volume": rows})
        assert result.status == CheckStatus.FAIL
        assert result.metadata["idle_gib"] == 100

    def test_idle_elastic_ip_warns(self):
        rows = [{"resourceId": "eipalloc-1", "configuration": {"associationId": None}}]
        result = evaluate(IdleElasticIPCheck, {"AWS::EC2::EIP": rows})
        assert result.status == CheckStatus.WARNING


class TestPerformanceChecks:
    @pytest.mark.parametrize("instance_type,expected", [
        ("m3.large", CheckStatus.WARNING),
        ("m6i.large", CheckStatus.PASS),
    ])
    def test_previous_generation(self, instance_type, expected):
        rows = [{"resourceId": "i-1", "configuration": {"instanceType": instance_type,
                                                        "state": {"name": "running"}}}]
        result = evaluate(PreviousGenerationInstancesCheck, {"AWS::EC2::Instance": rows})
        assert result.status == expected


class TestOperationsChecks:
    def test_tag_threshold(self):
        tagged = [{"key": "Owner", "value": "a"}, {"key": "Environment", "value": "prod"}]
        rows = [
            {"resourceId": "i-1", "tags": tagged},
            {"resourceId": "i-2", "tags": tagged},
            {"resourceId": "i-3", "tags": [{"key": "Owner", "value": "b"}]},
        ]
        result = evaluate(RequiredTagsCheck, {"AWS::EC2::Instance": rows})
        assert result.status == CheckStatus.WARNING
        assert result.metadata["missing_tags"] == {"i-3": ["Environment"]}

        rows = [{"resourceId": "i-1"}, {"resourceId": "i-2", "tags": tagged}, {"resourceId": "i-3"}]
        result = evaluate(RequiredTagsCheck, {"AWS::EC2::Instance": rows})
        assert result.status == CheckStatus.FAIL

    def test_cloudtrail(self):
        assert evaluate(CloudTrailCoverageCheck, {}).status == CheckStatus.FAIL
        single = [{"resourceId": "trail-1", "configuration": {"isMultiRegionTrail": False}}]
        assert evaluate(CloudTrailCoverageCheck, {"AWS::CloudTrail::Trail": single}).status == \
            CheckStatus.WARNING
        multi = [{"resourceId": "trail-1", "configuration": {"isMultiRegionTrail": True}}]
        assert evaluate(CloudTrailCoverageCheck, {"AWS::CloudTrail::Trail": multi}).status == \
            CheckStatus.PASS
