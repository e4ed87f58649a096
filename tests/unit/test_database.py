"""Tests for the Database construct."""

from typing import Any

import aws_cdk as cdk
import pytest
from aws_cdk import RemovalPolicy
from aws_cdk import aws_ec2 as ec2
from aws_cdk.assertions import Annotations, Match, Template

from infrastructure.cdk_constructs import Database, Network
from infrastructure.cdk_constructs.database import EXCLUDED_PASSWORD_CHARACTERS
from infrastructure.config import DatabaseConfig


def _ingress_rules(template: Template, security_group_id: str) -> list[dict[str, Any]]:
  """Collect inline and standalone ingress rules for one security group."""
  rules: list[dict[str, Any]] = []
  group = template.find_resources("AWS::EC2::SecurityGroup")[security_group_id]
  rules.extend(group["Properties"].get("SecurityGroupIngress", []))

  for ingress in template.find_resources("AWS::EC2::SecurityGroupIngress").values():
    target = ingress["Properties"]["GroupId"]
    if target == {"Fn::GetAtt": [security_group_id, "GroupId"]}:
      rules.append(ingress["Properties"])
  return rules


def _database_group_id(template: Template) -> str:
  groups = template.find_resources(
    "AWS::EC2::SecurityGroup",
    {"Properties": {"GroupName": "Database"}},
  )
  assert len(groups) == 1
  return next(iter(groups))


class TestDatabase:
  """Test the database with default settings."""

  @pytest.fixture
  def template(self, stack: cdk.Stack) -> Template:
    network = Network(stack, "Network")
    client = ec2.SecurityGroup(stack, "ClientSecurityGroup", vpc=network.vpc)
    Database(
      stack,
      "Database",
      vpc=network.vpc,
      config=DatabaseConfig(),
      client_security_group=client,
      secrets_endpoint=network.secrets_endpoint,
    )
    return Template.from_stack(stack)

  def test_secret_password_generation(self, template: Template) -> None:
    """Verify the generated password excludes connection-string-unsafe characters."""
    template.has_resource_properties(
      "AWS::SecretsManager::Secret",
      {
        "Name": "MysqlCredentials",
        "GenerateSecretString": {
          "ExcludeCharacters": "\"@/\\ '",
          "GenerateStringKey": "password",
          "PasswordLength": 30,
          "SecretStringTemplate": '{"username": "admin"}',
        },
      },
    )

  def test_excluded_characters(self) -> None:
    """Verify the excluded set covers quotes, @, slashes and spaces."""
    assert set(EXCLUDED_PASSWORD_CHARACTERS) == {'"', "@", "/", "\\", " ", "'"}

  def test_database_instance(self, template: Template) -> None:
    """Verify the instance engine, size, backups and monitoring."""
    template.has_resource_properties(
      "AWS::RDS::DBInstance",
      {
        "DBInstanceIdentifier": "database",
        "DBName": "db",
        "Engine": "mysql",
        "EngineVersion": "8.0.37",
        "DBInstanceClass": "db.t3.small",
        "AllocatedStorage": "20",
        "BackupRetentionPeriod": 7,
        "StorageEncrypted": True,
        "MonitoringInterval": 60,
        "PubliclyAccessible": False,
        "AllowMajorVersionUpgrade": True,
        "AutoMinorVersionUpgrade": True,
      },
    )

  def test_destroyed_without_snapshot(self, template: Template) -> None:
    """Verify the instance is deleted without a snapshot by default."""
    template.has_resource(
      "AWS::RDS::DBInstance",
      {"DeletionPolicy": "Delete", "UpdateReplacePolicy": "Delete"},
    )

  def test_parameter_group(self, template: Template) -> None:
    """Verify a dedicated parameter group is attached."""
    template.resource_count_is("AWS::RDS::DBParameterGroup", 1)

  def test_placed_in_isolated_subnets(self, template: Template) -> None:
    """Verify the instance lives in the isolated subnets."""
    template.has_resource_properties(
      "AWS::RDS::DBSubnetGroup",
      {
        "SubnetIds": [
          {"Ref": Match.string_like_regexp("isolatedSubnet1")},
          {"Ref": Match.string_like_regexp("isolatedSubnet2")},
        ],
      },
    )

  def test_single_user_rotation(self, template: Template) -> None:
    """Verify the credentials rotate with a single user."""
    template.resource_count_is("AWS::SecretsManager::RotationSchedule", 1)

  def test_ingress_only_from_self_and_compute(self, template: Template) -> None:
    """Verify ingress comes only from itself and the compute group."""
    group_id = _database_group_id(template)
    clients = template.find_resources(
      "AWS::EC2::SecurityGroup",
      {"Properties": {"GroupDescription": Match.string_like_regexp("ClientSecurityGroup")}},
    )
    client_id = next(iter(clients))
    rules = _ingress_rules(template, group_id)

    assert rules
    assert all("CidrIp" not in rule and "CidrIpv6" not in rule for rule in rules)

    sources = {rule["SourceSecurityGroupId"]["Fn::GetAtt"][0] for rule in rules}
    assert sources == {group_id, client_id}

    own = next(rule for rule in rules if rule.get("Description") == "all from self")
    assert own["IpProtocol"] == "-1"

    mysql = next(rule for rule in rules if rule.get("Description") == "inbound from compute")
    assert mysql["IpProtocol"] == "tcp"
    assert mysql["FromPort"] == 3306
    assert mysql["ToPort"] == 3306

  def test_destroy_warning(self, template: Template, stack: cdk.Stack) -> None:
    """Verify a DESTROY removal policy raises a synth warning."""
    Annotations.from_stack(stack).has_warning(
      "*",
      Match.string_like_regexp("without a final snapshot"),
    )


class TestRetainedDatabase:
  """Test overriding the destructive removal policy."""

  def test_snapshot_policy(self, stack: cdk.Stack) -> None:
    """Verify SNAPSHOT and a longer password apply without a warning."""
    network = Network(stack, "Network")
    client = ec2.SecurityGroup(stack, "ClientSecurityGroup", vpc=network.vpc)
    Database(
      stack,
      "Database",
      vpc=network.vpc,
      config=DatabaseConfig(removal_policy=RemovalPolicy.SNAPSHOT, password_length=40),
      client_security_group=client,
    )
    template = Template.from_stack(stack)

    template.has_resource("AWS::RDS::DBInstance", {"DeletionPolicy": "Snapshot"})
    template.has_resource_properties(
      "AWS::SecretsManager::Secret",
      {"GenerateSecretString": {"PasswordLength": 40}},
    )
    Annotations.from_stack(stack).has_no_warning(
      "*",
      Match.string_like_regexp("without a final snapshot"),
    )
