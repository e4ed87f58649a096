"""MySQL database with generated, rotated credentials."""

import json

from aws_cdk import Annotations, Duration, RemovalPolicy, Token
from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_rds as rds
from aws_cdk import aws_secretsmanager as secretsmanager
from constructs import Construct

from ..config import DatabaseConfig

MYSQL_PORT = 3306

# Characters that break MySQL connection strings and shell quoting
EXCLUDED_PASSWORD_CHARACTERS = "\"@/\\ '"


class Database(Construct):
  """MySQL instance reachable only from the compute tier.

  Creates:
  - Secrets Manager secret with a generated password
  - Security group allowing itself and the compute security group
  - Encrypted RDS instance with enhanced monitoring and backups
  - Single-user rotation of the credentials
  """

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    vpc: ec2.IVpc,
    config: DatabaseConfig,
    client_security_group: ec2.ISecurityGroup,
    secrets_endpoint: ec2.IInterfaceVpcEndpoint | None = None,
  ) -> None:
    super().__init__(scope, id)

    self.database_name = config.database_name

    self.secret = secretsmanager.Secret(
      self,
      "MysqlCredentials",
      secret_name="MysqlCredentials",
      description="Mysql Database Credentials",
      generate_secret_string=secretsmanager.SecretStringGenerator(
        exclude_characters=EXCLUDED_PASSWORD_CHARACTERS,
        generate_string_key="password",
        password_length=config.password_length,
        secret_string_template=json.dumps({"username": config.username}),
      ),
    )

    self.security_group = ec2.SecurityGroup(
      self,
      "DatabaseSecurityGroup",
      vpc=vpc,
      allow_all_outbound=True,
      description="Database",
      security_group_name="Database",
    )
    self.security_group.add_ingress_rule(
      self.security_group,
      ec2.Port.all_traffic(),
      "all from self",
    )
    self.security_group.add_ingress_rule(
      client_security_group,
      ec2.Port.tcp(MYSQL_PORT),
      "inbound from compute",
    )

    engine = rds.DatabaseInstanceEngine.mysql(
      version=rds.MysqlEngineVersion.of(
        config.engine_version,
        ".".join(config.engine_version.split(".")[:2]),
      ),
    )

    self.instance = rds.DatabaseInstance(
      self,
      "MysqlDatabase",
      database_name=config.database_name,
      instance_identifier=config.instance_identifier,
      credentials=rds.Credentials.from_secret(self.secret, config.username),
      engine=engine,
      parameter_group=rds.ParameterGroup(self, "ParameterGroup", engine=engine),
      backup_retention=Duration.days(config.backup_retention_days),
      allocated_storage=config.allocated_storage,
      security_groups=[self.security_group],
      allow_major_version_upgrade=True,
      auto_minor_version_upgrade=True,
      instance_type=ec2.InstanceType(config.instance_type),
      vpc=vpc,
      vpc_subnets=_private_subnets(vpc),
      removal_policy=config.removal_policy,
      storage_encrypted=True,
      monitoring_interval=Duration.seconds(config.monitoring_interval_seconds),
      publicly_accessible=False,
    )

    if config.removal_policy == RemovalPolicy.DESTROY:
      Annotations.of(self).add_warning(
        "Database removal policy is DESTROY: deleting the stack deletes the "
        "database without a final snapshot."
      )

    # Rotation Lambda shares the database security group
    self.instance.add_rotation_single_user(
      automatically_after=Duration.days(config.rotation_days),
      endpoint=secrets_endpoint,
      security_group=self.security_group,
    )

  @property
  def hostname(self) -> str:
    return self.instance.instance_endpoint.hostname

  @property
  def port(self) -> str:
    return Token.as_string(self.instance.instance_endpoint.port)


def _private_subnets(vpc: ec2.IVpc) -> ec2.SubnetSelection:
  """Prefer isolated, then private subnets, falling back to public ones."""
  if vpc.isolated_subnets:
    return ec2.SubnetSelection(subnet_type=ec2.SubnetType.PRIVATE_ISOLATED)
  if vpc.private_subnets:
    return ec2.SubnetSelection(subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS)
  return ec2.SubnetSelection(subnet_type=ec2.SubnetType.PUBLIC)
