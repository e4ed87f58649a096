"""CDK stack for the always-on web application."""

from typing import Any

import aws_cdk as cdk
from aws_cdk import aws_ec2 as ec2
from constructs import Construct

from infrastructure.cdk_constructs import (
  ApiFunction,
  BuildsBucket,
  Database,
  DistributionCertificate,
  DnsZone,
  Ec2Fleet,
  EdgeRewriteFunction,
  GithubActions,
  Network,
  StaticBucket,
  WebDistribution,
)
from infrastructure.cdk_constructs.distribution import (
  dynamic_behavior,
  function_url_origin,
  load_balancer_origin,
  static_behavior,
  static_bucket_origin,
)
from infrastructure.config import FleetCompute, FunctionCompute, StackConfig


class WebAppStack(cdk.Stack):
  """DNS, CDN, compute, database and CI identity for one web application.

  Exactly one compute strategy is built, chosen by the type of
  ``config.compute``:
  - ``FleetCompute``: CloudFront -> ALB -> ASG -> EC2
  - ``FunctionCompute``: CloudFront -> S3 for static content, and the
    configured path prefix -> Lambda Function URL
  """

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    config: StackConfig,
    **kwargs: Any,
  ) -> None:
    super().__init__(scope, id, **kwargs)

    self.config = config
    dns_config = config.dns

    # OIDC provider first: it only needs creating once per account
    self.github = GithubActions(
      self,
      "GithubActions",
      owner=config.github.owner,
      repo=config.github.repo,
      create_oidc_provider=config.github.create_oidc_provider,
    )

    self.dns = DnsZone(
      self,
      "Dns",
      domain_name=dns_config.domain_name,
      hosted_zone_id=dns_config.hosted_zone_id,
    )

    self.certificate = DistributionCertificate(
      self,
      "Certificate",
      domain_name=dns_config.domain_name,
      hosted_zone=self.dns.hosted_zone,
      include_www=dns_config.include_www,
    )

    self.edge_function = EdgeRewriteFunction(self, "StaticURLs")
    self.network = Network(self, "Network")
    self.builds = BuildsBucket(self, "Builds")

    self.fleet: Ec2Fleet | None = None
    self.api: ApiFunction | None = None
    self.static: StaticBucket | None = None

    if isinstance(config.compute, FleetCompute):
      compute_security_group = self._fleet(config.compute)
    elif isinstance(config.compute, FunctionCompute):
      compute_security_group = self._function(config.compute)
    else:
      raise TypeError(f"Unsupported compute strategy: {type(config.compute).__name__}")

    self.dns.create_distribution_records(
      self.distribution.distribution,
      include_www=dns_config.include_www,
    )

    self.database = Database(
      self,
      "Database",
      vpc=self.network.vpc,
      config=config.database,
      client_security_group=compute_security_group,
      secrets_endpoint=self.network.secrets_endpoint,
    )
    if self.api is not None:
      self.api.add_environment("DB_SECRET_ARN", self.database.secret.secret_arn)
      self.database.secret.grant_read(self.api.function)

    self._publish()

    cdk.Tags.of(self).add("stack", self.stack_name)
    for key, value in config.tags.items():
      cdk.Tags.of(self).add(key, value)

  def _fleet(self, compute: FleetCompute) -> ec2.ISecurityGroup:
    self.fleet = Ec2Fleet(
      self,
      "Fleet",
      vpc=self.network.vpc,
      config=compute,
      builds_bucket=self.builds.bucket,
    )

    self.distribution = WebDistribution(
      self,
      "Distribution",
      default_behavior=dynamic_behavior(
        load_balancer_origin(self.fleet.load_balancer),
        function_associations=[self.edge_function.association],
      ),
      certificate=self.certificate.certificate,
      domain_name=self.config.dns.domain_name,
      include_www=self.config.dns.include_www,
    )
    return self.fleet.security_group

  def _function(self, compute: FunctionCompute) -> ec2.ISecurityGroup:
    self.static = StaticBucket(self, "Static")
    self.api = ApiFunction(
      self,
      "Api",
      vpc=self.network.vpc,
      config=compute,
      builds_bucket=self.builds.bucket,
    )

    self.distribution = WebDistribution(
      self,
      "Distribution",
      default_behavior=static_behavior(
        static_bucket_origin(self.static.bucket),
        function_associations=[self.edge_function.association],
      ),
      additional_behaviors={
        compute.path_pattern: dynamic_behavior(function_url_origin(self.api.function_url)),
      },
      certificate=self.certificate.certificate,
      domain_name=self.config.dns.domain_name,
      include_www=self.config.dns.include_www,
    )
    return self.api.security_group

  def _publish(self) -> None:
    """Grant the CI role deploy access and publish resource identifiers."""
    github = self.github
    distribution = self.distribution.distribution

    github.grant_bucket_deploy(self.builds.bucket)
    github.grant_invalidation(distribution)
    github.grant_secret_read(self.database.secret)

    github.add_variable("bucketName", "builds", self.builds.bucket.bucket_name)
    github.add_variable("distributionId", "cloudfront", distribution.distribution_id)

    if self.fleet is not None:
      github.grant_fleet_deploy(self.fleet.asg)
      github.add_variable("autoScalingGroupName", "ec2", self.fleet.asg.auto_scaling_group_name)

    if self.api is not None and self.static is not None:
      github.grant_bucket_deploy(self.static.bucket)
      github.grant_function_deploy(self.api.function)
      github.add_variable("bucketName", "static", self.static.bucket.bucket_name)
      github.add_variable("functionName", "lambda", self.api.function.function_name)

    github.add_variable("secretName", "rds", self.database.secret.secret_name)
    github.add_variable("secretArn", "rds", self.database.secret.secret_arn)
    github.add_variable("hostname", "rds", self.database.hostname)
    github.add_variable("port", "rds", self.database.port)
    github.add_variable("databaseName", "rds", self.database.database_name)

    github.publish_variables()

    cdk.CfnOutput(
      self,
      "DistributionDomainName",
      value=distribution.distribution_domain_name,
      description="CloudFront distribution domain name",
    )
    cdk.CfnOutput(
      self,
      "HostedZoneId",
      value=self.dns.hosted_zone.hosted_zone_id,
      description="Route 53 hosted zone ID",
    )
    cdk.CfnOutput(
      self,
      "DatabaseEndpoint",
      value=self.database.hostname,
      description="RDS endpoint hostname",
    )
