"""GitHub Actions OIDC federation and deployment variables."""

import re

from aws_cdk import CfnOutput, Duration, Stack
from aws_cdk import aws_autoscaling as autoscaling
from aws_cdk import aws_cloudfront as cloudfront
from aws_cdk import aws_iam as iam
from aws_cdk import aws_lambda as lambda_
from aws_cdk import aws_s3 as s3
from aws_cdk import aws_secretsmanager as secretsmanager
from constructs import Construct

GITHUB_OIDC_HOST = "token.actions.githubusercontent.com"
GITHUB_OIDC_AUDIENCE = "sts.amazonaws.com"

VARIABLES_OUTPUT = "GithubActionsVariables"


def variable_name(name: str, resource_type: str) -> str:
  """GitHub variable name for a resource attribute.

  ``variable_name("secretArn", "rds")`` returns ``RDS_SECRET_ARN``.
  """
  snake = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", name)
  snake = re.sub(r"[^A-Za-z0-9]+", "_", snake)
  return f"{resource_type}_{snake}".upper()


class GithubActions(Construct):
  """Lets workflows in one repository deploy without long-lived credentials.

  The OIDC provider is an account-wide singleton: set
  ``create_oidc_provider=False`` when another stack already owns it and it
  is imported by ARN instead.

  Variables registered with :meth:`add_variable` are published as a single
  JSON stack output that ``scripts/set_gha_variables.py`` copies into the
  repository's Actions variables.
  """

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    owner: str,
    repo: str,
    create_oidc_provider: bool = True,
  ) -> None:
    super().__init__(scope, id)

    self.owner = owner
    self.repo = repo
    self.variables: dict[str, str] = {}

    stack = Stack.of(self)

    if create_oidc_provider:
      self.provider: iam.IOpenIdConnectProvider = iam.OpenIdConnectProvider(
        self,
        "Provider",
        url=f"https://{GITHUB_OIDC_HOST}",
        client_ids=[GITHUB_OIDC_AUDIENCE],
      )
    else:
      self.provider = iam.OpenIdConnectProvider.from_open_id_connect_provider_arn(
        self,
        "Provider",
        f"arn:{stack.partition}:iam::{stack.account}:oidc-provider/{GITHUB_OIDC_HOST}",
      )

    self.role = iam.Role(
      self,
      "Role",
      role_name=f"github-actions-{repo}",
      description=f"Assumed by GitHub Actions workflows in {owner}/{repo}",
      max_session_duration=Duration.hours(1),
      assumed_by=iam.WebIdentityPrincipal(
        self.provider.open_id_connect_provider_arn,
        conditions={
          "StringEquals": {
            f"{GITHUB_OIDC_HOST}:aud": GITHUB_OIDC_AUDIENCE,
          },
          "StringLike": {
            f"{GITHUB_OIDC_HOST}:sub": f"repo:{owner}/{repo}:*",
          },
        },
      ),
    )

    # Lets `cdk deploy` run from the workflow through the bootstrap roles
    self.role.add_to_policy(
      iam.PolicyStatement(
        actions=["sts:AssumeRole"],
        resources=[f"arn:{stack.partition}:iam::{stack.account}:role/cdk-*"],
      )
    )

  def grant_bucket_deploy(self, bucket: s3.IBucket) -> None:
    """Allow uploading build artifacts or static content."""
    bucket.grant_read_write(self.role)

  def grant_function_deploy(self, function: lambda_.IFunction) -> None:
    """Allow pointing the function at a new code package."""
    self.role.add_to_policy(
      iam.PolicyStatement(
        actions=[
          "lambda:GetFunction",
          "lambda:UpdateFunctionCode",
        ],
        resources=[function.function_arn],
      )
    )

  def grant_fleet_deploy(self, asg: autoscaling.IAutoScalingGroup) -> None:
    """Allow rolling the fleet onto a new build."""
    self.role.add_to_policy(
      iam.PolicyStatement(
        actions=["autoscaling:StartInstanceRefresh"],
        resources=[asg.auto_scaling_group_arn],
      )
    )
    self.role.add_to_policy(
      iam.PolicyStatement(
        actions=["autoscaling:DescribeInstanceRefreshes"],
        resources=["*"],  # Describe calls have no resource-level permissions
      )
    )

  def grant_invalidation(self, distribution: cloudfront.IDistribution) -> None:
    """Allow invalidating the CDN cache after a deploy."""
    distribution.grant_create_invalidation(self.role)

  def grant_secret_read(self, secret: secretsmanager.ISecret) -> None:
    secret.grant_read(self.role)

  def add_variable(self, name: str, resource_type: str, value: str) -> str:
    """Register a repository variable and return its GitHub name."""
    key = variable_name(name, resource_type)
    self.variables[key] = value
    return key

  def publish_variables(self) -> None:
    """Emit the role ARN and the registered variables as stack outputs."""
    CfnOutput(
      self,
      "RoleArn",
      key="GithubActionsRoleArn",
      value=self.role.role_arn,
      description="Role assumed by GitHub Actions through OIDC",
    )
    CfnOutput(
      self,
      "Variables",
      key=VARIABLES_OUTPUT,
      value=Stack.of(self).to_json_string(dict(sorted(self.variables.items()))),
      description=f"GitHub Actions variables for {self.owner}/{self.repo}",
    )
