"""Lambda function serving the API behind CloudFront."""

from aws_cdk import Duration, RemovalPolicy
from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_lambda as lambda_
from aws_cdk import aws_logs as logs
from aws_cdk import aws_s3 as s3
from constructs import Construct

from ..config import FunctionCompute


class ApiFunction(Construct):
  """Lambda packaged in the builds bucket and exposed through a Function URL.

  The function runs in the VPC's isolated subnets so it can reach the
  database; CloudFront routes the configured path prefix to the URL.

  The code package is read from ``builds_bucket`` at ``config.code_key`` when
  the function is created, so that object must be uploaded before the first
  deploy of this strategy.
  """

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    vpc: ec2.IVpc,
    config: FunctionCompute,
    builds_bucket: s3.IBucket,
  ) -> None:
    super().__init__(scope, id)

    self.security_group = ec2.SecurityGroup(
      self,
      "SecurityGroup",
      vpc=vpc,
      description="API function",
      allow_all_outbound=True,
    )

    self.function = lambda_.Function(
      self,
      "Function",
      runtime=lambda_.Runtime(config.runtime, _runtime_family(config.runtime)),
      handler=config.handler,
      code=lambda_.Code.from_bucket(builds_bucket, config.code_key),
      memory_size=config.memory_size,
      timeout=Duration.seconds(config.timeout_seconds),
      vpc=vpc,
      vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PRIVATE_ISOLATED),
      security_groups=[self.security_group],
      log_group=logs.LogGroup(
        self,
        "LogGroup",
        retention=logs.RetentionDays.TWO_WEEKS,
        removal_policy=RemovalPolicy.DESTROY,
      ),
    )

    self.function_url = self.function.add_function_url(
      auth_type=lambda_.FunctionUrlAuthType.NONE,
    )

  def add_environment(self, key: str, value: str) -> None:
    """Pass a value resolved later in the stack to the function."""
    self.function.add_environment(key, value)


def _runtime_family(runtime: str) -> lambda_.RuntimeFamily:
  if runtime.startswith("python"):
    return lambda_.RuntimeFamily.PYTHON
  if runtime.startswith("nodejs"):
    return lambda_.RuntimeFamily.NODEJS
  return lambda_.RuntimeFamily.OTHER
