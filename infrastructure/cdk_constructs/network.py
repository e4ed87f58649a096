"""VPC shared by the compute tier and the database."""

from aws_cdk import aws_ec2 as ec2
from constructs import Construct


class Network(Construct):
  """VPC with public and isolated subnets and no NAT gateways.

  Isolated subnets cannot reach AWS APIs, so a Secrets Manager interface
  endpoint is added for credential rotation and for functions reading the
  database secret.
  """

  def __init__(self, scope: Construct, id: str, *, max_azs: int = 2) -> None:
    super().__init__(scope, id)

    self.vpc = ec2.Vpc(
      self,
      "Vpc",
      max_azs=max_azs,
      nat_gateways=0,
      subnet_configuration=[
        ec2.SubnetConfiguration(
          name="public",
          subnet_type=ec2.SubnetType.PUBLIC,
          cidr_mask=24,
        ),
        ec2.SubnetConfiguration(
          name="isolated",
          subnet_type=ec2.SubnetType.PRIVATE_ISOLATED,
          cidr_mask=24,
        ),
      ],
    )

    self.secrets_endpoint = self.vpc.add_interface_endpoint(
      "SecretsManagerEndpoint",
      service=ec2.InterfaceVpcEndpointAwsService.SECRETS_MANAGER,
      subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PRIVATE_ISOLATED),
    )
