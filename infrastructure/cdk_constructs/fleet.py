"""EC2 Auto Scaling group behind an Application Load Balancer."""

from aws_cdk import aws_autoscaling as autoscaling
from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_elasticloadbalancingv2 as elbv2
from aws_cdk import aws_iam as iam
from aws_cdk import aws_s3 as s3
from constructs import Construct

from ..config import FleetCompute


class Ec2Fleet(Construct):
  """Always-on compute: CloudFront -> ALB -> ASG -> EC2.

  Creates:
  - Security group for the instances (HTTP from the load balancer)
  - IAM instance role with SSM and read access to the builds bucket
  - Launch template for Amazon Linux 2023
  - Auto Scaling group in public subnets, scaled on ALB request count
  - Internet-facing ALB with an HTTP listener open to any source
  """

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    vpc: ec2.IVpc,
    config: FleetCompute,
    builds_bucket: s3.IBucket,
  ) -> None:
    super().__init__(scope, id)

    self.security_group = ec2.SecurityGroup(
      self,
      "SecurityGroup",
      vpc=vpc,
      description="Web app instances",
      allow_all_outbound=True,
    )

    self.role = iam.Role(
      self,
      "InstanceRole",
      assumed_by=iam.ServicePrincipal("ec2.amazonaws.com"),
      managed_policies=[
        iam.ManagedPolicy.from_aws_managed_policy_name("AmazonSSMManagedInstanceCore"),
      ],
    )
    builds_bucket.grant_read(self.role)

    launch_template = ec2.LaunchTemplate(
      self,
      "LaunchTemplate",
      instance_type=ec2.InstanceType(config.instance_type),
      machine_image=ec2.MachineImage.latest_amazon_linux2023(),
      security_group=self.security_group,
      role=self.role,
      associate_public_ip_address=True,
      require_imdsv2=True,
      block_devices=[
        ec2.BlockDevice(
          device_name="/dev/xvda",
          volume=ec2.BlockDeviceVolume.ebs(
            8,
            encrypted=True,
            volume_type=ec2.EbsDeviceVolumeType.GP3,
          ),
        ),
      ],
    )

    self.asg = autoscaling.AutoScalingGroup(
      self,
      "ASG",
      vpc=vpc,
      launch_template=launch_template,
      min_capacity=config.min_capacity,
      max_capacity=config.max_capacity,
      vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PUBLIC),
    )

    self.load_balancer = elbv2.ApplicationLoadBalancer(
      self,
      "LoadBalancer",
      vpc=vpc,
      internet_facing=True,
    )

    self.listener = self.load_balancer.add_listener(
      "Listener",
      port=config.port,
      open=True,
    )
    self.listener.add_targets(
      "Fleet",
      port=config.port,
      protocol=elbv2.ApplicationProtocol.HTTP,
      targets=[self.asg],
    )

    # Needs the ASG registered with the listener above
    self.asg.scale_on_request_count(
      "RequestScaling",
      target_requests_per_minute=config.target_requests_per_minute,
    )
