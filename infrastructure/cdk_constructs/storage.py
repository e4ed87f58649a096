"""S3 buckets for build artifacts and static content."""

from aws_cdk import RemovalPolicy
from aws_cdk import aws_s3 as s3
from constructs import Construct


class BuildsBucket(Construct):
  """Versioned bucket that CI uploads build artifacts to."""

  def __init__(self, scope: Construct, id: str) -> None:
    super().__init__(scope, id)

    self.bucket = s3.Bucket(
      self,
      "Bucket",
      versioned=True,
      encryption=s3.BucketEncryption.S3_MANAGED,
      block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
      enforce_ssl=True,
      removal_policy=RemovalPolicy.DESTROY,
      auto_delete_objects=True,
    )


class StaticBucket(Construct):
  """Private bucket for static content, read by CloudFront through OAC."""

  def __init__(self, scope: Construct, id: str) -> None:
    super().__init__(scope, id)

    self.bucket = s3.Bucket(
      self,
      "Bucket",
      encryption=s3.BucketEncryption.S3_MANAGED,
      block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
      enforce_ssl=True,
      removal_policy=RemovalPolicy.DESTROY,
      auto_delete_objects=True,
    )
