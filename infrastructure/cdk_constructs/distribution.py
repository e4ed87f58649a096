"""CloudFront distribution in front of the web application."""

from aws_cdk import aws_certificatemanager as acm
from aws_cdk import aws_cloudfront as cloudfront
from aws_cdk import aws_cloudfront_origins as origins
from aws_cdk import aws_elasticloadbalancingv2 as elbv2
from aws_cdk import aws_lambda as lambda_
from aws_cdk import aws_s3 as s3
from constructs import Construct


def load_balancer_origin(load_balancer: elbv2.IApplicationLoadBalancer) -> cloudfront.IOrigin:
  """Origin for an ALB listening on plain HTTP."""
  return origins.LoadBalancerV2Origin(
    load_balancer,
    protocol_policy=cloudfront.OriginProtocolPolicy.HTTP_ONLY,
  )


def static_bucket_origin(bucket: s3.IBucket) -> cloudfront.IOrigin:
  """Origin for a private bucket, read through origin access control."""
  return origins.S3BucketOrigin.with_origin_access_control(bucket)


def function_url_origin(function_url: lambda_.IFunctionUrl) -> cloudfront.IOrigin:
  return origins.FunctionUrlOrigin(function_url)


def dynamic_behavior(
  origin: cloudfront.IOrigin,
  function_associations: list[cloudfront.FunctionAssociation] | None = None,
) -> cloudfront.BehaviorOptions:
  """Uncached behavior forwarding every viewer header except Host."""
  return cloudfront.BehaviorOptions(
    origin=origin,
    viewer_protocol_policy=cloudfront.ViewerProtocolPolicy.REDIRECT_TO_HTTPS,
    allowed_methods=cloudfront.AllowedMethods.ALLOW_ALL,
    cache_policy=cloudfront.CachePolicy.CACHING_DISABLED,
    origin_request_policy=cloudfront.OriginRequestPolicy.ALL_VIEWER_EXCEPT_HOST_HEADER,
    function_associations=function_associations,
  )


def static_behavior(
  origin: cloudfront.IOrigin,
  function_associations: list[cloudfront.FunctionAssociation] | None = None,
) -> cloudfront.BehaviorOptions:
  """Cached GET/HEAD behavior for static content."""
  return cloudfront.BehaviorOptions(
    origin=origin,
    viewer_protocol_policy=cloudfront.ViewerProtocolPolicy.REDIRECT_TO_HTTPS,
    allowed_methods=cloudfront.AllowedMethods.ALLOW_GET_HEAD,
    cached_methods=cloudfront.CachedMethods.CACHE_GET_HEAD,
    cache_policy=cloudfront.CachePolicy.CACHING_OPTIMIZED,
    function_associations=function_associations,
  )


class WebDistribution(Construct):
  """CloudFront distribution serving the apex (and optionally www) domain."""

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    default_behavior: cloudfront.BehaviorOptions,
    certificate: acm.ICertificate,
    domain_name: str,
    include_www: bool = True,
    additional_behaviors: dict[str, cloudfront.BehaviorOptions] | None = None,
  ) -> None:
    super().__init__(scope, id)

    domain_names = [domain_name]
    if include_www:
      domain_names.append(f"www.{domain_name}")

    self.distribution = cloudfront.Distribution(
      self,
      "Distribution",
      default_behavior=default_behavior,
      additional_behaviors=additional_behaviors,
      domain_names=domain_names,
      certificate=certificate,
      minimum_protocol_version=cloudfront.SecurityPolicyProtocol.TLS_V1_2_2021,
    )
