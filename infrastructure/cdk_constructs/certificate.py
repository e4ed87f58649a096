"""ACM certificate for CloudFront with DNS validation."""

from aws_cdk import Stack
from aws_cdk import aws_certificatemanager as acm
from aws_cdk import aws_route53 as route53
from constructs import Construct

# CloudFront only reads certificates from this region
CLOUDFRONT_CERTIFICATE_REGION = "us-east-1"


class DistributionCertificate(Construct):
  """DNS-validated certificate usable by a CloudFront distribution.

  Stacks outside us-east-1 get a cross-region certificate, validated
  against the same hosted zone.
  """

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    domain_name: str,
    hosted_zone: route53.IHostedZone,
    include_www: bool = True,
  ) -> None:
    super().__init__(scope, id)

    subject_alternative_names = [f"www.{domain_name}"] if include_www else None

    if Stack.of(self).region == CLOUDFRONT_CERTIFICATE_REGION:
      self.certificate: acm.ICertificate = acm.Certificate(
        self,
        "Certificate",
        domain_name=domain_name,
        subject_alternative_names=subject_alternative_names,
        validation=acm.CertificateValidation.from_dns(hosted_zone),
      )
    else:
      self.certificate = acm.DnsValidatedCertificate(
        self,
        "Certificate",
        domain_name=domain_name,
        subject_alternative_names=subject_alternative_names,
        hosted_zone=hosted_zone,
        region=CLOUDFRONT_CERTIFICATE_REGION,
      )
