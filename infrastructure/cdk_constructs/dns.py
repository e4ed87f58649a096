"""Route 53 hosted zone resolution and CloudFront alias records."""

from aws_cdk import Annotations
from aws_cdk import aws_cloudfront as cloudfront
from aws_cdk import aws_route53 as route53
from aws_cdk import aws_route53_targets as targets
from constructs import Construct


class DnsZone(Construct):
  """Hosted zone for the application domain, imported or created.

  The zone name is the domain name; the certificate and the CloudFront
  aliases are derived from the same value.
  """

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    domain_name: str,
    hosted_zone_id: str | None = None,
  ) -> None:
    super().__init__(scope, id)

    self.domain_name = domain_name

    if hosted_zone_id:
      self.hosted_zone = route53.HostedZone.from_hosted_zone_attributes(
        self,
        "HostedZone",
        hosted_zone_id=hosted_zone_id,
        zone_name=domain_name,
      )
    else:
      self.hosted_zone = route53.HostedZone(
        self,
        "HostedZone",
        zone_name=domain_name,
      )
      Annotations.of(self).add_warning(
        f"Creating a new hosted zone for {domain_name}: hosted zones are billed "
        "monthly. Set dns.hosted_zone_id to reuse an existing zone."
      )

  def create_distribution_records(
    self,
    distribution: cloudfront.IDistribution,
    include_www: bool = True,
  ) -> None:
    """Create A and AAAA alias records pointing at the distribution."""
    target = route53.RecordTarget.from_alias(targets.CloudFrontTarget(distribution))

    names = {"Apex": self.domain_name}
    if include_www:
      names["Www"] = f"www.{self.domain_name}"

    for prefix, record_name in names.items():
      route53.ARecord(
        self,
        f"{prefix}ARecord",
        zone=self.hosted_zone,
        record_name=record_name,
        target=target,
      )
      route53.AaaaRecord(
        self,
        f"{prefix}AAAARecord",
        zone=self.hosted_zone,
        record_name=record_name,
        target=target,
      )
