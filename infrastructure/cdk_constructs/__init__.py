"""CDK constructs for the web application infrastructure."""

from .certificate import DistributionCertificate
from .database import Database
from .distribution import WebDistribution
from .dns import DnsZone
from .edge_function import EdgeRewriteFunction, rewrite_path
from .fleet import Ec2Fleet
from .function import ApiFunction
from .github_actions import GithubActions
from .network import Network
from .storage import BuildsBucket, StaticBucket

__all__ = [
  "ApiFunction",
  "BuildsBucket",
  "Database",
  "DistributionCertificate",
  "DnsZone",
  "Ec2Fleet",
  "EdgeRewriteFunction",
  "GithubActions",
  "Network",
  "StaticBucket",
  "WebDistribution",
  "rewrite_path",
]
