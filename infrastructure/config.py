"""Configuration loader for the web application stack."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from aws_cdk import RemovalPolicy

DEFAULT_DOMAIN_NAME = "alwayson.greenersoftware.net"
DEFAULT_HOSTED_ZONE_ID = "Z02969861Z406S70ML8A3"
DEFAULT_REGION = "eu-west-2"

REMOVAL_POLICIES = {
  "retain": RemovalPolicy.RETAIN,
  "destroy": RemovalPolicy.DESTROY,
  "snapshot": RemovalPolicy.SNAPSHOT,
}


class ConfigError(ValueError):
  """Raised when the stack configuration is missing or inconsistent."""


def require_env(key: str, environ: Mapping[str, str] | None = None) -> str:
  """Return an environment value, failing fast when it is unset or empty."""
  environ = os.environ if environ is None else environ
  value = environ.get(key)
  if not value:
    raise ConfigError(f"No environment variable value for {key}")
  return value


@dataclass
class DnsConfig:
  """Domain name and the hosted zone that serves it."""

  domain_name: str = DEFAULT_DOMAIN_NAME
  hosted_zone_id: str | None = DEFAULT_HOSTED_ZONE_ID
  include_www: bool = True


@dataclass
class FleetCompute:
  """EC2 instances in an Auto Scaling group behind an Application Load Balancer."""

  instance_type: str = "t3.micro"
  min_capacity: int = 1
  max_capacity: int = 2
  target_requests_per_minute: int = 1000
  port: int = 80


@dataclass
class FunctionCompute:
  """Lambda function routed from CloudFront on a path prefix."""

  memory_size: int = 1769  # Largest size that still gets a single vCPU
  runtime: str = "python3.12"
  handler: str = "app.handler"
  code_key: str = "api.zip"
  path_pattern: str = "/api/*"
  timeout_seconds: int = 30


Compute = FleetCompute | FunctionCompute


@dataclass
class DatabaseConfig:
  """MySQL instance settings."""

  username: str = "admin"
  database_name: str = "db"
  instance_identifier: str = "database"
  engine_version: str = "8.0.37"
  instance_type: str = "t3.small"
  allocated_storage: int = 20
  backup_retention_days: int = 7
  password_length: int = 30
  rotation_days: int = 30
  monitoring_interval_seconds: int = 60
  removal_policy: RemovalPolicy = RemovalPolicy.DESTROY


@dataclass
class GithubConfig:
  """Repository trusted to deploy through GitHub Actions OIDC."""

  owner: str
  repo: str
  create_oidc_provider: bool = True

  @classmethod
  def from_env(
    cls,
    environ: Mapping[str, str] | None = None,
    create_oidc_provider: bool = True,
  ) -> "GithubConfig":
    """Read OWNER and REPO from the environment."""
    return cls(
      owner=require_env("OWNER", environ),
      repo=require_env("REPO", environ),
      create_oidc_provider=create_oidc_provider,
    )


@dataclass
class StackConfig:
  """Everything needed to build one web application stack."""

  github: GithubConfig
  stack_name: str = "Alwayson"
  dns: DnsConfig = field(default_factory=DnsConfig)
  compute: Compute = field(default_factory=FleetCompute)
  database: DatabaseConfig = field(default_factory=DatabaseConfig)
  account: str | None = None
  region: str = DEFAULT_REGION
  tags: dict[str, str] = field(default_factory=dict)

  @classmethod
  def from_yaml(
    cls,
    path: Path | str = "stack.yaml",
    environ: Mapping[str, str] | None = None,
  ) -> "StackConfig":
    """Load configuration from a YAML file plus the process environment."""
    environ = os.environ if environ is None else environ
    with open(path) as f:
      data = yaml.safe_load(f) or {}
    return cls.from_dict(data, environ)

  @classmethod
  def from_dict(
    cls,
    data: Mapping[str, Any],
    environ: Mapping[str, str] | None = None,
  ) -> "StackConfig":
    """Build configuration from parsed YAML data."""
    environ = os.environ if environ is None else environ

    github_data = data.get("github") or {}
    github = GithubConfig.from_env(
      environ,
      create_oidc_provider=github_data.get("create_oidc_provider", True),
    )

    dns_data = data.get("dns") or {}
    dns = DnsConfig(
      domain_name=dns_data.get("domain_name", DEFAULT_DOMAIN_NAME),
      hosted_zone_id=dns_data.get("hosted_zone_id", DEFAULT_HOSTED_ZONE_ID),
      include_www=dns_data.get("include_www", True),
    )

    return cls(
      github=github,
      stack_name=data.get("stack_name", "Alwayson"),
      dns=dns,
      compute=parse_compute(data.get("compute", {"fleet": {}})),
      database=parse_database(data.get("database") or {}),
      account=environ.get("CDK_DEFAULT_ACCOUNT") or data.get("account"),
      region=environ.get("CDK_DEFAULT_REGION") or data.get("region", DEFAULT_REGION),
      tags={str(k): str(v) for k, v in (data.get("tags") or {}).items()},
    )


def parse_compute(data: Mapping[str, Any]) -> Compute:
  """Select exactly one compute strategy from a ``compute`` mapping."""
  if not isinstance(data, Mapping):
    raise ConfigError("compute must be a mapping with exactly one of fleet or function")
  strategies = [key for key in ("fleet", "function") if key in data]
  unknown = set(data) - {"fleet", "function"}
  if unknown:
    raise ConfigError(f"Unknown compute strategy: {', '.join(sorted(unknown))}")
  if len(strategies) != 1:
    raise ConfigError(
      "Exactly one compute strategy (fleet or function) must be configured, "
      f"got {len(strategies)}"
    )

  settings = data[strategies[0]] or {}
  try:
    if strategies[0] == "fleet":
      return FleetCompute(**settings)
    return FunctionCompute(**settings)
  except TypeError as e:
    raise ConfigError(f"Invalid {strategies[0]} settings: {e}") from e


def parse_database(data: Mapping[str, Any]) -> DatabaseConfig:
  """Build database settings, converting the removal policy string to its enum."""
  merged = dict(data)
  removal_policy_str = str(merged.pop("removal_policy", "destroy")).lower()
  if "engine_version" in merged:
    merged["engine_version"] = str(merged["engine_version"])
  if removal_policy_str not in REMOVAL_POLICIES:
    raise ConfigError(f"Unknown removal policy: {removal_policy_str}")

  try:
    return DatabaseConfig(
      removal_policy=REMOVAL_POLICIES[removal_policy_str],
      **merged,
    )
  except TypeError as e:
    raise ConfigError(f"Invalid database settings: {e}") from e
