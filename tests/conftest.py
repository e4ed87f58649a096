"""Pytest fixtures for CDK construct tests."""

import aws_cdk as cdk
import pytest

from infrastructure.config import (
  DnsConfig,
  FleetCompute,
  FunctionCompute,
  GithubConfig,
  StackConfig,
)


@pytest.fixture
def app() -> cdk.App:
  """Create a CDK App for testing."""
  return cdk.App()


@pytest.fixture
def stack(app: cdk.App) -> cdk.Stack:
  """Create a CDK Stack for testing."""
  return cdk.Stack(app, "TestStack", env=cdk.Environment(region="eu-west-2"))


@pytest.fixture
def environ() -> dict[str, str]:
  """Environment with the required GitHub repository values."""
  return {"OWNER": "GreenerSoftware", "REPO": "alwayson"}


@pytest.fixture
def fleet_config() -> StackConfig:
  """Stack configuration using the EC2 fleet strategy."""
  return StackConfig(
    github=GithubConfig(owner="GreenerSoftware", repo="alwayson"),
    stack_name="WebApp",
    dns=DnsConfig(domain_name="example.com", hosted_zone_id="Z0123456789ABC"),
    compute=FleetCompute(),
  )


@pytest.fixture
def function_config() -> StackConfig:
  """Stack configuration using the Lambda function strategy."""
  return StackConfig(
    github=GithubConfig(owner="GreenerSoftware", repo="alwayson"),
    stack_name="WebApp",
    dns=DnsConfig(domain_name="example.com", hosted_zone_id="Z0123456789ABC"),
    compute=FunctionCompute(),
  )
