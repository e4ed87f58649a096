#!/usr/bin/env python3
"""CDK application entry point for the web application infrastructure."""

import sys
from pathlib import Path

# Add the project root to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

import aws_cdk as cdk
import boto3

from infrastructure.config import StackConfig
from infrastructure.stacks import WebAppStack


def get_account_id() -> str:
  """Get AWS account ID from current credentials."""
  sts = boto3.client("sts")
  return str(sts.get_caller_identity()["Account"])


def build_app(app: cdk.App, config: StackConfig) -> WebAppStack:
  """Add the web application stack to an app."""
  return WebAppStack(
    app,
    config.stack_name,
    config=config,
    env=cdk.Environment(
      account=config.account,
      region=config.region,
    ),
    description=f"Web application infrastructure for {config.dns.domain_name}",
  )


def main() -> None:
  """Load configuration and synthesize the stack."""
  app = cdk.App()

  # Configuration errors (e.g. missing OWNER/REPO) abort here,
  # before any resource is declared
  config_path = app.node.try_get_context("config") or "stack.yaml"
  config = StackConfig.from_yaml(Path(config_path))

  # Hosted zone and certificate lookups need an explicit account
  if config.account is None:
    config.account = get_account_id()

  build_app(app, config)
  app.synth()


if __name__ == "__main__":
  main()
