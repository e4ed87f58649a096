#!/usr/bin/env python3
"""Copy stack outputs into GitHub Actions repository variables."""

import argparse
import json
import os
import sys
from typing import cast

import boto3  # type: ignore[import-not-found]
import requests
from botocore.exceptions import ClientError

GITHUB_API = "https://api.github.com"
VARIABLES_OUTPUT = "GithubActionsVariables"


def get_stack_variables(stack_name: str, region: str = "eu-west-2") -> dict[str, str]:
  """Read the variables JSON published by the stack.

  Args:
    stack_name: The CDK stack name (e.g., 'Alwayson')
    region: AWS region

  Returns:
    Dictionary of GitHub variable name to value
  """
  cloudformation = boto3.client("cloudformation", region_name=region)
  response = cloudformation.describe_stacks(StackName=stack_name)

  for output in response["Stacks"][0].get("Outputs", []):
    if output["OutputKey"] == VARIABLES_OUTPUT:
      return cast(dict[str, str], json.loads(output["OutputValue"]))

  raise KeyError(f"Stack {stack_name} has no {VARIABLES_OUTPUT} output")


def set_variable(
  session: requests.Session,
  owner: str,
  repo: str,
  name: str,
  value: str,
) -> str:
  """Create or update one repository variable.

  Returns:
    "updated" or "created"
  """
  url = f"{GITHUB_API}/repos/{owner}/{repo}/actions/variables"

  response = session.patch(f"{url}/{name}", json={"name": name, "value": value})
  if response.status_code == 404:
    response = session.post(url, json={"name": name, "value": value})
    response.raise_for_status()
    return "created"

  response.raise_for_status()
  return "updated"


def github_session(token: str) -> requests.Session:
  """Session authenticated with a personal access token."""
  session = requests.Session()
  session.headers.update(
    {
      "Accept": "application/vnd.github+json",
      "Authorization": f"Bearer {token}",
      "X-GitHub-Api-Version": "2022-11-28",
    }
  )
  return session


def publish(
  stack_name: str,
  owner: str,
  repo: str,
  token: str,
  region: str = "eu-west-2",
) -> dict[str, str]:
  """Publish every stack variable to the repository."""
  variables = get_stack_variables(stack_name, region)
  session = github_session(token)

  results: dict[str, str] = {}
  for name, value in variables.items():
    results[name] = set_variable(session, owner, repo, name, value)
    print(f"✓ {name} {results[name]}")

  return results


def main() -> None:
  """Main entry point."""
  parser = argparse.ArgumentParser(
    description="Publish stack resource identifiers as GitHub Actions variables"
  )
  parser.add_argument(
    "--stack-name",
    default="Alwayson",
    help="CDK stack name (default: Alwayson)",
  )
  parser.add_argument(
    "--region",
    default=os.environ.get("CDK_DEFAULT_REGION", "eu-west-2"),
    help="AWS region (default: eu-west-2)",
  )
  parser.add_argument(
    "--owner",
    default=os.environ.get("OWNER"),
    help="GitHub repository owner (default: $OWNER)",
  )
  parser.add_argument(
    "--repo",
    default=os.environ.get("REPO"),
    help="GitHub repository name (default: $REPO)",
  )
  args = parser.parse_args()

  token = os.environ.get("PERSONAL_ACCESS_TOKEN")
  if not token:
    print("Error: PERSONAL_ACCESS_TOKEN is not set", file=sys.stderr)
    sys.exit(1)
  if not args.owner or not args.repo:
    print("Error: set --owner/--repo or OWNER/REPO", file=sys.stderr)
    sys.exit(1)

  try:
    publish(args.stack_name, args.owner, args.repo, token, args.region)
  except (ClientError, KeyError, requests.RequestException) as e:
    print(f"Error publishing variables: {e}", file=sys.stderr)
    sys.exit(1)


if __name__ == "__main__":
  main()
