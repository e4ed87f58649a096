"""CDK stacks for the web application infrastructure."""

from .web_app_stack import WebAppStack

__all__ = ["WebAppStack"]
